"""
Exchanges site credentials for an authentication token and a site ID.
"""

import re

import requests
import structlog

from .codec import parse_credentials, signin_request
from .exceptions import AuthError
from .models import Session
from .rest_api_utils import Transport
from .version import VERSION

log = structlog.get_logger(__name__)

_API_ROOT = re.compile(r'/api/\d+(\.\d+)*$')


def api_base_url(server):
    """
    Returns the REST API root for a server address.

    'https://tableau.example.com' becomes 'https://tableau.example.com/api/3.7';
    an address that already ends with /api/<version> is kept as it is.
    """
    server = server.rstrip('/')
    if _API_ROOT.search(server):
        return server
    return '{0}/api/{1}'.format(server, VERSION)


def login(base_url, username, password, site='', transport=None):
    """
    Signs in to the server specified with the given credentials

    'base_url'  REST API root, see api_base_url()
    'username'  is the name (not ID) of the user to sign in as.
                Note that managing users requires a site or server administrator.
    'password'  is the password for the user.
    'site'      is the content URL of the site to sign in to. The
                default is "", which signs in to the default site.
    Returns the authentication token and the site ID. Either may be "" if
    the server left it out of the response.
    """
    transport = transport or Transport()
    url = base_url + '/auth/signin'

    log.info('Signing in', url=url, username=username)
    status_code, body = transport.execute('POST', url, data=signin_request(username, password, site),
                                          log_body=False)
    if status_code != requests.codes.ok:
        raise AuthError(status_code, body)

    return parse_credentials(body)


def sign_in(credentials, transport=None):
    """ Signs in and returns a Session for the directory client. """
    base_url = api_base_url(credentials.server)
    token, site_id = login(base_url, credentials.username, credentials.password, credentials.site,
                           transport=transport)
    if not token:
        raise AuthError(requests.codes.ok, 'signin response carried no token')
    return Session(base_url=base_url, token=token, site_id=site_id)
