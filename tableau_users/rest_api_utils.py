"""
HTTP transport for the Tableau REST API and the classification of its
status codes into client errors.
"""

import contextlib

import requests  # Contains methods used to make HTTP requests
import structlog

from .codec import parse_error
from .exceptions import InvalidCredentialsError, ServerError, redact_password

__all__ = ['Transport', 'check_status', 'redact_password']

AUTH_HEADER = 'X-Tableau-Auth'
DEFAULT_TIMEOUT = 30.0

log = structlog.get_logger(__name__)


def _encode_for_display(text):
    """
    Encodes strings so they can display as ASCII in a Windows terminal window.

    Returns an ASCII-encoded version of the text.
    Unicode characters are converted to ASCII placeholders (for example, "?").
    """
    return text.encode('ascii', errors="backslashreplace").decode('utf-8')


@contextlib.contextmanager
def _closing(server_response):
    """ Closes the response on every path; a failed close is only logged. """
    try:
        yield server_response
    finally:
        try:
            server_response.close()
        except Exception as e:
            log.warning('Failed to close response', url=server_response.url, error=str(e))


class Transport:
    """
    Sends requests to the server one at a time.

    'timeout'   seconds to wait for each request
    'http'      requests.Session to reuse, a new one by default
    """

    def __init__(self, timeout=DEFAULT_TIMEOUT, http=None):
        self.timeout = timeout
        self.http = http if http is not None else requests.Session()

    def execute(self, method, url, token=None, data=None, params=None, log_body=True):
        """
        Issues one request and returns the status code and the body text.

        'token'     authentication token sent in the X-Tableau-Auth header
        'data'      XML request body
        'params'    query parameters
        'log_body'  False for requests whose body holds a secret
        Network errors from requests are not caught.
        """
        headers = {'Accept': 'application/xml'}
        if token:
            headers[AUTH_HEADER] = token
        if data is not None:
            headers['Content-Type'] = 'application/xml'

        if log_body and data is not None:
            log.debug('Sending request', method=method, url=url, params=params,
                      body=_encode_for_display(data.decode('utf-8')))
        else:
            log.debug('Sending request', method=method, url=url, params=params)

        server_response = self.http.request(method, url, headers=headers, data=data, params=params,
                                            timeout=self.timeout)
        with _closing(server_response):
            body = server_response.text
            status_code = server_response.status_code

        log.debug('Received response', url=url, status_code=status_code,
                  body=_encode_for_display(body))
        return status_code, body

    def close(self):
        self.http.close()


def check_status(status_code, body, success_code, action, credentials):
    """
    Checks the server response for possible errors.

    'status_code'   status code the server responded with
    'body'          response body
    'success_code'  the expected success code for the operation
    'action'        what was attempted, used in the error message
    'credentials'   the signin credentials, named in 401 errors
    Raises InvalidCredentialsError on 401 and ServerError on any other code.
    """
    if status_code == success_code:
        return
    if status_code == requests.codes.unauthorized:
        raise InvalidCredentialsError(credentials.username, credentials.password, status_code)
    raise ServerError(action, status_code, body, parse_error(body))
