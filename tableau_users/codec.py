"""
Builds request bodies and parses response bodies for the users endpoints.

Responses are matched with or without the REST API namespace
('http://tableau.com/api' for Tableau Server 9.1 or later).
"""

import xml.etree.ElementTree as ET  # Contains methods used to build and parse XML

from .exceptions import DecodeError
from .models import ErrorDetail, Pagination, User

# Auth setting given to every user this client creates
SAML_AUTH_SETTING = 'SAML'
DEFAULT_AUTH_SETTING = SAML_AUTH_SETTING


def _to_bytes(xml_request):
    return ET.tostring(xml_request, encoding='utf-8')


def signin_request(username, password, site=''):
    xml_request = ET.Element('tsRequest')
    credentials_element = ET.SubElement(xml_request, 'credentials', name=username, password=password)
    ET.SubElement(credentials_element, 'site', contentUrl=site)
    return _to_bytes(xml_request)


def create_user_request(username, role, auth_setting=DEFAULT_AUTH_SETTING):
    xml_request = ET.Element('tsRequest')
    ET.SubElement(xml_request, 'user', name=username, siteRole=role, authSetting=auth_setting)
    return _to_bytes(xml_request)


def update_user_request(role):
    """ Only the site role is ever changed by this client. """
    xml_request = ET.Element('tsRequest')
    ET.SubElement(xml_request, 'user', siteRole=role)
    return _to_bytes(xml_request)


def _parse(body):
    try:
        return ET.fromstring(body)
    except ET.ParseError as e:
        raise DecodeError('unable to parse response body: {0}'.format(e)) from e


def _user_from_element(element, require_id=True):
    """
    An existing user always has a site role, and an ID everywhere except in
    update responses, which leave it out.
    """
    required = ['id', 'siteRole'] if require_id else ['siteRole']
    missing = [name for name in required if not element.get(name)]
    if missing:
        raise DecodeError('user {0} has no {1}'.format(element.get('name', ''), ', '.join(missing)))
    return User(
        username=element.get('name', ''),
        id=element.get('id', ''),
        role=element.get('siteRole', ''),
        auth_setting=element.get('authSetting', ''),
        exists=True,
    )


def _int_attribute(element, name):
    try:
        return int(element.get(name, 0))
    except ValueError as e:
        raise DecodeError('invalid {0} in pagination: {1}'.format(name, element.get(name))) from e


def parse_credentials(body):
    """
    Returns the authentication token and the site ID from a signin response.
    Missing attributes come back as empty strings.
    """
    parsed_response = _parse(body)
    credentials = parsed_response.find('.//{*}credentials')
    if credentials is None:
        return '', ''
    site = credentials.find('{*}site')
    site_id = site.get('id', '') if site is not None else ''
    return credentials.get('token', ''), site_id


def parse_pagination(parsed_response):
    pagination = parsed_response.find('{*}pagination')
    if pagination is None:
        return Pagination()
    return Pagination(
        page_number=_int_attribute(pagination, 'pageNumber'),
        page_size=_int_attribute(pagination, 'pageSize'),
        total_available=_int_attribute(pagination, 'totalAvailable'),
    )


def parse_users(body):
    """ Returns the users on one page of a list response, and its pagination. """
    parsed_response = _parse(body)
    users = [_user_from_element(user) for user in parsed_response.findall('{*}users/{*}user')]
    return users, parse_pagination(parsed_response)


def parse_user(body, require_id=True):
    """
    Parses a create or update response holding a single <user>.
    Pass require_id=False for update responses.
    """
    parsed_response = _parse(body)
    user = parsed_response.find('{*}user')
    if user is None:
        raise DecodeError('response has no user element')
    return _user_from_element(user, require_id)


def parse_error(body):
    """
    Returns the code, summary and detail of an error response, or None if
    the body is not an XML error document.
    """
    try:
        parsed_response = ET.fromstring(body)
    except ET.ParseError:
        return None

    error_element = parsed_response.find('{*}error')
    if error_element is None:
        return None
    summary_element = error_element.find('{*}summary')
    detail_element = error_element.find('{*}detail')
    return ErrorDetail(
        code=error_element.get('code', ''),
        summary=summary_element.text or '' if summary_element is not None else '',
        detail=detail_element.text or '' if detail_element is not None else '',
    )
