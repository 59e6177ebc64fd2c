"""
Get, list, create, update and delete users on a Tableau site.

API reference:
https://help.tableau.com/current/api/rest_api/en-us/REST/rest_api_ref_users_and_groups.htm
"""

import requests
import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .codec import create_user_request, parse_user, parse_users, update_user_request
from .exceptions import AmbiguousResultError, ConsistencyError, UserAlreadyExistsError
from .models import User
from .rest_api_utils import Transport, check_status

DEFAULT_ROLE = 'Viewer'
PAGE_SIZE = 100

# Re-fetches after an update before a role mismatch is reported
VERIFY_ATTEMPTS = 3
VERIFY_WAIT = 1.0

log = structlog.get_logger(__name__)


class TableauUsers:
    """
    User directory of one site, bound to a signed-in Session.

    'session'           Session returned by auth.sign_in()
    'credentials'       the Credentials used to sign in; only the username and
                        a redacted password ever appear in errors
    'transport'         Transport to send requests with
    'verify_attempts'   how many times to re-fetch a user after an update
    'verify_wait'       seconds between those re-fetches
    """

    def __init__(self, session, credentials, transport=None, verify_attempts=VERIFY_ATTEMPTS,
                 verify_wait=VERIFY_WAIT):
        self.session = session
        self.credentials = credentials
        self.transport = transport or Transport()
        self.verify_attempts = verify_attempts
        self.verify_wait = verify_wait

    @property
    def users_url(self):
        return '{0}/sites/{1}/users'.format(self.session.base_url, self.session.site_id)

    def _user_url(self, user_id):
        return '{0}/{1}'.format(self.users_url, user_id)

    def _execute(self, method, url, success_code, action, data=None, params=None):
        status_code, body = self.transport.execute(method, url, token=self.session.token, data=data,
                                                   params=params)
        check_status(status_code, body, success_code, action, self.credentials)
        return body

    def get_user(self, username):
        """
        Looks a user up by exact username.

        Returns a User with exists=False if there is no such user.
        Raises AmbiguousResultError if the filter matched more than one user.
        GET /api/api-version/sites/site-id/users?filter=name:eq:username
        """
        log.debug('Searching for user', username=username)
        body = self._execute('GET', self.users_url, requests.codes.ok, 'get user',
                             params={'filter': 'name:eq:{0}'.format(username)})
        users, _ = parse_users(body)

        if not users:
            return User(username=username)
        if len(users) > 1:
            raise AmbiguousResultError(username, len(users), User(username=username))
        return users[0]

    def iter_users(self, page_size=PAGE_SIZE):
        """
        Yields every user on the site, fetching one page at a time.

        Stops once as many users as the server's totalAvailable have been
        seen, or when a page comes back empty.
        GET /api/api-version/sites/site-id/users?pageSize=page-size&pageNumber=page-number
        """
        page_number = 1
        fetched = 0
        while True:
            log.debug('Fetching users', page_size=page_size, page_number=page_number)
            body = self._execute('GET', self.users_url, requests.codes.ok, 'get users',
                                 params={'pageSize': page_size, 'pageNumber': page_number})
            users, pagination = parse_users(body)

            if not users:
                if page_number == 1:
                    log.info('No users were found')
                return

            log.debug('Server returned users', count=len(users),
                      total_available=pagination.total_available)
            for user in users:
                yield user
            fetched += len(users)

            if fetched >= pagination.total_available:
                return
            page_number += 1

    def get_users(self):
        """ Returns all users on the site. """
        return list(self.iter_users())

    def create_user(self, user):
        """
        Adds a user to the site with the default auth setting.

        Raises UserAlreadyExistsError, carrying the user with exists=True, if
        the username is taken.
        POST /api/api-version/sites/site-id/users
        """
        log.debug('Creating user', username=user.username, role=user.role)
        status_code, body = self.transport.execute('POST', self.users_url, token=self.session.token,
                                                   data=create_user_request(user.username, user.role))
        if status_code == requests.codes.conflict:
            raise UserAlreadyExistsError(User(username=user.username, role=user.role, exists=True))
        check_status(status_code, body, requests.codes.created, 'create user', self.credentials)

        return parse_user(body)

    def update_user_site_role(self, username, role):
        """
        Sets the site role of an existing user.

        Returns the user with exists=False if it was not found, and the user
        unchanged if it already has the role; no update is sent in either
        case. Otherwise see change_site_role().
        """
        user = self.get_user(username)
        if not user.exists:
            return user
        if user.has_role(role):
            log.info('User already has role', username=user.username, role=user.role)
            return user
        return self.change_site_role(user, role)

    def change_site_role(self, user, role):
        """
        Updates a user fetched with get_user() to 'role' and fetches it again.

        Raises ConsistencyError unless the requested role, the role in the
        update response and the role the server now reports all agree. Only
        a lagging re-fetch is retried; a response that already names another
        role fails after a single re-fetch.
        PUT /api/api-version/sites/site-id/users/user-id
        """
        log.debug('Updating user', username=user.username, old_role=user.role, role=role)
        body = self._execute('PUT', self._user_url(user.id), requests.codes.ok, 'update user',
                             data=update_user_request(role))
        updated = parse_user(body, require_id=False)

        if not updated.has_role(role):
            actual = self.get_user(user.username)
            log.warning('Server assigned another role', username=user.username, requested=role,
                        updated=updated.role, actual=actual.role)
            raise ConsistencyError(role, updated.role, actual.role)

        for attempt in Retrying(retry=retry_if_exception_type(ConsistencyError),
                                stop=stop_after_attempt(self.verify_attempts),
                                wait=wait_fixed(self.verify_wait),
                                reraise=True):
            with attempt:
                current = self._verify_role(user.username, role, updated.role)
        return current

    def _verify_role(self, username, role, updated_role):
        user = self.get_user(username)
        if not user.has_role(role):
            log.warning('Role mismatch after update', username=username, requested=role,
                        updated=updated_role, actual=user.role)
            raise ConsistencyError(role, updated_role, user.role)
        return user

    def delete_user(self, user_id, existing_assets_user_id=''):
        """
        Removes a user from the site.

        'existing_assets_user_id'   ID of the user that takes over the content
                                    owned by the removed user
        Returns True once the server confirmed the removal.
        DELETE /api/api-version/sites/site-id/users/user-id?mapAssetsTo=user-id
        """
        params = None
        if existing_assets_user_id:
            params = {'mapAssetsTo': existing_assets_user_id}

        log.debug('Deleting user', user_id=user_id, map_assets_to=existing_assets_user_id)
        self._execute('DELETE', self._user_url(user_id), requests.codes.no_content, 'delete user',
                      params=params)
        return True
