"""
Errors raised by the Tableau user administration client.

Every error derives from TableauError so callers can catch the whole family.
"Not found" and "already has the role" are not errors; the client returns a
User for those.
"""


def redact_password(password):
    """
    Masks a password down to its first and last character.

    'hunter2' becomes 'h*****2'. Passwords of two characters or fewer are
    masked completely, since showing both ends would reveal all of it.
    """
    if len(password) <= 2:
        return '*****'
    return '{0}*****{1}'.format(password[0], password[-1])


class TableauError(Exception):
    """ Base class for all client errors. """
    pass


class AuthError(TableauError):
    """ Signin did not return HTTP 200 or returned no usable token. """

    def __init__(self, status_code, body):
        self.status_code = status_code
        self.body = body
        super().__init__(
            'failed to log in - server responded with status code: {0} - {1}'.format(status_code, body))


class InvalidCredentialsError(TableauError):
    """ The server answered 401 to an authenticated call. """

    def __init__(self, username, password, status_code=401):
        self.username = username
        self.status_code = status_code
        super().__init__('invalid credentials [{0}] ({1}:{2})'.format(
            status_code, username, redact_password(password)))


class UserAlreadyExistsError(TableauError):
    """
    Create returned 409 Conflict.

    'user' is the requested user with exists=True, so callers can report the
    conflict without querying the server again.
    """

    def __init__(self, user):
        self.user = user
        super().__init__('user {0} already exists'.format(user.username))


class AmbiguousResultError(TableauError):
    """
    An exact-match username filter returned more than one user.

    'user' is an exists=False User; it must not be trusted.
    """

    def __init__(self, username, count, user):
        self.username = username
        self.count = count
        self.user = user
        super().__init__(
            'ambiguous result - {0} users returned for username {1}'.format(count, username))


class ConsistencyError(TableauError):
    """ The role after an update does not match the requested role. """

    def __init__(self, requested, updated, actual):
        self.requested = requested
        self.updated = updated
        self.actual = actual
        super().__init__(
            "updated and requested roles don't match: "
            "requested {0} - update response {1} - server {2}".format(requested, updated, actual))


class DecodeError(TableauError):
    """ A response body was not the XML document we expected. """
    pass


class ServerError(TableauError):
    """
    Any other unexpected status code.

    'detail' is the parsed ErrorDetail when the body was a Tableau error
    document, otherwise None and the raw body is used in the message.
    """

    def __init__(self, action, status_code, body, detail=None):
        self.action = action
        self.status_code = status_code
        self.body = body
        self.detail = detail
        if detail is not None:
            message = ('failed to {0} - server responded with status code: {1}, '
                       'Code: {2}, Summary: {3}, Detail: {4}').format(
                action, status_code, detail.code, detail.summary, detail.detail)
        else:
            message = 'failed to {0} - server responded with status code: {1} - {2}'.format(
                action, status_code, body)
        super().__init__(message)


class BulkFileError(TableauError):
    """ The YAML file for a bulk role update could not be loaded. """
    pass
