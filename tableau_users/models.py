"""
Plain value types passed between the client, the CLI and the tests.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credentials:
    """
    What the caller supplies to sign in.

    'server'    server address, with or without the /api/<version> suffix
    'username'  name (not ID) of the user to sign in as
    'password'  password for the user
    'site'      content URL of the site; "" selects the default site
    """
    server: str
    username: str
    password: str = field(repr=False)
    site: str = ''


@dataclass(frozen=True)
class Session:
    """ An authenticated session, held for the lifetime of one invocation. """
    base_url: str
    token: str = field(repr=False)
    site_id: str


@dataclass
class User:
    """
    A site user as reported by the server.

    exists=False with empty id/role means the server has no such user.
    """
    username: str = ''
    id: str = ''
    role: str = ''
    auth_setting: str = ''
    exists: bool = False

    def has_role(self, role):
        """ Site roles compare case-insensitively. """
        return self.role.lower() == role.lower()


@dataclass(frozen=True)
class Pagination:
    # <pagination pageNumber="1" pageSize="100" totalAvailable="341"/>
    page_number: int = 0
    page_size: int = 0
    total_available: int = 0


@dataclass(frozen=True)
class ErrorDetail:
    code: str = ''
    summary: str = ''
    detail: str = ''
