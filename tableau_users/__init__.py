"""
Administer users on a Tableau Server or Tableau Online site through the
XML REST API.
"""

from .auth import api_base_url, login, sign_in
from .exceptions import (AmbiguousResultError, AuthError, ConsistencyError, DecodeError,
                         InvalidCredentialsError, ServerError, TableauError, UserAlreadyExistsError)
from .models import Credentials, Session, User
from .users import TableauUsers

__version__ = '0.1.0'
