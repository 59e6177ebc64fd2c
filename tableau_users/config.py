"""
Settings for the command line, read from the environment and a .local file.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Credentials
from .rest_api_utils import DEFAULT_TIMEOUT

ENV_FILE = '.local'
DEFAULT_LOG_LEVEL = 'warning'


class Settings(BaseSettings):
    """
    TABLEAU_URL, TABLEAU_USERNAME and TABLEAU_PASSWORD identify the server
    and the administrator to sign in as. Environment variables take
    precedence over the .local file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    tableau_url: str = ''
    tableau_username: str = ''
    tableau_password: SecretStr = SecretStr('')
    tableau_site: str = Field(default='', description='Site content URL, empty for the default site.')
    tableau_existing_assets_user_name: str = Field(
        default='',
        description='User that receives the content of deleted users.',
    )
    tableau_http_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    log_level: str = DEFAULT_LOG_LEVEL

    def missing(self):
        """ Names of the variables required to sign in that are not set. """
        required = {
            'TABLEAU_URL': self.tableau_url,
            'TABLEAU_USERNAME': self.tableau_username,
        }
        return [name for name, value in required.items() if not value]

    def credentials(self, password=None):
        """ Credentials to sign in with; 'password' overrides TABLEAU_PASSWORD. """
        if password is None:
            password = self.tableau_password.get_secret_value()
        return Credentials(
            server=self.tableau_url,
            username=self.tableau_username,
            password=password,
            site=self.tableau_site,
        )
