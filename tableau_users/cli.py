"""
Command line for administering users on a Tableau site.

    tableau-users login
    tableau-users get user [USERNAME] [--output yaml]
    tableau-users create user USERNAME [--site-role ROLE]
    tableau-users update user USERNAME --site-role ROLE
    tableau-users update user --from-yaml FILE
    tableau-users delete user USERNAME [--existing-assets-user-name NAME]

Server and credentials come from TABLEAU_URL, TABLEAU_USERNAME and
TABLEAU_PASSWORD (environment or a .local file). The password is prompted
for when it is not set.
"""

import argparse
import getpass
import sys

import requests
import structlog
import yaml
from pydantic import ValidationError

from .auth import sign_in
from .bulk import bulk_update_site_roles, load_records
from .config import DEFAULT_LOG_LEVEL, Settings
from .exceptions import TableauError, UserAlreadyExistsError
from .logging import configure_logging
from .models import User
from .rest_api_utils import Transport
from .users import DEFAULT_ROLE, TableauUsers

# Exit codes; "nothing to do" is kept apart from a failure
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOTHING_TO_DO = 3

log = structlog.get_logger(__name__)


def _format_user(user):
    return '{0} ({1}) - {2}'.format(user.username, user.id, user.role)


class Command:
    """ Signs in lazily and runs one subcommand against the site. """

    def __init__(self, settings, transport, out):
        self.settings = settings
        self.transport = transport
        self.out = out

    def echo(self, message=''):
        print(message, file=self.out)

    def credentials(self):
        missing = self.settings.missing()
        if missing:
            raise TableauError('missing configuration: {0}'.format(', '.join(missing)))
        password = None
        if not self.settings.tableau_password.get_secret_value():
            password = getpass.getpass('Password for {0}: '.format(self.settings.tableau_username))
        return self.settings.credentials(password)

    def connect(self):
        credentials = self.credentials()
        session = sign_in(credentials, transport=self.transport)
        return TableauUsers(session, credentials, transport=self.transport)

    def login(self, args):
        credentials = self.credentials()
        log.info('Logging in', server=credentials.server, username=credentials.username)
        session = sign_in(credentials, transport=self.transport)
        self.echo('Successfully logged into {0} (site ID {1}); token is {2}'.format(
            session.base_url, session.site_id, session.token))
        return EXIT_OK

    def get_user(self, args):
        client = self.connect()
        if args.username is None:
            log.debug('Fetching all users')
            users = client.get_users()
            if args.output == 'yaml':
                data = [{'username': u.username, 'id': u.id, 'role': u.role} for u in users]
                self.echo(yaml.safe_dump(data, sort_keys=False).rstrip())
            else:
                for user in users:
                    self.echo(_format_user(user))
            return EXIT_OK

        user = client.get_user(args.username)
        if not user.exists:
            self.echo('User {0} does not exist!'.format(args.username))
            return EXIT_NOTHING_TO_DO
        self.echo(_format_user(user))
        return EXIT_OK

    def create_user(self, args):
        client = self.connect()
        try:
            user = client.create_user(User(username=args.username, role=args.site_role))
        except UserAlreadyExistsError as e:
            self.echo('User {0} already exists!'.format(e.user.username))
            return EXIT_NOTHING_TO_DO
        self.echo('User {0} created with ID {1} ({2})'.format(user.username, user.id, user.role))
        return EXIT_OK

    def update_user(self, args):
        if args.username and args.site_role:
            client = self.connect()
            user = client.update_user_site_role(args.username, args.site_role)
            if not user.exists:
                self.echo('User {0} does not exist!'.format(args.username))
                return EXIT_NOTHING_TO_DO
            self.echo(_format_user(user))
            return EXIT_OK

        if not args.username and args.from_yaml:
            records = load_records(args.from_yaml)
            log.info('Updating user roles from file', path=args.from_yaml, count=len(records))
            summary = bulk_update_site_roles(self.connect(), records)
            self.echo()
            self.echo('Already same role: {0}'.format(summary.already_same))
            self.echo('Updated: {0}'.format(summary.updated))
            self.echo('Not found: {0}'.format(summary.not_found))
            self.echo('Error: {0}'.format(summary.errored))
            return EXIT_FAILURE if summary.errored else EXIT_OK

        raise TableauError('update user needs USERNAME with --site-role, or --from-yaml alone')

    def delete_user(self, args):
        assets_username = args.existing_assets_user_name
        if assets_username is None:
            assets_username = self.settings.tableau_existing_assets_user_name
        log.debug('Deleting user', username=args.username, existing_assets_user_name=assets_username)

        client = self.connect()
        user = client.get_user(args.username)
        if not user.exists:
            self.echo('User {0} does not exist - nothing to delete!'.format(args.username))
            return EXIT_NOTHING_TO_DO

        assets_user_id = ''
        if assets_username:
            assets_user = client.get_user(assets_username)
            if not assets_user.exists:
                raise TableauError(
                    'User {0} does not exist - can not move existing assets to them'.format(assets_username))
            assets_user_id = assets_user.id

        client.delete_user(user.id, assets_user_id)
        if assets_username:
            self.echo('User {0} deleted from the server, existing assets moved to user {1}'.format(
                args.username, assets_username))
        else:
            self.echo('User {0} deleted from the server'.format(args.username))
        return EXIT_OK


def build_parser():
    parser = argparse.ArgumentParser(prog='tableau-users',
                                     description='Administer users on a Tableau Server or Tableau Online site.')
    parser.add_argument('--log-level', type=str, help='Log level, overrides LOG_LEVEL')
    commands = parser.add_subparsers(dest='command', required=True)

    login = commands.add_parser('login', help='Sign in and print the site ID and token')
    login.set_defaults(handler=Command.login)

    get = commands.add_parser('get', help='Get resources').add_subparsers(dest='resource', required=True)
    get_user = get.add_parser('user', help='Get and print existing user(s)')
    get_user.add_argument('username', nargs='?', help='Username; all users when left out')
    get_user.add_argument('-o', '--output', choices=['text', 'yaml'], default='text',
                          help='Output format for the list of all users')
    get_user.set_defaults(handler=Command.get_user)

    create = commands.add_parser('create', help='Create resources').add_subparsers(dest='resource', required=True)
    create_user = create.add_parser('user', help='Create user')
    create_user.add_argument('username')
    create_user.add_argument('--site-role', type=str, default=DEFAULT_ROLE, help="User's role")
    create_user.set_defaults(handler=Command.create_user)

    update = commands.add_parser('update', help='Update resources').add_subparsers(dest='resource', required=True)
    update_user = update.add_parser(
        'user', help='Update existing user properties',
        description='Update one user with USERNAME and --site-role, or many with --from-yaml, '
                    'a YAML list of usernames and roles such as "- username: john.smith\\n  role: Explorer".')
    update_user.add_argument('username', nargs='?')
    update_user.add_argument('--site-role', type=str, help="User's role")
    update_user.add_argument('--from-yaml', type=str, help='Path to YAML file with username(s) and role(s)')
    update_user.set_defaults(handler=Command.update_user)

    delete = commands.add_parser('delete', help='Delete resources').add_subparsers(dest='resource', required=True)
    delete_user = delete.add_parser('user', help='Delete user by username')
    delete_user.add_argument('username')
    delete_user.add_argument('-e', '--existing-assets-user-name', type=str, default=None,
                             help='Username of an existing user to which assets will be moved to')
    delete_user.set_defaults(handler=Command.delete_user)

    return parser


def main(argv=None, settings=None, transport=None, out=None):
    args = build_parser().parse_args(argv)
    if settings is None:
        try:
            settings = Settings()
        except ValidationError as e:
            configure_logging(args.log_level or DEFAULT_LOG_LEVEL)
            log.error('Invalid configuration', error=str(e))
            return EXIT_FAILURE
    configure_logging(args.log_level or settings.log_level)

    owns_transport = transport is None
    if owns_transport:
        transport = Transport(timeout=settings.tableau_http_timeout)

    command = Command(settings, transport, out or sys.stdout)
    try:
        return args.handler(command, args)
    except (TableauError, requests.RequestException) as e:
        log.error('Command failed', error=str(e))
        return EXIT_FAILURE
    finally:
        if owns_transport:
            transport.close()


def run():
    sys.exit(main())
