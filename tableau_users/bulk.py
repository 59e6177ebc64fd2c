"""
Site role updates for many users at once, read from a YAML file such as

- username: john.smith
  role: Explorer
"""

import os
from dataclasses import dataclass
from typing import List

import requests
import structlog
import yaml
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .exceptions import BulkFileError, TableauError

log = structlog.get_logger(__name__)


class BulkUpdateRecord(BaseModel):
    """ One entry of the YAML file. Other keys, such as id, are ignored. """

    model_config = ConfigDict(extra='ignore', coerce_numbers_to_str=True)

    username: str
    role: str


@dataclass
class BulkUpdateSummary:
    already_same: int = 0
    updated: int = 0
    not_found: int = 0
    errored: int = 0

    @property
    def total(self):
        return self.already_same + self.updated + self.not_found + self.errored


_records_adapter = TypeAdapter(List[BulkUpdateRecord])


def load_records(path) -> List[BulkUpdateRecord]:
    """ Reads the list of usernames and roles from a YAML file. """
    if not os.path.exists(path):
        raise BulkFileError('Provided path to YAML file is not valid: {0} does not exist'.format(path))
    if os.path.isdir(path):
        raise BulkFileError("Provided path to YAML file is not valid: it's a directory")

    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise BulkFileError("Couldn't read YAML file {0}: {1}".format(path, e)) from e

    if data is None:
        return []
    try:
        records = _records_adapter.validate_python(data)
    except ValidationError as e:
        raise BulkFileError('Invalid user list in {0}: {1}'.format(path, e)) from e

    log.debug('Loaded users from file', path=str(path), count=len(records))
    return records


def bulk_update_site_roles(client, records) -> BulkUpdateSummary:
    """
    Brings every user in 'records' to its listed site role, one at a time.

    A failure for one user is logged and counted; the remaining users are
    still processed.
    """
    summary = BulkUpdateSummary()
    total = len(records)

    for idx, record in enumerate(records, start=1):
        try:
            actual = client.get_user(record.username)
            if not actual.exists:
                summary.not_found += 1
                log.warning('User does not exist, skipping', progress='{0}/{1}'.format(idx, total),
                            username=record.username)
                continue
            if actual.has_role(record.role):
                summary.already_same += 1
                log.info('User already has role', progress='{0}/{1}'.format(idx, total),
                         username=record.username, role=actual.role)
                continue

            log.info('Updating user', progress='{0}/{1}'.format(idx, total), username=record.username,
                     old_role=actual.role, role=record.role)
            updated = client.change_site_role(actual, record.role)
        except (TableauError, requests.RequestException) as e:
            summary.errored += 1
            log.error('Failed to update user', progress='{0}/{1}'.format(idx, total),
                      username=record.username, role=record.role, error=str(e))
            continue

        summary.updated += 1
        log.info('User updated', username=record.username, role=updated.role)

    return summary
