"""API key storage and the YesCode profile endpoint."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import requests

from .balance import ProfileSnapshot
from .config import CREDENTIALS_FILE, DEFAULT_BASE_URL, PROFILE_PATH, REQUEST_TIMEOUT
from .errors import CredentialMissing, FetchError, MalformedResponse, NetworkOrHttpError

__all__ = [
    'API_KEY_NAME', 'CredentialStore', 'CredentialMissing', 'FetchError', 'MalformedResponse',
    'NetworkOrHttpError', 'api_headers', 'fetch_profile',
]

log = logging.getLogger(__name__)

API_KEY_NAME = 'yescode.apiKey'


class CredentialStore:
    """Secrets kept in a JSON file readable only by the current user."""

    def __init__(self, path: Path = CREDENTIALS_FILE) -> None:
        self.path = path

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            log.warning('Cannot read credentials file %s: %s', self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get_secret(self, name: str = API_KEY_NAME) -> str | None:
        """Return the stored secret, or None if it was never set."""
        value = self._read().get(name)
        return value if isinstance(value, str) and value else None

    def store_secret(self, value: str, name: str = API_KEY_NAME) -> None:
        data = self._read()
        data[name] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding='utf-8')
        try:
            os.chmod(self.path, 0o600)
        except OSError:  # e.g. FAT volumes
            log.debug('Could not restrict permissions of %s', self.path)


def api_headers(api_key: str) -> dict[str, str]:
    """Return auth headers for the YesCode API."""
    return {
        'X-API-Key': api_key,
        'Accept': 'application/json',
        'User-Agent': 'usage-monitor-for-yescode/1.0',
    }


def fetch_profile(
    store: CredentialStore, base_url: str = DEFAULT_BASE_URL, timeout: float = REQUEST_TIMEOUT,
) -> ProfileSnapshot:
    """Fetch and parse the account profile.

    Raises
    ------
    CredentialMissing
        If no API key is stored.
    NetworkOrHttpError
        On connection problems, timeouts and non-2xx responses.
    MalformedResponse
        If the body is not a valid profile.
    """
    api_key = store.get_secret()
    if not api_key:
        raise CredentialMissing('API key not set')

    url = base_url.rstrip('/') + PROFILE_PATH
    try:
        resp = requests.get(url, headers=api_headers(api_key), timeout=timeout)
        resp.raise_for_status()
    except requests.HTTPError as e:
        code = e.response.status_code if e.response is not None else None
        raise NetworkOrHttpError(f'HTTP error {code or "?"}', status_code=code) from e
    except requests.RequestException as e:
        raise NetworkOrHttpError(f'Connection error: {e}') from e

    try:
        data = resp.json()
    except ValueError as e:
        raise MalformedResponse('response is not JSON') from e

    return ProfileSnapshot.from_dict(data)
