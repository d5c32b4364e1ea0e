"""
Node Metadata - EC2 Instance Metadata Service (IMDSv2) client

Reads the instance ID and lifecycle of the running instance with a
session token obtained from the token endpoint.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, NamedTuple, Optional

import requests

from .exceptions import (
    MetadataError,
    MetadataRequestError,
    RequiredFieldError,
    TokenError,
)
from .keys import PRODUCTION_KEYS, MetadataKeys

logger = logging.getLogger(__name__)

IMDS_BASE_URL = "http://169.254.169.254"
TOKEN_PATH = "/latest/api/token"
METADATA_PATH = "/latest/meta-data/"

TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"
TOKEN_TTL_SECONDS = 600
REQUEST_TIMEOUT = 5  # seconds, per request

INSTANCE_ID_FIELD = "instance-id"
LIFECYCLE_FIELD = "instance-life-cycle"
DEFAULT_LIFECYCLE = "on-demand"


class MetadataResult(NamedTuple):
    """Either the fetched metadata or the error that stopped the fetch."""

    metadata: Optional[Dict[str, str]]
    error: Optional[MetadataError]

    @property
    def ok(self) -> bool:
        return self.error is None


@contextmanager
def _session_scope(session: Optional[requests.Session]) -> Iterator[requests.Session]:
    # Injected sessions belong to the caller and are left open.
    if session is not None:
        yield session
        return
    with requests.Session() as owned:
        yield owned


def acquire_token(
    session: Optional[requests.Session] = None, base_url: str = IMDS_BASE_URL
) -> str:
    """
    Request an IMDSv2 session token.

    Returns:
        str: The raw token.

    Raises:
        MetadataRequestError: On a network error or a non-200 response.
    """
    url = base_url + TOKEN_PATH
    headers = {TOKEN_TTL_HEADER: str(TOKEN_TTL_SECONDS)}
    with _session_scope(session) as s:
        try:
            with s.put(url, headers=headers, timeout=REQUEST_TIMEOUT) as resp:
                if resp.status_code != requests.codes.ok:
                    raise MetadataRequestError(
                        f"failed to get token, status code: {resp.status_code}",
                        url,
                        status_code=resp.status_code,
                    )
                return resp.content.decode("utf-8", errors="replace")
        except requests.RequestException as e:
            raise MetadataRequestError(
                f"token request to {url} failed: {e}", url
            ) from e


def read_field(
    token: str,
    field: str,
    session: Optional[requests.Session] = None,
    base_url: str = IMDS_BASE_URL,
) -> str:
    """
    Read a single metadata field using a previously acquired token.

    Args:
        token (str): IMDSv2 session token.
        field (str): Path under latest/meta-data/, e.g. "instance-id".

    Returns:
        str: The raw field value.

    Raises:
        MetadataRequestError: On a network error or a non-200 response.
    """
    url = base_url + METADATA_PATH + field
    with _session_scope(session) as s:
        try:
            with s.get(
                url, headers={TOKEN_HEADER: token}, timeout=REQUEST_TIMEOUT
            ) as resp:
                if resp.status_code != requests.codes.ok:
                    raise MetadataRequestError(
                        f"failed to get metadata for {field}, status code: {resp.status_code}",
                        url,
                        status_code=resp.status_code,
                        field=field,
                    )
                return resp.content.decode("utf-8", errors="replace")
        except requests.RequestException as e:
            raise MetadataRequestError(
                f"failed to get metadata for {field}: {e}", url, field=field
            ) from e


def fetch_instance_metadata(
    keys: MetadataKeys = PRODUCTION_KEYS,
    session: Optional[requests.Session] = None,
    base_url: str = IMDS_BASE_URL,
) -> Dict[str, str]:
    """
    Fetch the instance ID and lifecycle of the running instance.

    The lifecycle falls back to "on-demand" when it cannot be read.

    Args:
        keys (MetadataKeys): Names of the keys in the returned mapping.
        session (requests.Session): Optional session to issue requests on. A
            fresh one is created and closed per call when omitted.
        base_url (str): IMDS endpoint, overridable for testing.

    Returns:
        dict[str, str]: Mapping with exactly the instance ID and lifecycle keys.

    Raises:
        TokenError: If the session token cannot be acquired.
        RequiredFieldError: If the instance ID cannot be read.
    """
    with _session_scope(session) as s:
        try:
            token = acquire_token(s, base_url)
        except MetadataRequestError as e:
            raise TokenError(f"failed to get IMDS token: {e}") from e

        try:
            instance_id = read_field(token, INSTANCE_ID_FIELD, s, base_url)
        except MetadataRequestError as e:
            raise RequiredFieldError(f"failed to get instance ID: {e}") from e

        try:
            lifecycle = read_field(token, LIFECYCLE_FIELD, s, base_url)
        except MetadataRequestError as e:
            logger.debug(
                "Instance lifecycle unavailable, defaulting to %s: %s",
                DEFAULT_LIFECYCLE,
                e,
            )
            lifecycle = DEFAULT_LIFECYCLE

    return {keys.instance_id: instance_id, keys.lifecycle: lifecycle}


def try_fetch_instance_metadata(
    keys: MetadataKeys = PRODUCTION_KEYS,
    session: Optional[requests.Session] = None,
    base_url: str = IMDS_BASE_URL,
) -> MetadataResult:
    """
    Like fetch_instance_metadata, but returns a MetadataResult instead of
    raising on a fatal metadata failure.
    """
    try:
        return MetadataResult(fetch_instance_metadata(keys, session, base_url), None)
    except MetadataError as e:
        return MetadataResult(None, e)
