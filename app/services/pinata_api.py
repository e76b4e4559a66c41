# app/services/pinata_api.py
"""
Pinata pinning client adapters.

Two interchangeable implementations expose the same operations:

- PinataRestClient: legacy ``pinning/*`` REST endpoints, authorized with the
  static ``pinata_api_key`` / ``pinata_secret_api_key`` header pair.
- PinataJWTClient: v3 Files API (``uploads.pinata.cloud``), authorized with a
  bearer JWT.

get_pinning_client() picks one based on configuration. Both return the bare
content identifier; use ipfs_hash_to_uri() to build the public URI.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests

from app.core.config import Settings, settings
from app.core.errors import ConfigurationError, MissingContentId, ProviderError, ProviderTimeout

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pinata.cloud"
DEFAULT_UPLOAD_URL = "https://uploads.pinata.cloud/v3"

FILE_UPLOAD_NAME = "file"
JSON_UPLOAD_NAME = "data.json"


def ipfs_hash_to_uri(cid: str) -> str:
    return f"ipfs://{cid}"


class PinningClient(Protocol):
    """Operations every pinning adapter provides."""

    def pin_file(self, data: bytes, mime_type: str) -> str:
        ...

    def pin_json(self, value: Any) -> str:
        ...

    def unpin(self, cid: str) -> None:
        ...


@dataclass(frozen=True)
class RetryPolicy:
    """Timeout and bounded exponential backoff for outbound Pinata calls."""
    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_seconds: float = 0.5
    max_backoff_seconds: float = 8.0

    def delay(self, attempt: int) -> float:
        return min(self.backoff_seconds * (2 ** attempt), self.max_backoff_seconds)

    @classmethod
    def from_settings(cls, config: Settings) -> "RetryPolicy":
        return cls(
            timeout_seconds=config.PINATA_TIMEOUT_SECONDS,
            max_retries=config.PINATA_MAX_RETRIES,
            backoff_seconds=config.PINATA_RETRY_BACKOFF_SECONDS,
        )


def send_with_retry(method: str, url: str, policy: RetryPolicy, **kwargs) -> requests.Response:
    """
    Sends a request to Pinata, retrying transient failures.

    HTTP 5xx responses, connection errors and timeouts are retried up to
    policy.max_retries times. Any other response is returned as-is for the
    caller to inspect.

    Raises:
        ProviderTimeout: The last attempt timed out
        ProviderError: The last attempt could not connect, or the request
            could not be sent at all
    """
    attempt = 0
    while True:
        try:
            response = requests.request(method, url, timeout=policy.timeout_seconds, **kwargs)
        except requests.exceptions.Timeout as e:
            if attempt >= policy.max_retries:
                logger.error(f"Pinata API ({url}) timed out after {attempt + 1} attempt(s)")
                raise ProviderTimeout(
                    f"Pinata API timed out after {attempt + 1} attempt(s)"
                ) from e
            reason = "timeout"
        except requests.exceptions.ConnectionError as e:
            if attempt >= policy.max_retries:
                logger.error(f"Error connecting to Pinata API ({url}): {e}")
                raise ProviderError(f"Pinata API request failed: {e}") from e
            reason = "connection error"
        except requests.exceptions.RequestException as e:
            logger.error(f"Error sending request to Pinata API ({url}): {e}")
            raise ProviderError(f"Pinata API request failed: {e}") from e
        else:
            if response.status_code < 500 or attempt >= policy.max_retries:
                return response
            reason = f"HTTP {response.status_code}"

        delay = policy.delay(attempt)
        logger.warning(f"Pinata API {method} {url} failed ({reason}), retrying in {delay:.1f}s")
        time.sleep(delay)
        attempt += 1


def parse_response(response: requests.Response) -> Dict[str, Any]:
    """Raise ProviderError on non-2xx or non-JSON bodies; return the parsed body."""
    if not response.ok:
        logger.error(f"Pinata API returned {response.status_code}: {response.text}")
        raise ProviderError(
            f"Pinata API error: {response.status_code} {response.text}",
            status_code=response.status_code,
            body=response.text
        )

    try:
        body = response.json()
    except ValueError as e:
        raise ProviderError(
            f"Invalid response from Pinata API: {e}",
            status_code=response.status_code,
            body=response.text
        ) from e

    if not isinstance(body, dict):
        raise ProviderError(
            "Invalid response from Pinata API: expected a JSON object",
            status_code=response.status_code,
            body=response.text
        )
    return body


def require_cid(cid: Any, field: str) -> str:
    # Some Pinata failures come back as HTTP 200 with an error payload
    if not isinstance(cid, str) or not cid.strip():
        raise MissingContentId(f"Invalid response from Pinata API: missing {field}")
    return cid


def unpin_cid(api_url: str, cid: str, headers: Dict[str, str], policy: RetryPolicy) -> None:
    """
    Removes a pin through the legacy unpin endpoint.

    Both credential styles are accepted there, so the adapters share it.

    Raises:
        ProviderError: Pinata returned a non-2xx status
    """
    url = f"{api_url}/pinning/unpin/{cid}"
    response = send_with_retry("DELETE", url, policy, headers=headers)
    if not response.ok:
        raise ProviderError(
            f"Pinata API error: {response.status_code} {response.text}",
            status_code=response.status_code,
            body=response.text
        )
    logger.info(f"Unpinned {cid}")


class PinataRestClient:
    """Pins through the legacy REST API using an API key and secret."""

    def __init__(
        self,
        api_key: Optional[str],
        secret_api_key: Optional[str],
        api_url: str = DEFAULT_API_URL,
        retry_policy: Optional[RetryPolicy] = None
    ):
        if not api_key or not secret_api_key:
            raise ConfigurationError("PINATA_API_KEY and PINATA_SECRET_API_KEY are required")
        self._headers = {
            "pinata_api_key": api_key,
            "pinata_secret_api_key": secret_api_key,
        }
        self.api_url = api_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()

    def pin_file(self, data: bytes, mime_type: str) -> str:
        url = f"{self.api_url}/pinning/pinFileToIPFS"
        logger.debug(f"Pinning {len(data)} bytes ({mime_type}) via {url}")
        response = send_with_retry(
            "POST", url, self.retry_policy,
            headers=self._headers,
            files={"file": (FILE_UPLOAD_NAME, data, mime_type)}
        )
        cid = require_cid(parse_response(response).get("IpfsHash"), "IpfsHash")
        logger.info(f"Successfully pinned file to IPFS with CID: {cid}")
        return cid

    def pin_json(self, value: Any) -> str:
        url = f"{self.api_url}/pinning/pinJSONToIPFS"
        logger.debug(f"Pinning JSON via {url}")
        response = send_with_retry(
            "POST", url, self.retry_policy,
            headers={**self._headers, "Content-Type": "application/json"},
            json=value
        )
        cid = require_cid(parse_response(response).get("IpfsHash"), "IpfsHash")
        logger.info(f"Successfully pinned JSON to IPFS with CID: {cid}")
        return cid

    def unpin(self, cid: str) -> None:
        unpin_cid(self.api_url, cid, self._headers, self.retry_policy)


class PinataJWTClient:
    """Pins through the v3 Files API using a bearer JWT."""

    def __init__(
        self,
        jwt: Optional[str],
        upload_url: str = DEFAULT_UPLOAD_URL,
        api_url: str = DEFAULT_API_URL,
        retry_policy: Optional[RetryPolicy] = None
    ):
        if not jwt:
            raise ConfigurationError("PINATA_JWT is required")
        self._headers = {"Authorization": f"Bearer {jwt}"}
        self.upload_url = upload_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()

    def _upload(self, name: str, data: bytes, mime_type: str) -> str:
        url = f"{self.upload_url}/files"
        logger.debug(f"Uploading {len(data)} bytes ({mime_type}) via {url}")
        response = send_with_retry(
            "POST", url, self.retry_policy,
            headers=self._headers,
            files={"file": (name, data, mime_type)},
            data={"network": "public"}
        )
        # v3 response: {"data": {"id": "...", "cid": "...", ...}}
        payload = parse_response(response).get("data")
        cid = payload.get("cid") if isinstance(payload, dict) else None
        return require_cid(cid, "CID")

    def pin_file(self, data: bytes, mime_type: str) -> str:
        cid = self._upload(FILE_UPLOAD_NAME, data, mime_type)
        logger.info(f"Successfully pinned file to IPFS with CID: {cid}")
        return cid

    def pin_json(self, value: Any) -> str:
        # Compact separators keep the bytes identical to JSON.stringify output
        data = json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        cid = self._upload(JSON_UPLOAD_NAME, data, "application/json")
        logger.info(f"Successfully pinned JSON to IPFS with CID: {cid}")
        return cid

    def unpin(self, cid: str) -> None:
        unpin_cid(self.api_url, cid, self._headers, self.retry_policy)


def get_pinning_client(config: Optional[Settings] = None) -> PinningClient:
    """
    Builds the adapter selected by PINATA_ADAPTER.

    "auto" uses the JWT client when PINATA_JWT is set and the REST client
    otherwise.

    Raises:
        ConfigurationError: Required credentials are missing
    """
    config = config or settings
    adapter = config.PINATA_ADAPTER
    retry_policy = RetryPolicy.from_settings(config)
    api_url = str(config.PINATA_API_URL)

    if adapter == "auto":
        if config.PINATA_JWT:
            adapter = "jwt"
        elif config.PINATA_API_KEY or config.PINATA_SECRET_API_KEY:
            adapter = "rest"
        else:
            raise ConfigurationError(
                "Pinata credentials are required (set PINATA_JWT or PINATA_API_KEY and PINATA_SECRET_API_KEY)"
            )

    if adapter == "jwt":
        return PinataJWTClient(
            jwt=config.PINATA_JWT,
            upload_url=str(config.PINATA_UPLOAD_URL),
            api_url=api_url,
            retry_policy=retry_policy
        )
    if adapter == "rest":
        return PinataRestClient(
            api_key=config.PINATA_API_KEY,
            secret_api_key=config.PINATA_SECRET_API_KEY,
            api_url=api_url,
            retry_policy=retry_policy
        )
    raise ConfigurationError(f"Unknown PINATA_ADAPTER: {adapter}")
