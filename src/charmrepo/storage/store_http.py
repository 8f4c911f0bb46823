"""
Charm store HTTP client for the v4 API.

Provides the three store operations the charm store repository needs:
streaming archive download, bulk meta/any lookup and single-entity
meta/any lookup. Authentication negotiation is out of scope; optional
basic-auth credentials are handed to httpx as-is.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

import httpx
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..fingerprint import CHUNK_SIZE
from ..settings import DEFAULT_STORE_URL, Settings
from .base import ArchiveDownload
from .params import ErrorResponse, MetaAnyResponse
from .store_errors import StoreAPIError, StoreNotFound, StoreUnauthorized

logger = logging.getLogger(__name__)

API_VERSION = "v4"

# Response headers carrying archive identity and integrity data
ENTITY_ID_HEADER = "Entity-Id"
CONTENT_HASH_HEADER = "Content-Sha384"


def _entity_path(id: str) -> str:
    """Strip the cs: schema; the API addresses entities by path."""
    if id.startswith("cs:"):
        return id[len("cs:"):]
    return id


def _iter_body(response: httpx.Response, id: str) -> Iterator[bytes]:
    try:
        yield from response.iter_bytes(CHUNK_SIZE)
    except httpx.HTTPError as e:
        raise StoreAPIError(f"cannot read archive body for {id}: {e}") from e


class StoreHTTP:
    """
    HTTP client for charm store operations.

    Implements the StoreTransport protocol with httpx, retrying timed out
    requests with exponential backoff.
    """

    def __init__(self, url: str = DEFAULT_STORE_URL, *, timeout_s: float = 30.0,
                 retries: int = 2, auth: Optional[Tuple[str, str]] = None,
                 stats: bool = True, client: Optional[httpx.Client] = None):
        """
        Initialize store HTTP client.

        Args:
            url: Root endpoint of the store, without API version
            timeout_s: Read/write timeout in seconds
            retries: Number of retries for timed out requests
            auth: Optional (username, password) for basic auth
            stats: Whether downloads count towards store stats
            client: Pre-built httpx client (e.g. with a MockTransport)
        """
        self._url = url.rstrip("/")
        self.retries = retries
        self.stats = stats

        if client is None:
            client = httpx.Client(
                timeout=httpx.Timeout(connect=5.0, read=timeout_s, write=timeout_s, pool=5.0),
                follow_redirects=True,
                auth=auth,
                headers={"User-Agent": "charmrepo/0.1.0"},
            )
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> StoreHTTP:
        auth = None
        if settings.store_user:
            auth = (settings.store_user, settings.store_pass)
        return cls(
            settings.store_url,
            timeout_s=settings.http_timeout_s,
            retries=settings.http_retry,
            auth=auth,
            stats=not settings.test_mode,
        )

    @property
    def url(self) -> str:
        return self._url

    def with_stats_disabled(self) -> StoreHTTP:
        """Return a client sharing this connection pool with stats disabled."""
        new = copy.copy(self)
        new.stats = False
        return new

    def get_archive(self, id: str) -> ArchiveDownload:
        """
        Open a streaming archive download.

        The returned download owns the HTTP response; closing it releases
        the connection whether or not the body was read.
        """
        params = {} if self.stats else {"stats": "0"}
        response = self._request("GET", f"/{_entity_path(id)}/archive", params=params, stream=True)
        try:
            entity_id = response.headers.get(ENTITY_ID_HEADER)
            if not entity_id:
                raise StoreAPIError(f"store did not return {ENTITY_ID_HEADER} header for {id}")
            content_hash = response.headers.get(CONTENT_HASH_HEADER)
            if not content_hash:
                raise StoreAPIError(f"store did not return {CONTENT_HASH_HEADER} header for {id}")
            try:
                size = int(response.headers["Content-Length"])
            except (KeyError, ValueError) as e:
                raise StoreAPIError(f"store returned no valid Content-Length for {id}") from e
        except Exception:
            response.close()
            raise

        return ArchiveDownload(
            id=entity_id,
            hash=content_hash,
            size=size,
            body=_iter_body(response, id),
            closer=response.close,
        )

    def meta_any_bulk(self, ids: List[str], include: List[str]) -> Dict[str, Any]:
        params = [("id", i) for i in ids] + [("include", name) for name in include]
        response = self._request("GET", "/meta/any", params=params)
        data = self._json(response)
        # The store answers "null" when none of the ids are found
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreAPIError("unexpected bulk metadata response: expected a JSON object")
        return data

    def meta(self, id: str, include: List[str]) -> MetaAnyResponse:
        params = [("include", name) for name in include]
        response = self._request("GET", f"/{_entity_path(id)}/meta/any", params=params)
        try:
            return MetaAnyResponse.model_validate(self._json(response))
        except ValidationError as e:
            raise StoreAPIError(f"invalid metadata response for {id}: {e}") from e

    def _request(self, method: str, path: str, *, params=None, stream: bool = False) -> httpx.Response:
        """
        Make an HTTP request, retrying timeouts and mapping error statuses.

        Raises:
            StoreNotFound: On 404
            StoreUnauthorized: On 401/403
            StoreAPIError: On other error statuses and network errors
        """
        url = f"{self._url}/{API_VERSION}{path}"
        logger.debug(f"{method} {url} params={params}")

        retrying = Retrying(
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TimeoutException),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    request = self.client.build_request(method, url, params=params)
                    response = self.client.send(request, stream=stream)
        except httpx.RequestError as e:
            raise StoreAPIError(f"cannot {method} {url}: {e}") from e

        if response.status_code >= 400:
            self._raise_for_status(response)
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            try:
                response.read()
            except httpx.HTTPError as e:
                raise StoreAPIError(
                    f"{response.status_code} {response.reason_phrase}: cannot read error body: {e}",
                    status=response.status_code,
                ) from e
            try:
                body = ErrorResponse.model_validate(response.json())
                message, code = body.message, body.code or None
            except ValueError:
                message, code = response.text, None
        finally:
            response.close()

        status = response.status_code
        if not message:
            message = f"{status} {response.reason_phrase}"
        if status == 404:
            raise StoreNotFound(message, code=code, status=status)
        if status in (401, 403):
            raise StoreUnauthorized(message, code=code, status=status)
        raise StoreAPIError(message, code=code, status=status)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StoreAPIError(f"invalid JSON from store: {e}") from e

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
