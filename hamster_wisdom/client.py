"""
Async client for the wisdom Quote Service.

Every call resolves to a :class:`ServiceResult` instead of raising, so callers
decide explicitly what a failure means for them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import DEFAULT_BASE_URL
from .models import Quote

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ENTRY_LIST = TypeAdapter(list[Any])


class CountResponse(BaseModel):
    """Payload of ``GET /wisdom/count``."""

    count: int


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of one Quote Service call: a value or the error that prevented it."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "ServiceResult[T]":
        return cls(error=error)


def _parse_archive(data: Any) -> list[Quote]:
    """
    Validate an archive payload entry by entry.

    A payload that is not a list fails as a whole; a single malformed entry is
    logged and skipped so the rest of the archive still shows.
    """
    quotes = []
    for index, entry in enumerate(_ENTRY_LIST.validate_python(data)):
        try:
            quotes.append(Quote.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed archive entry #%d: %s", index, e)
    return quotes

class QuoteServiceClient:
    """
    Thin wrapper around the four Quote Service endpoints.

    A non-2xx status, a transport error or a payload that does not match the
    expected shape all come back as a failed result.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=None)
        self._owns_http = http_client is None

    async def __aenter__(self) -> "QuoteServiceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # MARK: - Endpoints

    async def random_quote(self) -> ServiceResult[Quote]:
        """Fetch one random quote."""
        return await self._call("GET", "/wisdom/random", Quote.model_validate)

    async def count(self) -> ServiceResult[int]:
        """Fetch the number of quotes in the archive."""
        return await self._call(
            "GET", "/wisdom/count", lambda data: CountResponse.model_validate(data).count
        )

    async def all_quotes(self) -> ServiceResult[list[Quote]]:
        """Fetch the full archive in service order."""
        return await self._call("GET", "/wisdom/all", _parse_archive)

    async def submit(self, text: str, author: str) -> ServiceResult[None]:
        """Submit a new quote. The response body is ignored."""
        return await self._call(
            "POST", "/wisdom/submit", None, json={"wisdom": text, "author": author}
        )

    # MARK: - Private Helpers

    async def _call(
        self, method: str, path: str, parse: Any, **kwargs: Any
    ) -> ServiceResult[Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._http.request(method, url, **kwargs)
            response.raise_for_status()
            value = parse(response.json()) if parse is not None else None
        except httpx.HTTPError as e:
            logger.debug("%s %s failed: %s", method, url, e)
            return ServiceResult.failure(e)
        except ValueError as e:
            # JSON decoding and pydantic validation errors both land here
            logger.debug("%s %s returned an unexpected payload: %s", method, url, e)
            return ServiceResult.failure(e)
        return ServiceResult.success(value)
