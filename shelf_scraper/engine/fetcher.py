"""HTTP retrieval and decoding of one catalog listing page."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from ..config import SourceConfig
from ..exceptions import PageFetchError
from .normalizer import RawRow


class PageFetcher:
    """Fetch listing pages of a catalog source over a shared ``httpx.Client``."""

    def __init__(
        self,
        source: SourceConfig,
        client: httpx.Client | None = None,
        user_agent: str | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.source = source
        self.logger = logger or structlog.get_logger("shelf_scraper.fetcher")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            follow_redirects=True,
            timeout=source.timeout,
            headers={"User-Agent": user_agent} if user_agent else None,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def build_params(self, page: int, page_size: int) -> dict[str, str]:
        params = dict(self.source.query_params)
        params["page"] = str(page)
        params["page_size"] = str(page_size)
        return params

    def fetch(self, page: int, page_size: int) -> list[RawRow]:
        """Return the rows of ``page`` or raise :class:`PageFetchError`."""

        params = self.build_params(page, page_size)
        try:
            response = self._client.get(self.source.endpoint, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PageFetchError(page, f"unexpected status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise PageFetchError(page, f"transport error: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise PageFetchError(page, f"invalid JSON payload: {exc}") from exc
        rows = self.decode(page, payload)
        self.logger.debug("page_decoded", page=page, rows=len(rows))
        return rows

    @staticmethod
    def decode(page: int, payload: Any) -> list[RawRow]:
        """Extract ``hits.hits[]._source`` records from a listing payload."""

        try:
            hits = payload["hits"]["hits"]
        except (KeyError, TypeError) as exc:
            raise PageFetchError(page, "payload has no hits.hits list") from exc
        if hits is None:
            return []
        if not isinstance(hits, list):
            raise PageFetchError(page, "hits.hits is not a list")
        rows: list[RawRow] = []
        for index, hit in enumerate(hits):
            if not isinstance(hit, dict):
                raise PageFetchError(page, f"hit {index} is not an object")
            try:
                rows.append(RawRow.model_validate(hit.get("_source") or {}))
            except ValidationError as exc:
                raise PageFetchError(page, f"hit {index} has an invalid shape: {exc}") from exc
        return rows


__all__ = ["PageFetcher"]
