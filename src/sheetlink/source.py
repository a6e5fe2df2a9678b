"""Sheet sources: where raw CSV text comes from."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import httpx

from sheetlink.errors import SheetFetchError, SheetNotFoundError

DEFAULT_BASE_URL = "https://raw.githubusercontent.com"
DEFAULT_REPO_ID = "xivapi/ffxiv-datamining"
DEFAULT_BRANCH = "master"


class SheetSource(Protocol):
    """Anything that can return the raw CSV text of a named sheet."""

    async def fetch(self, sheet_name: str) -> str:
        """Return the CSV text for *sheet_name*.

        Raises:
            SheetNotFoundError: If the sheet does not exist.
            SheetFetchError: For any other failure.
        """
        ...


class GitHubSheetSource:
    """Fetches ``{base}/{repo_id}/{branch}/csv/{sheet}.csv`` over HTTP.

    No retries are attempted; failures surface as :class:`SheetFetchError`.
    A client is created per fetch unless one is passed in, so a source can
    be shared across event loops.
    """

    def __init__(
        self,
        repo_id: str = DEFAULT_REPO_ID,
        branch: str = DEFAULT_BRANCH,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.repo_id = repo_id
        self.branch = branch
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._transport = transport
        self._client = client

    def url_for(self, sheet_name: str) -> str:
        return f"{self.base_url}/{self.repo_id}/{self.branch}/csv/{sheet_name}.csv"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "text/csv, text/plain, */*"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def fetch(self, sheet_name: str) -> str:
        url = self.url_for(sheet_name)
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=self._headers())
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    transport=self._transport,
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise SheetFetchError(sheet_name, f"Failed to fetch sheet {sheet_name!r}: {exc}", url=url) from exc

        if response.status_code == 404:
            raise SheetNotFoundError(sheet_name, status_code=404, url=url)
        if not response.is_success:
            raise SheetFetchError(sheet_name, status_code=response.status_code, url=url)
        return response.text

    async def aclose(self) -> None:
        """Close the client passed in at construction, if any."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def describe(self) -> dict[str, Any]:
        return {
            "kind": "github",
            "repo_id": self.repo_id,
            "branch": self.branch,
            "base_url": self.base_url,
        }


class MemorySheetSource:
    """Serves sheets from an in-memory mapping of name to CSV text.

    Counts fetches per sheet in ``fetch_counts``.
    """

    def __init__(self, sheets: Mapping[str, str] | None = None) -> None:
        self.sheets: dict[str, str] = dict(sheets or {})
        self.fetch_counts: dict[str, int] = {}

    def add(self, sheet_name: str, text: str) -> None:
        self.sheets[sheet_name] = text

    async def fetch(self, sheet_name: str) -> str:
        self.fetch_counts[sheet_name] = self.fetch_counts.get(sheet_name, 0) + 1
        try:
            return self.sheets[sheet_name]
        except KeyError:
            raise SheetNotFoundError(sheet_name) from None

    def describe(self) -> dict[str, Any]:
        return {"kind": "memory", "sheets": sorted(self.sheets)}
