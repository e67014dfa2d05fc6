"""JSON-over-HTTP record store client."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ..errors import RecordNotFoundError, StoreError
from ._base import DEFAULT_LIST_LIMIT, RecordStore


class BaseClient:
    """Lightweight HTTP client using stdlib only (no requests dependency)."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        token_env: str = "",
        auth_header: str = "Authorization",
        auth_prefix: str = "Bearer",
        timeout: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or os.getenv(token_env, "")
        self.timeout = timeout
        self._auth_header = auth_header
        self._auth_prefix = auth_prefix

    def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Execute an HTTP request and return parsed JSON."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{urlencode({k: v for k, v in params.items() if v is not None})}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req_headers = {"Content-Type": "application/json"}
        if self.api_key:
            req_headers[self._auth_header] = f"{self._auth_prefix} {self.api_key}"

        req = Request(url, data=data, headers=req_headers, method=method.upper())
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
                return json.loads(raw) if raw.strip() else {}
        except HTTPError as e:
            body_text = e.read().decode("utf-8", errors="replace")[:500]
            if e.code == 404:
                raise RecordNotFoundError(path.rsplit("/", 1)[-1]) from e
            raise StoreError(str(e), status=e.code, detail=body_text) from e
        except URLError as e:
            raise StoreError(f"Connection failed: {e.reason}") from e

    def check_configured(self, service_name: str) -> None:
        """Raise if API key is not set."""
        if not self.api_key:
            raise ValueError(
                f"{service_name} API key not configured. "
                f"Set PLOTRECON_API_KEY or pass api_key."
            )


class HttpRecordStore(BaseClient, RecordStore):
    """Record store reached at ``<base_url>/entities/<entity>``."""

    def __init__(
        self,
        base_url: str = "",
        entity: str = "Plot",
        api_key: str = "",
        timeout: int = 30,
    ):
        super().__init__(
            base_url=base_url or os.getenv("PLOTRECON_STORE_URL", ""),
            api_key=api_key,
            token_env="PLOTRECON_API_KEY",
            timeout=timeout,
        )
        if not self.base_url:
            raise ValueError("Store URL not configured. Set PLOTRECON_STORE_URL or pass base_url.")
        self.entity = entity

    @property
    def _path(self) -> str:
        return f"entities/{self.entity}"

    def list(
        self,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"limit": limit, "sort": sort}
        if filter:
            params["q"] = json.dumps(filter)
        result = self._request("GET", self._path, params=params)
        if isinstance(result, dict):
            result = result.get("items", [])
        if not isinstance(result, list):
            raise StoreError(f"Unexpected list payload for {self.entity}")
        return result

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self._path, body=fields)

    def update(self, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"{self._path}/{record_id}", body=fields)

    def delete(self, record_id: str) -> None:
        self._request("DELETE", f"{self._path}/{record_id}")
