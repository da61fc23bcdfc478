from __future__ import annotations

import logging
from typing import Any

import httpx

from medrent.application.exceptions import ExternalServiceError
from medrent.core.config import settings


class SupabaseClient:
    """Thin PostgREST client. Every failure surfaces as ExternalServiceError, never retried."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self._api_key = api_key or settings.SUPABASE_API_KEY
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("SUPABASE_URL is required for the hosted backend")
        if not self._api_key:
            raise ValueError("SUPABASE_API_KEY is required for the hosted backend")

        self._client = httpx.Client(
            base_url=f"{self._base_url}/rest/v1",
            timeout=timeout if timeout is not None else settings.BACKEND_TIMEOUT_SECONDS,
            headers={
                "apikey": self._api_key,
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    def select(self, operation: str, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        data = self._request(operation, "GET", f"/{table}", params=params)
        if not isinstance(data, list):
            raise ExternalServiceError(operation, "expected a list of rows")
        return data

    def upsert(self, operation: str, table: str, row: dict[str, Any], on_conflict: str) -> dict[str, Any]:
        data = self._request(
            operation,
            "POST",
            f"/{table}",
            params={"on_conflict": on_conflict},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        if isinstance(data, list) and data:
            return data[0]
        raise ExternalServiceError(operation, "upsert returned no row")

    def rpc(self, operation: str, function: str, payload: dict[str, Any]) -> Any:
        return self._request(operation, "POST", f"/rpc/{function}", json=payload)

    def close(self) -> None:
        self._client.close()

    def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            self._logger.error("Backend timeout", extra={"reason": f"{operation}: {e}"})
            raise ExternalServiceError(operation, "timed out") from e
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Backend error response",
                extra={"reason": f"{operation}: HTTP {e.response.status_code}"},
            )
            raise ExternalServiceError(operation, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            self._logger.error("Backend unreachable", extra={"reason": f"{operation}: {e}"})
            raise ExternalServiceError(operation, str(e)) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(operation, "invalid JSON in response") from e
