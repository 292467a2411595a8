from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


class SupabaseAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class SupabaseClient:
    """Minimal PostgREST client for the Supabase project behind the dashboard.

    Stored procedures are called through ``/rest/v1/rpc/<name>``; plain table
    reads go through ``/rest/v1/<table>`` with PostgREST filter params.
    """

    def __init__(
        self,
        *,
        url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not url:
            msg = "url must be provided"
            raise ValueError(msg)
        if not api_key:
            msg = "api_key must be provided"
            raise ValueError(msg)

        self.base_url = url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token or api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        if not function:
            msg = "function must be provided"
            raise ValueError(msg)
        return self._request("POST", f"/rest/v1/rpc/{function}", json_body=params or {})

    def rpc_single(self, function: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """Call a procedure returning one row; set-returning procedures yield their first row."""
        data = self.rpc(function, params)
        if isinstance(data, list):
            return data[0] if data else None
        if data is None or isinstance(data, dict):
            return data
        raise SupabaseAPIError(f"Supabase rpc {function} returned unexpected payload type", payload=data)

    def rpc_rows(self, function: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        data = self.rpc(function, params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise SupabaseAPIError(f"Supabase rpc {function} did not return rows", payload=data)
        return data

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: list[tuple[str, str]] | None = None,
    ) -> list[dict[str, Any]]:
        if not table:
            msg = "table must be provided"
            raise ValueError(msg)
        params: list[tuple[str, str]] = [("select", columns)]
        params.extend(filters or [])
        data = self._request("GET", f"/rest/v1/{table}", params=params)
        if not isinstance(data, list):
            raise SupabaseAPIError(f"Supabase select on {table} did not return rows", payload=data)
        return data

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("Supabase request %s %s", method, path)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                timeout=self.timeout,
                headers=self._headers(),
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            error_payload: Any | None = None
            message = "Supabase request failed"
            if resp is not None:
                try:
                    error_payload = resp.json()
                    if isinstance(error_payload, dict) and error_payload.get("message"):
                        message = error_payload["message"]
                except ValueError:
                    error_payload = resp.text
            raise SupabaseAPIError(message, status_code=status_code, payload=error_payload) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise SupabaseAPIError("Supabase request failed", status_code=status_code) from exc

        # Void procedures answer 204 without a body.
        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise SupabaseAPIError("Supabase returned invalid JSON", payload=response.text) from exc


__all__ = ["SupabaseAPIError", "SupabaseClient"]
