from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the Binlytics API."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def record_reading(
        self, bin_id: str, weight_kg: float, moisture_raw: float, waste_tag: str
    ) -> Dict[str, Any]:
        body = {
            "binId": bin_id,
            "weightKg": weight_kg,
            "moistureRaw": moisture_raw,
            "wasteTag": waste_tag,
        }
        return self._request("POST", "/api/waste", json=body)

    def recent(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/waste/recent")

    def daily(self, days: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/waste/daily", params=self._days(days))

    def bin_stats(self, days: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/bins/stats", params=self._days(days))

    def bin_score(self, bin_id: str, days: Optional[int] = None) -> Dict[str, Any]:
        path = f"/api/bins/score/{quote(bin_id, safe='')}"
        try:
            response = self._client.get(path, params=self._days(days))
            if response.status_code == 404:
                raise typer.BadParameter(f"No readings found for bin {bin_id}.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def top(self) -> Dict[str, Any]:
        return self._request("GET", "/api/admin/top")

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _days(days: Optional[int]) -> Dict[str, int]:
        return {} if days is None else {"days": days}

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
