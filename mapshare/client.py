"""HTTP client for a deployed mapshare API."""

from __future__ import annotations

from typing import Any

import httpx


class MapShareClient:
    """Thin client over the /api/state endpoints.

    Example:
        >>> with MapShareClient("https://your-app.vercel.app") as client:
        ...     state_id = client.save_state({"zoom": 15, "models": []})
        ...     client.get_state(state_id)
        {'zoom': 15, 'models': []}
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    def save_state(self, state: Any) -> str:
        """Save a state and return its id."""
        resp = self._http.post("/api/state", json={"state": state})
        resp.raise_for_status()
        return resp.json()["id"]

    def get_state(self, state_id: str) -> Any | None:
        """Return the saved state, or None when the id is unknown."""
        resp = self._http.get(f"/api/state/{state_id}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()["state"]

    def delete_state(self, state_id: str) -> bool:
        resp = self._http.delete(f"/api/state/{state_id}")
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return True

    def list_states(self, admin_token: str) -> list[dict]:
        resp = self._http.get("/api/state/list", headers={"X-Admin-Token": admin_token})
        resp.raise_for_status()
        return resp.json()["states"]

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MapShareClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
