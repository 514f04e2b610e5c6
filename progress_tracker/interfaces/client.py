import httpx

from ..application.ports import IFocusStore
from ..domain.errors import ProgressError, StoreUnavailable, Unauthenticated


class ProgressApiClient(IFocusStore):
    """Talks to the progress HTTP API on behalf of one signed-in user."""

    def __init__(self, base_url: str, token: str, timeout: float = 5.0, transport: httpx.BaseTransport = None):
        self.http = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _send(self, method: str, path: str, **kwargs) -> dict:
        try:
            resp = self.http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise StoreUnavailable(f"progress API unreachable: {e}") from e
        if resp.status_code == 401:
            raise Unauthenticated("token rejected by progress API")
        if resp.status_code >= 500:
            raise StoreUnavailable(f"progress API returned {resp.status_code}")
        if resp.status_code >= 400:
            raise ProgressError(resp.text, status_code=resp.status_code)
        return resp.json()

    def read_focus(self) -> int:
        return self._send("GET", "/api/progress/focus")["stored_value"]

    def flush_focus(self, accumulated_seconds: int) -> int:
        body = {"accumulated_seconds": accumulated_seconds}
        return self._send("POST", "/api/progress/focus/flush", json=body)["stored_value"]

    def advance(self, catalog_name: str) -> dict:
        return self._send("POST", f"/api/progress/catalogs/{catalog_name}/advance")

    def record_activity(self) -> dict:
        return self._send("POST", "/api/progress/streak/activity", json={})

    def leaderboard(self, limit: int = 50, offset: int = 0) -> list[dict]:
        return self._send("GET", "/api/leaderboard", params={"limit": limit, "offset": offset})
