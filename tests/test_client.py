import json

import httpx
import pytest

from progress_tracker.application.focus_session import FocusSession
from progress_tracker.domain.errors import ProgressError, StoreUnavailable, Unauthenticated
from progress_tracker.interfaces.client import ProgressApiClient


def api(handler):
    return ProgressApiClient("http://progress.test", token="t0ken", transport=httpx.MockTransport(handler))


def test_focus_round_trip_against_api():
    stored = {"value": 40}

    def handler(request: httpx.Request):
        assert request.headers["Authorization"] == "Bearer t0ken"
        if request.method == "GET" and request.url.path == "/api/progress/focus":
            return httpx.Response(200, json={"stored_value": stored["value"]})
        if request.method == "POST" and request.url.path == "/api/progress/focus/flush":
            submitted = json.loads(request.content)["accumulated_seconds"]
            stored["value"] = max(stored["value"], submitted)
            return httpx.Response(200, json={"stored_value": stored["value"]})
        return httpx.Response(404)

    with api(handler) as client:
        session = FocusSession(client, flush_every=5)
        assert session.start() == 40
        for _ in range(5):
            session.tick()
        assert stored["value"] == 45


def test_unauthorized_maps_to_unauthenticated():
    with api(lambda request: httpx.Response(401, json={"detail": "Invalid token"})) as client:
        with pytest.raises(Unauthenticated):
            client.read_focus()


def test_server_errors_map_to_store_unavailable():
    with api(lambda request: httpx.Response(503, json={"error": "store_unavailable"})) as client:
        with pytest.raises(StoreUnavailable):
            client.flush_focus(10)


def test_transport_errors_map_to_store_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with api(handler) as client:
        with pytest.raises(StoreUnavailable):
            client.read_focus()


def test_client_errors_keep_status():
    with api(lambda request: httpx.Response(404, json={"error": "not_found"})) as client:
        with pytest.raises(ProgressError) as exc:
            client.advance("nothing")
    assert exc.value.status_code == 404


def test_session_survives_api_outage():
    calls = {"flush": 0}

    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json={"stored_value": 0})
        calls["flush"] += 1
        if calls["flush"] == 1:
            return httpx.Response(502)
        return httpx.Response(200, json={"stored_value": json.loads(request.content)["accumulated_seconds"]})

    with api(handler) as client:
        session = FocusSession(client, flush_every=2)
        session.start()
        for _ in range(4):
            session.tick()
    # тик 2 падает, тик 3 повторяет, тик 4 по расписанию
    assert calls["flush"] == 3
    assert session.last_known_stored_value == 4
