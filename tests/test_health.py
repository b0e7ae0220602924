# tests/test_health.py
from typing import Any


def test_health_check(client: Any) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root_describes_service(client: Any) -> None:
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "SecureChat"


def test_system_info(client: Any) -> None:
    r = client.get("/api/v1/system/info")
    assert r.status_code == 200
    assert r.json()["messagePageMax"] == 100


def test_reaper_disabled_under_tests(client: Any, app: Any) -> None:
    assert app.state.expiry_reaper is None
