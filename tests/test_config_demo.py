"""Settings, demo-mode resolution and the demo dataset."""

import pytest
from pydantic import ValidationError

from housesync.config import Settings
from housesync.data.demo import DemoDataService
from housesync.demo_mode import is_demo_mode_active

CONFIGURED = {"backend_url": "https://demo-project.example.co", "backend_anon_key": "anon"}


# ─── Settings ───────────────────────────────────────────


def test_defaults():
    s = Settings()
    assert s.reconnect_initial_delay_ms == 1000
    assert s.reconnect_max_delay_ms == 30000
    assert (s.chore_highlight_ms, s.house_animation_ms, s.wellness_highlight_ms) == (2000, 1500, 3000)
    assert s.wellness_limit == 20


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("HOUSESYNC_WELLNESS_LIMIT", "5")
    monkeypatch.setenv("HOUSESYNC_DEMO_USER", "coach")
    s = Settings()
    assert s.wellness_limit == 5
    assert s.demo_user == "coach"


@pytest.mark.parametrize(
    "url,key,expected",
    [
        ("https://demo-project.example.co", "anon", True),
        ("http://localhost:54321", "anon", True),
        ("", "anon", False),
        ("https://demo-project.example.co", "", False),
        ("https://placeholder.example.co", "anon", False),
        ("ftp://demo-project.example.co", "anon", False),
    ],
)
def test_backend_configured(url, key, expected):
    assert Settings(backend_url=url, backend_anon_key=key).backend_configured is expected


def test_reconnect_window_is_validated():
    with pytest.raises(ValidationError):
        Settings(reconnect_initial_delay_ms=5000, reconnect_max_delay_ms=1000)
    with pytest.raises(ValidationError):
        Settings(reconnect_initial_delay_ms=0)


# ─── Demo mode ──────────────────────────────────────────


def test_unconfigured_backend_is_demo():
    assert is_demo_mode_active(Settings(backend_url="")) is True


def test_configured_and_healthy_is_live():
    assert is_demo_mode_active(Settings(**CONFIGURED), connection_healthy=True) is False
    assert is_demo_mode_active(Settings(**CONFIGURED)) is False


def test_demo_login_forces_demo():
    assert is_demo_mode_active(Settings(**CONFIGURED, demo_user="staff"), True) is True
    assert is_demo_mode_active(Settings(**CONFIGURED, demo_user="   "), True) is False


def test_failed_health_check_is_demo():
    assert is_demo_mode_active(Settings(**CONFIGURED), connection_healthy=False) is True


# ─── Demo data ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_demo_houses_are_ranked():
    houses = await DemoDataService().get_houses()
    points = [h["total_points"] for h in houses]
    assert points == sorted(points, reverse=True)


@pytest.mark.asyncio
async def test_demo_player_events_respect_attendance():
    service = DemoDataService()
    assert [e["id"] for e in await service.get_player_events("p1")] == ["e1", "e2"]
    assert [e["id"] for e in await service.get_player_events("p2")] == ["e1", "e2", "e3"]


@pytest.mark.asyncio
async def test_demo_rows_are_copies():
    service = DemoDataService()
    chores = await service.get_chores()
    chores[0]["title"] = "changed"
    assert (await service.get_chores())[0]["title"] == "Clean kitchen"


@pytest.mark.asyncio
async def test_demo_wellness_per_player():
    logs = await DemoDataService().get_wellness_logs("p2", limit=5)
    assert [log["id"] for log in logs] == ["w2"]
    assert await DemoDataService().check_connection() is True
