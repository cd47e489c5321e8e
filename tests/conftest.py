"""Shared fixtures — a fake realtime backend and a manager wired to it.

Learn: Nothing here touches the network. The ConnectionManager gets a
FakeBackend and a recording sleep, so reconnect backoff runs instantly
and the delays it asked for can be asserted exactly.
"""

import pytest
import pytest_asyncio

from housesync.realtime.manager import ConnectionManager
from tests.fakes import FakeBackend, FakeDataService, RecordingNotifier, RecordingSleep


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def sleep():
    return RecordingSleep()


@pytest_asyncio.fixture()
async def manager(backend, sleep):
    mgr = ConnectionManager(backend, sleep=sleep)
    yield mgr
    await mgr.close()


@pytest_asyncio.fixture()
async def demo_manager(backend):
    mgr = ConnectionManager(backend, is_demo_mode_active=lambda: True)
    yield mgr
    await mgr.close()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def data():
    return FakeDataService()
