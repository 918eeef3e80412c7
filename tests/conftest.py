import datetime as dt

import pytest

from ecura.agent.fake import FakeChatClient
from ecura.booking.adapters.fake import FakeNotifier
from ecura.booking.ids import SequentialIdGenerator
from ecura.booking.lifecycle import AppointmentLifecycle
from ecura.booking.seed import demo_store
from ecura.booking.service import ClinicService
from ecura.booking.store import ClinicStore
from ecura.config import SchedulingConfig
from ecura.domain.models import WeeklySchedule
from ecura.scheduling.schedule import default_weekly_schedule

# Monday, 08:00.  Demo appointments a1 (d1, 10:00 AM) and a2 (d3, 02:30 PM) fall on this day.
NOW = dt.datetime(2026, 3, 16, 8, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def now() -> dt.datetime:
    return NOW


@pytest.fixture
def schedule() -> WeeklySchedule:
    return default_weekly_schedule()


@pytest.fixture
def store() -> ClinicStore:
    return demo_store(NOW)


@pytest.fixture
def ids() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture
def lifecycle(store: ClinicStore, ids: SequentialIdGenerator) -> AppointmentLifecycle:
    return AppointmentLifecycle(store, ids, clock=lambda: NOW)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def service(
    store: ClinicStore, notifier: FakeNotifier, ids: SequentialIdGenerator
) -> ClinicService:
    return ClinicService(
        store,
        notifier,
        id_generator=ids,
        config=SchedulingConfig(),
        clock=lambda: NOW,
    )


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()
