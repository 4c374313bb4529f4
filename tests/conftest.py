"""
Shared fixtures: a container over a temporary SQLite database and a
frozen clock in the business timezone.
"""

from datetime import datetime, timezone

import httpx
import pytest

from carenow.core.config import Settings
from carenow.core.container import Container
from carenow.repositories.store_partner_job_repository import BOOKINGS_COLLECTION
from carenow.utils.clock import FrozenClock

PARTNER_ID = "partner-1"

# 10:00 in Ho Chi Minh City
NOW = datetime(2026, 3, 10, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'carenow.db'}",
        AUTO_CREATE_TABLES=True,
        AVAILABILITY_SWEEP_INTERVAL_SECONDS=0,
    )


@pytest.fixture
def clock(settings):
    return FrozenClock(NOW, settings.BUSINESS_TIMEZONE)


@pytest.fixture
async def container(settings, clock):
    container = Container(settings, clock)
    await container.start()
    yield container
    await container.dispose()


@pytest.fixture
def store(container):
    return container.store


@pytest.fixture
def repository(container):
    return container.repository


@pytest.fixture
def service(container):
    return container.job_service


@pytest.fixture
def profile_service(container):
    return container.profile_service


@pytest.fixture
def make_booking(store):
    """Create a booking document assigned to a partner"""
    async def _make_booking(
        booking_id: str,
        partner_id: str = PARTNER_ID,
        total_price: float = 400.0,
        scheduled_date: datetime = NOW,
        **extra
    ):
        data = {
            "userId": "client-1",
            "clientName": "Nguyen Van A",
            "clientPhone": "0912345678",
            "serviceId": "elder_care",
            "serviceName": "Elder care",
            "scheduledDate": scheduled_date,
            "timeSlot": "09:00-11:00",
            "hours": 2.0,
            "totalPrice": total_price,
            "clientAddress": "12 Le Loi, District 1",
            "status": "pending",
            "partnerId": partner_id,
            **extra,
        }
        await store.set(BOOKINGS_COLLECTION, booking_id, data)
        return data

    return _make_booking


@pytest.fixture
def make_job(service, make_booking):
    """Create a pending job from a fresh booking"""
    async def _make_job(booking_id: str, partner_id: str = PARTNER_ID, **booking_fields):
        await make_booking(booking_id, partner_id, **booking_fields)
        return await service.create_job_from_booking(booking_id)

    return _make_job


@pytest.fixture
async def client(container):
    from carenow.main import create_app

    app = create_app(container)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
