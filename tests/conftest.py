"""Pytest configuration: in-memory database, fake geocoder and API client."""

import os
from datetime import date
from typing import Optional

# Must be set before fieldroute.config / fieldroute.cache are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fieldroute import models, models_visit  # noqa: F401
from fieldroute.cache import Cache
from fieldroute.database import Base, get_db
from fieldroute.domain.scheduling.schemas import ScheduleRuleCreate
from fieldroute.domain.scheduling.service import ScheduleRuleService
from fieldroute.main import app
from fieldroute.models import Customer
from fieldroute.services.geocoding_service import Geocoder, GoogleGeocoder, get_geocoder
from fieldroute.shared.exceptions import UpstreamUnavailableError
from fieldroute.utils.geo import Coordinates

# Monday
TODAY = date(2026, 10, 19)


class FakeGeocoder(Geocoder):
    """Address lookups from a dict; raises when marked unavailable"""

    def __init__(self, addresses: Optional[dict] = None, unavailable: bool = False):
        self.addresses = addresses or {}
        self.unavailable = unavailable
        self.calls = []

    async def geocode(self, address: str) -> Optional[Coordinates]:
        self.calls.append(address)
        if self.unavailable:
            raise UpstreamUnavailableError("Geocoding provider timed out")
        return self.addresses.get(address)


def garbled_geocoder(body: str = "<html>gateway</html>") -> GoogleGeocoder:
    """Google geocoder whose provider answers 200 with an unparseable body"""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=body))
    return GoogleGeocoder(
        api_key="test-key",
        client=httpx.AsyncClient(transport=transport),
        result_cache=Cache(enabled=False),
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_customer(db):
    def _make(name="Customer", lat=None, lng=None, address=None, status="active"):
        customer = Customer(name=name, address=address, lat=lat, lng=lng, status=status)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


@pytest.fixture
def make_rule(db):
    """Create a rule through the service, generating visits as of TODAY"""

    def _make(customer, by_day, frequency="weekly", dt_start=TODAY, today=TODAY, **extra):
        data = ScheduleRuleCreate(
            customerId=customer.id,
            frequency=frequency,
            byDay=by_day,
            dtStart=dt_start,
            windowStart=extra.pop("windowStart", "08:00"),
            windowEnd=extra.pop("windowEnd", "12:00"),
            **extra,
        )
        rule, _ = ScheduleRuleService(db).create_rule(data, today=today)
        return rule

    return _make


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def client(db, geocoder):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
