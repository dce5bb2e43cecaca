from __future__ import annotations

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.facility import Facility

ADMIN_HEADERS = {"X-Admin-Token": TestConfig.ADMIN_API_TOKEN}

CUSTOMER = {"name": "A", "email": "a@x.com", "phone": "9999999999"}


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_facility(app):
    def _make(name: str = "G1", facility_type: str = "ground", price=500, is_available: bool = True) -> Facility:
        facility = Facility(name=name, facility_type=facility_type, price_per_hour=price, is_available=is_available)
        db.session.add(facility)
        db.session.commit()
        return facility

    return _make


@pytest.fixture
def ground(make_facility) -> Facility:
    return make_facility()
