from __future__ import annotations

import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from conftest import CUSTOMER
from models import db
from models.audit_log import AuditLog
from models.booking import Booking, ACTIVE_STATUSES
from models.facility import Facility
from services import bookings as svc
from services.availability import available_slots
from services.errors import (
    BookingNotFoundError, ConflictError, FacilityUnavailableError,
    InvalidSlotError, InvalidTransitionError, ValidationError,
)
from services.slot_catalog import Slot, all_slots

DAY = date(2025, 6, 1)


def _book(facility, start="09:00", end="10:00", day=DAY, customer=None, price=500):
    return svc.create_booking(facility.id, day, start, end, customer or CUSTOMER, price=price)


def _active_count(facility_id, day=DAY, start="09:00", end="10:00") -> int:
    return Booking.query.filter(
        Booking.facility_id == facility_id,
        Booking.booking_date == day,
        Booking.start_time == start,
        Booking.end_time == end,
        Booking.status.in_(ACTIVE_STATUSES),
    ).count()


def test_basic_success_scenario(ground) -> None:
    assert len(available_slots(ground.id, DAY)) == 15

    booking = _book(ground)

    assert booking.id is not None
    assert booking.status == "PENDING"
    assert booking.price == Decimal("500.00")
    assert booking.customer_email == "a@x.com"
    assert booking.facility_type == "ground"

    free = available_slots(ground.id, DAY)
    assert len(free) == 14
    assert Slot("09:00", "10:00") not in free


def test_second_caller_gets_conflict(ground) -> None:
    _book(ground)
    with pytest.raises(ConflictError):
        _book(ground, customer={"name": "B", "email": "b@x.com", "phone": "8888888888"})

    assert _active_count(ground.id) == 1
    assert AuditLog.query.filter_by(action="BOOKING_FAIL_CONFLICT").count() == 1


def test_race_is_settled_by_unique_hold(ground, monkeypatch) -> None:
    # Both callers pass the read check before either commits.
    monkeypatch.setattr(svc, "booked_slots", lambda facility_id, day: set())

    _book(ground)
    with pytest.raises(ConflictError):
        _book(ground, customer={"name": "B", "email": "b@x.com", "phone": "8888888888"})

    assert _active_count(ground.id) == 1
    assert Booking.query.count() == 1


def test_concurrent_callers_get_one_booking(tmp_path) -> None:
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'race.db'}"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
        facility = Facility(name="G1", facility_type="ground", price_per_hour=500, is_available=True)
        db.session.add(facility)
        db.session.commit()
        facility_id = facility.id

    workers = 8
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def attempt(n: int) -> None:
        customer = {"name": f"C{n}", "email": f"c{n}@x.com", "phone": "9999999999"}
        with app.app_context():
            barrier.wait()
            try:
                svc.create_booking(facility_id, DAY, "09:00", "10:00", customer)
                outcome = "booked"
            except ConflictError:
                outcome = "conflict"
            finally:
                db.session.remove()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(results) == ["booked"] + ["conflict"] * (workers - 1)
    with app.app_context():
        assert _active_count(facility_id) == 1
        db.drop_all()
        db.engine.dispose()


def test_same_slot_on_other_facility_or_day_is_independent(ground, make_facility) -> None:
    other = make_facility(name="N1", facility_type="net", price=200)
    _book(ground)
    _book(other)
    _book(ground, day=date(2025, 6, 2))
    assert Booking.query.count() == 3


def test_off_catalog_slot_rejected(ground) -> None:
    with pytest.raises(InvalidSlotError):
        _book(ground, "09:15", "10:15")
    assert Booking.query.count() == 0


def test_unknown_or_disabled_facility(make_facility) -> None:
    closed = make_facility(name="Closed", is_available=False)
    assert available_slots(closed.id, DAY) == []
    assert available_slots(9999, DAY) == []

    with pytest.raises(FacilityUnavailableError):
        _book(closed)
    with pytest.raises(FacilityUnavailableError):
        svc.create_booking(9999, DAY, "09:00", "10:00", CUSTOMER)


@pytest.mark.parametrize(
    "customer, field",
    [
        ({"name": " ", "email": "a@x.com", "phone": "9999999999"}, "customer_name"),
        ({"name": "A", "email": "not-an-email", "phone": "9999999999"}, "customer_email"),
        ({"name": "A", "email": "a@x.com", "phone": "12"}, "customer_phone"),
        ({"name": "A", "email": "a@x.com", "phone": "call me"}, "customer_phone"),
    ],
)
def test_bad_customer_details_write_nothing(ground, customer, field) -> None:
    with pytest.raises(ValidationError) as exc:
        _book(ground, customer=customer)
    assert field in exc.value.fields
    assert Booking.query.count() == 0


def test_default_price_comes_from_facility(make_facility) -> None:
    net = make_facility(name="N1", facility_type="net", price=Decimal("350.50"))
    booking = _book(net, price=None)
    assert booking.price == Decimal("350.50")


def test_negative_price_rejected(ground) -> None:
    with pytest.raises(ValidationError):
        _book(ground, price=-1)


def test_started_slot_rejected_when_enabled(app, ground) -> None:
    app.config["BOOKING_REJECT_STARTED_SLOTS"] = True
    with pytest.raises(ValidationError):
        _book(ground, day=date(2020, 1, 1))


def test_availability_matches_active_bookings(ground) -> None:
    kept = _book(ground, "06:00", "07:00")
    confirmed = _book(ground, "07:00", "08:00")
    svc.confirm_booking(confirmed.id)
    cancelled = _book(ground, "08:00", "09:00")
    svc.cancel_booking(cancelled.id, actor="ADMIN")
    failed = _book(ground, "10:00", "11:00")
    svc.fail_booking(failed.id)

    free = available_slots(ground.id, DAY)
    taken = {Slot(kept.start_time, kept.end_time), Slot("07:00", "08:00")}
    assert free == [s for s in all_slots("ground") if s not in taken]


def test_cancelled_slot_can_be_booked_again(ground) -> None:
    first = _book(ground)
    svc.cancel_booking(first.id, reason="rain", customer_email="A@X.com", now=datetime(2025, 5, 31, 9, 0))
    assert first.status == "CANCELLED"
    assert first.slot_hold is None
    assert first.cancel_reason == "rain"

    again = _book(ground, customer={"name": "B", "email": "b@x.com", "phone": "8888888888"})
    assert again.status == "PENDING"


def test_customer_cancel_rules(app, ground) -> None:
    booking = _book(ground)

    with pytest.raises(BookingNotFoundError):
        svc.cancel_booking(booking.id, customer_email="someone@else.com", now=datetime(2025, 5, 31))

    with pytest.raises(InvalidTransitionError):
        svc.cancel_booking(booking.id, customer_email="a@x.com", now=datetime(2025, 6, 1, 9, 30))

    app.config["CANCEL_CUTOFF_HOURS"] = 12
    with pytest.raises(InvalidTransitionError):
        svc.cancel_booking(booking.id, customer_email="a@x.com", now=datetime(2025, 5, 31, 22, 0))

    svc.cancel_booking(booking.id, customer_email="a@x.com", now=datetime(2025, 5, 31, 20, 0))
    assert booking.status == "CANCELLED"


def test_confirmation_is_idempotent(ground) -> None:
    booking = _book(ground)

    svc.confirm_booking(booking.id, payment_ref="pi_1")
    svc.confirm_booking(booking.id, payment_ref="pi_2")

    assert booking.status == "CONFIRMED"
    assert booking.payment_ref == "pi_1"
    assert Booking.query.count() == 1
    assert AuditLog.query.filter_by(action="BOOKING_CONFIRM").count() == 1


def test_terminal_states_do_not_reopen(ground) -> None:
    booking = _book(ground)
    svc.cancel_booking(booking.id, actor="ADMIN")

    with pytest.raises(InvalidTransitionError):
        svc.confirm_booking(booking.id)
    with pytest.raises(InvalidTransitionError):
        svc.cancel_booking(booking.id, actor="ADMIN")


def test_failed_payment_then_refund(ground) -> None:
    booking = _book(ground)
    svc.confirm_booking(booking.id)
    svc.fail_booking(booking.id, reason="chargeback")
    svc.fail_booking(booking.id)

    assert booking.status == "FAILED"
    assert booking.slot_hold is None
    assert Slot("09:00", "10:00") in available_slots(ground.id, DAY)

    with pytest.raises(ValidationError):
        svc.refund_booking(booking.id, amount=501)

    svc.refund_booking(booking.id, amount=250)
    assert booking.status == "REFUNDED"
    assert booking.refund_amount == Decimal("250.00")

    with pytest.raises(InvalidTransitionError):
        svc.refund_booking(booking.id)


def test_refund_requires_failed_booking(ground) -> None:
    booking = _book(ground)
    with pytest.raises(InvalidTransitionError):
        svc.refund_booking(booking.id)


def test_complete_elapsed_bookings(ground) -> None:
    early = _book(ground, "09:00", "10:00")
    later = _book(ground, "10:00", "11:00")
    pending = _book(ground, "06:00", "07:00")
    svc.confirm_booking(early.id)
    svc.confirm_booking(later.id)

    assert svc.complete_elapsed_bookings(now=datetime(2025, 6, 1, 10, 30)) == 1

    assert early.status == "COMPLETED"
    assert early.slot_hold is None
    assert later.status == "CONFIRMED"
    assert pending.status == "PENDING"


def test_admin_update_moves_booking_and_hold(ground) -> None:
    booking = _book(ground)

    svc.update_booking(booking.id, {"slot": "11:00 AM - 12:00 PM", "customer_name": "Alex"})

    assert (booking.start_time, booking.end_time) == ("11:00", "12:00")
    assert booking.customer_name == "Alex"
    assert booking.slot_hold == booking.hold_key
    free = available_slots(ground.id, DAY)
    assert Slot("09:00", "10:00") in free
    assert Slot("11:00", "12:00") not in free


def test_admin_update_can_double_book(ground) -> None:
    first = _book(ground)
    second = _book(ground, "10:00", "11:00", customer={"name": "B", "email": "b@x.com", "phone": "8888888888"})

    svc.update_booking(second.id, {"start_time": "09:00", "end_time": "10:00"})

    assert second.status == "PENDING"
    assert second.slot_hold is None
    assert first.slot_hold == first.hold_key
    assert _active_count(ground.id) == 2

    # the customer path still treats the slot as taken
    with pytest.raises(ConflictError):
        _book(ground, customer={"name": "C", "email": "c@x.com", "phone": "7777777777"})


def test_admin_update_sets_any_status(ground) -> None:
    booking = _book(ground)
    svc.cancel_booking(booking.id, actor="ADMIN")

    svc.update_booking(booking.id, {"status": "confirmed"})

    assert booking.status == "CONFIRMED"
    assert booking.slot_hold == booking.hold_key


def test_admin_update_still_validates_input(ground) -> None:
    booking = _book(ground)
    with pytest.raises(InvalidSlotError):
        svc.update_booking(booking.id, {"start_time": "09:30", "end_time": "10:30"})
    with pytest.raises(ValidationError):
        svc.update_booking(booking.id, {"status": "LOST"})
    with pytest.raises(ValidationError):
        svc.update_booking(booking.id, {"status": 3})
    with pytest.raises(ValidationError):
        svc.update_booking(booking.id, {"facility_id": 3})
    with pytest.raises(ValidationError):
        svc.update_booking(booking.id, {"customer_email": "nope"})


def test_admin_delete(ground) -> None:
    booking = _book(ground)
    svc.delete_booking(booking.id)

    assert db.session.get(Booking, booking.id) is None
    assert len(available_slots(ground.id, DAY)) == 15
    with pytest.raises(BookingNotFoundError):
        svc.delete_booking(booking.id)


def test_list_bookings_filters(ground, make_facility) -> None:
    net = make_facility(name="N1", facility_type="net")
    _book(ground)
    _book(net, customer={"name": "B", "email": "b@x.com", "phone": "8888888888"})

    assert len(svc.list_bookings()) == 2
    assert [b.facility_id for b in svc.list_bookings(facility_id=net.id)] == [net.id]
    assert [b.customer_email for b in svc.list_bookings(customer_email="B@x.com")] == ["b@x.com"]
    assert svc.list_bookings(status="confirmed") == []
