from datetime import date

import pytest

from app.core.errors import CapacityExceeded, DiscountInvalid, ValidationError
from app.db.session import SessionLocal
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.tour import Tour
from app.services.availability import bookable_slots
from app.services.wizard import BookingWizard

from helpers import seed_discount, seed_slot, seed_tour

TODAY = date(2099, 1, 15)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def make_wizard(db, tour_id):
    return BookingWizard(db.get(Tour, tour_id), bookable_slots(db, tour_id))


def fill_contact(wizard):
    wizard.set_contact("Ana", "Silva", "ana@example.com", "+351900000000")


def test_steps_are_gated(db):
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id)
    wizard = make_wizard(db, tour_id)
    assert wizard.step == "date_time"
    with pytest.raises(ValidationError):
        wizard.next()
    wizard.select_slot(slot_id)
    assert wizard.next() == "participants"
    wizard.set_participants(2)
    with pytest.raises(ValidationError):
        wizard.next()  # contact missing
    fill_contact(wizard)
    assert wizard.next() == "review"
    assert wizard.back() == "participants"
    assert wizard.participants == 2


def test_unknown_slot_rejected(db):
    tour_id = seed_tour()
    wizard = make_wizard(db, tour_id)
    with pytest.raises(ValidationError):
        wizard.select_slot(12345)


def test_changing_slot_revalidates_participants(db):
    tour_id = seed_tour()
    big = seed_slot(tour_id, "2099-03-10", "10:00", max_spots=8)
    small = seed_slot(tour_id, "2099-03-11", "10:00", max_spots=2)
    wizard = make_wizard(db, tour_id)
    wizard.select_slot(big)
    wizard.next()
    wizard.set_participants(5)
    fill_contact(wizard)
    wizard.next()
    assert wizard.step == "review"

    wizard.select_slot(small)
    assert wizard.participants is None
    assert wizard.step == "participants"
    with pytest.raises(ValidationError):
        wizard.set_participants(3)
    wizard.set_participants(2)
    assert wizard.contact is not None


def test_invalid_code_blocks_submit_until_removed(db):
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id)
    seed_discount("WELCOME10", "percentage", 10)
    wizard = make_wizard(db, tour_id)
    wizard.select_slot(slot_id)
    wizard.next()
    wizard.set_participants(1)
    fill_contact(wizard)
    wizard.next()

    with pytest.raises(DiscountInvalid):
        wizard.apply_discount(db, "BOGUS", TODAY)
    with pytest.raises(DiscountInvalid):
        wizard.submit(db, TODAY)
    assert db.query(Booking).count() == 0

    wizard.remove_discount()
    price = wizard.apply_discount(db, "welcome10", TODAY)
    assert price.total_amount == 1800
    result = wizard.submit(db, TODAY)
    assert wizard.step == "confirmation"
    assert result.booking.total_amount == 1800
    assert result.booking.booking_reference.startswith("LT-")
    with pytest.raises(ValidationError):
        wizard.back()


def test_capacity_lost_sends_back_to_date_step(db):
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id, max_spots=3)
    wizard = make_wizard(db, tour_id)
    wizard.select_slot(slot_id)
    wizard.next()
    wizard.set_participants(3)
    fill_contact(wizard)
    wizard.next()

    # someone else takes the spots meanwhile
    other = SessionLocal()
    slot = other.get(Availability, slot_id)
    slot.spots_left = 1
    other.commit()
    other.close()
    db.expire_all()

    with pytest.raises(CapacityExceeded):
        wizard.submit(db, TODAY)
    assert wizard.step == "date_time"
    assert wizard.slot is None
