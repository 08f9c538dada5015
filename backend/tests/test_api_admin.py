from fastapi.testclient import TestClient

import pytest

from app.core.config import settings
from app.main import app
from app.services.notifier import get_notifier

from helpers import (
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    RecordingNotifier,
    booking_payload,
    ensure_admin,
    seed_discount,
    seed_slot,
    seed_tour,
    text,
)


@pytest.fixture
def notifier():
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def client():
    return TestClient(app)


def login(client: TestClient) -> dict:
    ensure_admin()
    r = client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    r = client.get("/api/csrf-token")
    assert r.status_code == 200
    return {settings.csrf_header_name: r.json()["csrf_token"]}


def test_login_rejects_bad_credentials(client):
    ensure_admin()
    r = client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": "wrong"})
    assert r.status_code == 401
    ensure_admin("guide", "Guide1234!", is_admin=False)
    r = client.post("/api/admin/login", json={"username": "guide", "password": "Guide1234!"})
    assert r.status_code == 403


def test_admin_endpoints_need_session_and_csrf(client):
    assert client.get("/api/admin/requests").status_code == 401
    assert client.get("/api/csrf-token").status_code == 401
    # a forged cookie is not a session
    assert client.get("/api/admin/me", headers={"Cookie": f"{settings.session_cookie_name}=forged"}).status_code == 401

    headers = login(client)
    assert client.get("/api/admin/me").json()["username"] == ADMIN_USERNAME
    body = {"date": "2099-07-01"}
    assert client.post("/api/closed-days", json=body).status_code == 403
    assert client.post("/api/closed-days", json=body, headers={settings.csrf_header_name: "garbage"}).status_code == 403
    r = client.post("/api/closed-days", json=body, headers=headers)
    assert r.status_code == 201
    assert r.json()["reason"] == "Manually closed"


def test_csrf_token_is_bound_to_session():
    first, second = TestClient(app), TestClient(app)
    login(first)
    other_headers = login(second)
    r = first.post("/api/closed-days", json={"date": "2099-07-02"}, headers=other_headers)
    assert r.status_code == 403


def test_logout_ends_session(client):
    headers = login(client)
    assert client.post("/api/admin/logout").status_code == 200
    assert client.get("/api/admin/requests", headers=headers).status_code == 401


def test_request_lifecycle_endpoints(client, notifier):
    headers = login(client)
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id, max_spots=5)
    booking = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 2)).json()
    booking_id = booking["id"]

    r = client.get("/api/admin/requests", params={"status": "requested"})
    assert r.status_code == 200
    assert r.json()["total"] == 1
    assert r.json()["items"][0]["booking_reference"] == booking["booking_reference"]

    confirm = {"confirmed_date": "2099-03-10", "confirmed_time": "10:30", "confirmed_meeting_point": "Miradouro de Santa Luzia"}
    r = client.post(f"/api/admin/requests/{booking_id}/confirm", json=confirm, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["booking_status"] == "confirmed"
    assert r.json()["status_label"] == "confirmed"

    r = client.post(f"/api/admin/payments/{booking_id}/paid", headers=headers)
    assert r.json()["payment_status"] == "paid"
    assert r.json()["status_label"] == "confirmed / paid"

    r = client.post(f"/api/admin/refund/{booking_id}", json={"reason": "Storm"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["payment_status"] == "refunded"
    r = client.post(f"/api/admin/refund/{booking_id}", json={"reason": "Storm"}, headers=headers)
    assert r.status_code == 409
    assert r.json()["error"] == "state_conflict"

    r = client.post(f"/api/admin/requests/{booking_id}/cancel", json={"admin_notes": "weather"}, headers=headers)
    assert r.json()["booking_status"] == "cancelled"
    slots = client.get("/api/admin/availabilities", params={"tourId": tour_id}).json()
    assert slots[0]["spots_left"] == 5

    r = client.post(f"/api/admin/requests/{booking_id}/confirm", json=confirm, headers=headers)
    assert r.status_code == 409
    assert notifier.kinds() == ["requested", "confirmed", "refunded", "cancelled"]
    confirmed_msg = notifier.sent[1][1]
    assert confirmed_msg.time == "10:30"
    assert confirmed_msg.meeting_point == "Miradouro de Santa Luzia"

    assert client.get("/api/admin/requests/999").status_code == 404


def test_update_request_requires_schedule_to_confirm(client, notifier):
    headers = login(client)
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id)
    booking_id = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1)).json()["id"]
    r = client.put(f"/api/admin/requests/{booking_id}", json={"booking_status": "confirmed"}, headers=headers)
    assert r.status_code == 400
    r = client.put(f"/api/admin/requests/{booking_id}", json={"admin_notes": "vegetarian lunch"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["admin_notes"] == "vegetarian lunch"
    assert r.json()["booking_status"] == "requested"


def test_discount_crud(client):
    headers = login(client)
    r = client.post("/api/admin/discounts", json={"code": " summer ", "name": "Summer", "category": "percentage", "value": 15}, headers=headers)
    assert r.status_code == 201, r.text
    discount = r.json()
    assert discount["code"] == "SUMMER"

    dup = client.post("/api/admin/discounts", json={"code": "Summer", "name": "Again", "category": "fixed_value", "value": 100}, headers=headers)
    assert dup.status_code == 409
    too_much = client.post("/api/admin/discounts", json={"code": "HUGE", "name": "Huge", "category": "percentage", "value": 150}, headers=headers)
    assert too_much.status_code == 422

    once = client.post("/api/admin/discounts", json={"code": "ONCE", "name": "Once", "category": "fixed_value", "value": 500, "one_time": True}, headers=headers)
    assert once.json()["usage_limit"] == 1

    r = client.put(f"/api/admin/discounts/{discount['id']}", json={"is_active": False, "usage_limit": 10}, headers=headers)
    assert r.json()["is_active"] is False
    assert r.json()["usage_limit"] == 10
    codes = [d["code"] for d in client.get("/api/admin/discounts").json()]
    assert codes == ["SUMMER", "ONCE"]
    assert client.delete(f"/api/admin/discounts/{discount['id']}", headers=headers).status_code == 200
    assert client.delete(f"/api/admin/discounts/{discount['id']}", headers=headers).status_code == 404


def test_discount_limit_never_drops_below_usage(client):
    headers = login(client)
    busy = seed_discount("BUSY", "fixed_value", 100, usage_limit=10, used_count=5)
    r = client.put(f"/api/admin/discounts/{busy}", json={"usage_limit": 2, "name": "Renamed"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["field"] == "usage_limit"
    r = client.put(f"/api/admin/discounts/{busy}", json={"one_time": True}, headers=headers)
    assert r.status_code == 400
    stored = [d for d in client.get("/api/admin/discounts").json() if d["id"] == busy][0]
    assert stored["usage_limit"] == 10
    assert stored["name"] == "BUSY promo"
    assert client.put(f"/api/admin/discounts/{busy}", json={"usage_limit": 5}, headers=headers).json()["usage_limit"] == 5


def test_leaving_one_time_mode(client):
    headers = login(client)
    once = seed_discount("ONCE", "fixed_value", 100, usage_limit=1, one_time=True)
    r = client.put(f"/api/admin/discounts/{once}", json={"one_time": False}, headers=headers)
    assert r.json()["one_time"] is False
    assert r.json()["usage_limit"] is None
    again = seed_discount("TWICE", "fixed_value", 100, usage_limit=1, one_time=True)
    r = client.put(f"/api/admin/discounts/{again}", json={"one_time": False, "usage_limit": 3}, headers=headers)
    assert r.json()["usage_limit"] == 3


def test_closed_days_and_auto_close_setting(client, notifier):
    headers = login(client)
    r = client.post("/api/closed-days", json={"date": "2099-08-01", "reason": "Festival"}, headers=headers)
    again = client.post("/api/closed-days", json={"date": "2099-08-01"}, headers=headers)
    assert again.json()["id"] == r.json()["id"]
    assert again.json()["reason"] == "Festival"
    assert client.delete("/api/closed-days/2099-08-01", headers=headers).status_code == 200
    assert client.delete("/api/closed-days/2099-08-01", headers=headers).status_code == 404

    assert client.get("/api/admin/settings").json()["auto_close_day"] is False
    assert client.put("/api/admin/settings", json={"auto_close_day": True}, headers=headers).json()["auto_close_day"] is True
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id, "2099-08-02", "10:00")
    client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1))
    assert "2099-08-02" in [c["date"] for c in client.get("/api/closed-days").json()]
    assert client.get("/api/availabilities", params={"tourId": tour_id, "date": "2099-08-02"}).json() == []


def test_testimonial_moderation(client, notifier):
    headers = login(client)
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id)
    ref = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1)).json()["booking_reference"]
    client.post(f"/api/reviews/{ref}", json={"customer_name": "Ana", "customer_country": "PT", "rating": 4, "text": "Great guide"})

    pending = client.get("/api/admin/testimonials", params={"approved": False}).json()
    assert len(pending) == 1
    tid = pending[0]["id"]
    for _ in range(2):
        r = client.put(f"/api/admin/testimonials/{tid}/approve", headers=headers)
        assert r.status_code == 200
        assert r.json()["is_approved"] is True
    public = client.get("/api/testimonials").json()
    assert [t["text"] for t in public] == ["Great guide"]
    assert client.delete(f"/api/admin/testimonials/{tid}", headers=headers).status_code == 200
    assert client.get("/api/testimonials").json() == []


def test_admin_inbox(client, notifier):
    headers = login(client)
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id)
    client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1))
    client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1))
    assert client.get("/api/admin/notifications/unread-count").json() == {"unread": 2}
    items = client.get("/api/admin/notifications").json()
    assert items[0]["type"] == "booking"
    client.post(f"/api/admin/notifications/{items[0]['id']}/read", headers=headers)
    assert client.get("/api/admin/notifications/unread-count").json() == {"unread": 1}
    client.post("/api/admin/notifications/mark-all-read", headers=headers)
    assert client.get("/api/admin/notifications", params={"unread": True}).json() == []


def test_tour_and_slot_admin(client, notifier):
    headers = login(client)
    payload = {
        "name": text("Sintra Day Trip"),
        "description": text("Palaces"),
        "duration": text("8 hours"),
        "difficulty": text("Moderate"),
        "max_group_size": 8,
        "price": 9000,
        "price_type": "per_group",
    }
    r = client.post("/api/admin/tours", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    tour_id = r.json()["id"]
    assert r.json()["badge"] == {"en": "", "pt": "", "ru": ""}

    r = client.post("/api/admin/availabilities", json={"tour_id": tour_id, "date": "2099-09-01", "time": "09:00", "max_spots": 8}, headers=headers)
    assert r.status_code == 201
    slot = r.json()
    assert slot["spots_left"] == 8
    r = client.post("/api/admin/availabilities", json={"tour_id": tour_id, "date": "2099-09-01", "time": "09:00", "max_spots": 2, "spots_left": 3}, headers=headers)
    assert r.status_code == 422

    r = client.put(f"/api/admin/availabilities/{slot['id']}", json={"max_spots": 4}, headers=headers)
    assert (r.json()["max_spots"], r.json()["spots_left"]) == (4, 4)
    r = client.put(f"/api/admin/availabilities/{slot['id']}", json={"spots_left": 6}, headers=headers)
    assert r.status_code == 400

    client.post("/api/bookings", json=booking_payload(tour_id, slot["id"], 2))
    r = client.put(f"/api/admin/availabilities/{slot['id']}", json={"max_spots": 3}, headers=headers)
    assert (r.json()["max_spots"], r.json()["spots_left"]) == (3, 2)
    r = client.put(f"/api/admin/availabilities/{slot['id']}", json={"max_spots": 10}, headers=headers)
    assert (r.json()["max_spots"], r.json()["spots_left"]) == (10, 2)
    r = client.delete(f"/api/admin/availabilities/{slot['id']}", headers=headers)
    assert r.status_code == 409
    r = client.delete(f"/api/admin/tours/{tour_id}", headers=headers)
    assert r.json()["status"] == "deactivated"
    assert client.get(f"/api/tours/{tour_id}").status_code == 404

    empty = client.post("/api/admin/tours", json=payload, headers=headers).json()["id"]
    assert client.delete(f"/api/admin/tours/{empty}", headers=headers).json()["status"] == "deleted"


def test_stats_and_export(client, notifier):
    headers = login(client)
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id)
    booking_id = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 2)).json()["id"]
    client.post(f"/api/admin/payments/{booking_id}/paid", headers=headers)
    stats = client.get("/api/admin/stats").json()
    assert stats["bookings"] == 1
    assert stats["requested"] == 1
    assert stats["revenue"] == 4000
    assert stats["participants"] == 2

    r = client.get("/api/admin/bookings/export")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    lines = r.content.decode("utf-8-sig").strip().splitlines()
    assert lines[0].startswith("booking_reference,created_at,tour")
    assert len(lines) == 2
    assert "Alfama Walk" in lines[1]


def test_content_publishing(client):
    headers = login(client)
    r = client.post("/api/admin/articles", json={"title": text("Tips"), "content": text("Wear shoes"), "slug": "tips"}, headers=headers)
    article_id = r.json()["id"]
    assert client.get("/api/articles").json() == []
    client.put(f"/api/admin/articles/{article_id}", json={"is_published": True}, headers=headers)
    assert client.get("/api/articles/tips").json()["content"]["en"] == "Wear shoes"
    bad = client.post("/api/admin/articles", json={"title": text("X"), "slug": "Not A Slug"}, headers=headers)
    assert bad.status_code == 400

    client.post("/api/admin/gallery", json={"image_url": "https://img.example/1.jpg", "title": "Tram"}, headers=headers)
    assert [g["title"] for g in client.get("/api/gallery").json()] == ["Tram"]
