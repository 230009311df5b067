from datetime import date, timedelta

import pytest

from eventhive.extensions import db
from eventhive.models import Event, Notification
from helpers import auth_headers, make_review, make_user


def event_body(**overrides):
    body = {
        "title": "Data Science Summit",
        "description": "Talks on analytics and ML",
        "location": "Hyderabad",
        "category": "Technology",
        "date": (date.today() + timedelta(days=10)).isoformat(),
        "time": "18:30:00",
        "price": 0,
        "ticketsAvailable": 50,
    }
    body.update(overrides)
    return body


class TestListEvents:

    @pytest.fixture
    def catalog(self, admin):
        today = date.today()
        events = [
            Event(title="Rock Night", description="Loud", location="Goa", category="Music",
                  date=today + timedelta(days=3), organizer_id=admin.id),
            Event(title="Python Workshop", description="Hands-on", location="Pune", category="Technology",
                  date=today + timedelta(days=7), organizer_id=admin.id),
            Event(title="Old Expo", description="Archive", location="Delhi", category="Technology",
                  date=today - timedelta(days=7), status="completed", organizer_id=admin.id),
        ]
        db.session.add_all(events)
        db.session.commit()
        return events

    def test_lists_all_by_date(self, client, catalog):
        titles = [e["title"] for e in client.get("/events/").get_json()]
        assert titles == ["Old Expo", "Rock Night", "Python Workshop"]

    def test_filters(self, client, catalog):
        assert len(client.get("/events/?category=Technology").get_json()) == 2
        assert len(client.get("/events/?status=completed").get_json()) == 1
        assert [e["title"] for e in client.get("/events/?search=python").get_json()] == ["Python Workshop"]
        assert len(client.get("/events/?upcoming=true").get_json()) == 2

    def test_date_range(self, client, catalog):
        start = date.today().isoformat()
        end = (date.today() + timedelta(days=5)).isoformat()
        titles = [e["title"] for e in client.get(f"/events/?start={start}&end={end}").get_json()]
        assert titles == ["Rock Night"]

    def test_bad_date_filter(self, client, catalog):
        assert client.get("/events/?start=someday").status_code == 400


class TestEventDetail:

    def test_with_reviews(self, client, event, user):
        make_review(event, user)
        body = client.get(f"/events/{event.id}").get_json()
        assert body["title"] == "PyCon Meetup"
        assert body["organizer"] == "admin"
        assert body["ticketsRemaining"] == 100
        assert body["registrationOpen"] is True
        assert len(body["reviews"]) == 1

    def test_by_id(self, client, event):
        assert client.get(f"/events/byId/{event.id}").get_json()["id"] == event.id

    def test_not_found_is_json(self, client):
        resp = client.get("/events/12345")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Event not found"}


class TestCreateEvent:

    def test_admin_creates(self, client, admin):
        resp = client.post("/events/", json=event_body(), headers=auth_headers(admin))
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["organizerId"] == admin.id
        assert body["status"] == "active"
        assert body["isPaid"] is False

    def test_paid_flag_follows_price(self, client, admin):
        resp = client.post("/events/", json=event_body(price=20), headers=auth_headers(admin))
        assert resp.get_json()["isPaid"] is True

    def test_users_are_notified(self, client, admin, user):
        client.post("/events/", json=event_body(), headers=auth_headers(admin))
        notification = Notification.query.filter_by(user_id=user.id).one()
        assert notification.kind == "event"
        assert notification.extra_data["title"] == "Data Science Summit"

    def test_non_admin_forbidden(self, client, user):
        assert client.post("/events/", json=event_body(), headers=auth_headers(user)).status_code == 403

    def test_requires_token(self, client):
        resp = client.post("/events/", json=event_body())
        assert resp.status_code == 401
        assert "error" in resp.get_json()

    def test_validation(self, client, admin):
        resp = client.post("/events/", json=event_body(title="", status="postponed"), headers=auth_headers(admin))
        assert resp.status_code == 400
        assert set(resp.get_json()["details"]) >= {"title", "status"}

    def test_deadline_after_event(self, client, admin):
        body = event_body(registrationDeadline=(date.today() + timedelta(days=30)).isoformat())
        assert client.post("/events/", json=body, headers=auth_headers(admin)).status_code == 400

    def test_min_above_max(self, client, admin):
        body = event_body(minRegistrations=10, maxRegistrations=5)
        assert client.post("/events/", json=body, headers=auth_headers(admin)).status_code == 400


class TestUpdateDeleteEvent:

    def test_organizer_updates(self, client, admin, event):
        resp = client.put(f"/events/{event.id}", json={"title": "PyCon Evening"}, headers=auth_headers(admin))
        assert resp.status_code == 200
        assert event.title == "PyCon Evening"

    def test_non_organizer_forbidden(self, client, user, event):
        assert client.put(f"/events/{event.id}", json={"title": "x"}, headers=auth_headers(user)).status_code == 403

    def test_organizer_without_admin_role(self, client, user):
        own = Event(title="Book Club", description="Monthly", location="Chennai",
                    date=date.today() + timedelta(days=2), organizer_id=user.id)
        db.session.add(own)
        db.session.commit()
        resp = client.put(f"/events/{own.id}", json={"status": "cancelled"}, headers=auth_headers(user))
        assert resp.status_code == 200
        assert own.status == "cancelled"

    def test_invalid_status_rejected(self, client, admin, event):
        resp = client.put(f"/events/{event.id}", json={"status": "postponed"}, headers=auth_headers(admin))
        assert resp.status_code == 400

    def test_delete(self, client, admin, event):
        event_id = event.id
        assert client.delete(f"/events/{event_id}", headers=auth_headers(admin)).status_code == 200
        assert db.session.get(Event, event_id) is None

    def test_delete_forbidden(self, client, event):
        stranger = make_user("mallory")
        assert client.delete(f"/events/{event.id}", headers=auth_headers(stranger)).status_code == 403


class TestEventModel:

    def test_status_is_closed_enum(self):
        with pytest.raises(ValueError):
            Event(status="postponed")


class TestCalendar:

    def test_groups_by_day(self, client, admin):
        day = date(2031, 5, 17)
        db.session.add_all([
            Event(title="A", description="-", location="X", date=day, organizer_id=admin.id),
            Event(title="B", description="-", location="X", date=day, organizer_id=admin.id),
            Event(title="C", description="-", location="X", date=date(2031, 6, 1), organizer_id=admin.id),
        ])
        db.session.commit()

        body = client.get("/events/calendar?year=2031&month=5").get_json()
        assert list(body["days"]) == ["2031-05-17"]
        assert [e["title"] for e in body["days"]["2031-05-17"]] == ["A", "B"]

    def test_bad_month(self, client):
        assert client.get("/events/calendar?year=2031&month=13").status_code == 400
