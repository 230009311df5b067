from datetime import date, timedelta

from eventhive.extensions import db
from eventhive.models import Event, Registration
from helpers import auth_headers, make_review


def test_requires_admin(client, user):
    assert client.get("/dashboard/", headers=auth_headers(user)).status_code == 403


def test_empty_dashboard(client, admin):
    body = client.get("/dashboard/", headers=auth_headers(admin)).get_json()
    assert body["stats"]["totalUsers"] == 1
    assert body["stats"]["averageRating"] == 0
    assert body["sentiment"] == {"positive": 0, "neutral": 0, "negative": 0}
    assert body["upcoming"] == []


def test_counts_and_revenue(client, admin, user, other_user, event, paid_event):
    db.session.add(Event(title="Past", description="-", location="X", date=date.today() - timedelta(days=2),
                         status="completed", organizer_id=admin.id))
    db.session.add_all([
        Registration(event_id=paid_event.id, full_name="A", email="a@example.com", phone="9876543210",
                     ticket_quantity=2, total_amount=50, payment_status="completed"),
        Registration(event_id=paid_event.id, full_name="B", email="b@example.com", phone="9876543210",
                     total_amount=25, payment_status="pending"),
    ])
    db.session.commit()
    make_review(event, user, rating=5)
    make_review(event, other_user, rating=2, text="Too crowded", sentiment="negative")

    body = client.get("/dashboard/", headers=auth_headers(admin)).get_json()
    stats = body["stats"]
    assert stats["totalUsers"] == 3
    assert stats["admins"] == 1
    assert stats["totalEvents"] == 3
    assert stats["upcomingEvents"] == 2
    assert stats["revenue"] == 50.0
    assert stats["averageRating"] == 3.5
    assert body["sentiment"] == {"positive": 1, "neutral": 0, "negative": 1}
    assert body["registrationsByStatus"] == {"completed": 1, "pending": 1}
    assert body["eventsByStatus"] == {"active": 2, "completed": 1}
    assert [e["title"] for e in body["upcoming"]] == ["Jazz Night", "PyCon Meetup"]
