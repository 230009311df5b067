"""
Tests for reviews: data-layer rating rules, the /reviews endpoints,
sentiment labelling on create and the admin response flow.
"""

import pytest

from eventhive.extensions import db
from eventhive.models import Notification, Review
from eventhive.services.sentiment import analyze_text, classify
from helpers import auth_headers, make_review, received


class TestReviewModel:

    @pytest.mark.parametrize("rating", [0, 6, -1, 2.5, "five", None])
    def test_rejects_out_of_range_ratings(self, rating):
        with pytest.raises(ValueError):
            Review(rating=rating)

    @pytest.mark.parametrize("rating", [1, 3, 5])
    def test_accepts_valid_ratings(self, rating):
        assert Review(rating=rating).rating == rating

    def test_rejects_blank_text(self):
        with pytest.raises(ValueError):
            Review(review_text="   ")

    def test_rejects_unknown_sentiment_label(self):
        with pytest.raises(ValueError):
            Review(sentiment="ecstatic")


class TestSentimentLabels:

    def test_positive(self):
        assert classify("Amazing event, loved every minute") == "positive"

    def test_negative(self):
        assert classify("Terrible sound and boring talks") == "negative"

    def test_neutral(self):
        assert classify("The event took place on Saturday") == "neutral"

    def test_negation_flips_weight(self):
        assert analyze_text("not good")["score"] < 0

    def test_scores_come_from_afinn_lexicon(self):
        result = analyze_text("A breathtaking venue")
        assert result["score"] == 5
        assert result["positive"] == ["breathtaking"]
        assert result["sentiment"] == "positive"


class TestCreateReview:

    def test_requires_auth(self, client, event):
        resp = client.post("/reviews/", json={"review_text": "Nice", "rating": 4, "eventId": event.id})
        assert resp.status_code == 401

    def test_creates_with_sentiment(self, client, user, event):
        resp = client.post(
            "/reviews/",
            json={"review_text": "Amazing speakers, loved it", "rating": 5, "eventId": event.id},
            headers=auth_headers(user),
        )
        assert resp.status_code == 201
        review = resp.get_json()["review"]
        assert review["username"] == "alice"
        assert review["sentiment"] == "positive"
        assert review["eventId"] == event.id

    def test_rating_out_of_range(self, client, user, event):
        resp = client.post(
            "/reviews/",
            json={"review_text": "Fine", "rating": 9, "eventId": event.id},
            headers=auth_headers(user),
        )
        assert resp.status_code == 400
        assert Review.query.count() == 0

    def test_duplicate_review_rejected(self, client, user, event):
        make_review(event, user)
        resp = client.post(
            "/reviews/",
            json={"review_text": "Second thoughts", "rating": 3, "eventId": event.id},
            headers=auth_headers(user),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "You have already reviewed this event."

    def test_unknown_event(self, client, user):
        resp = client.post(
            "/reviews/",
            json={"review_text": "Nice", "rating": 4, "eventId": 4242},
            headers=auth_headers(user),
        )
        assert resp.status_code == 404

    def test_admins_are_notified(self, client, admin, user, event, socket_client):
        admin_socket = socket_client(admin)
        user_socket = socket_client(user)
        admin_socket.get_received()
        user_socket.get_received()

        client.post(
            "/reviews/",
            json={"review_text": "Great venue", "rating": 4, "eventId": event.id},
            headers=auth_headers(user),
        )

        admin_events = admin_socket.get_received()
        names = [packet["name"] for packet in admin_events]
        assert "new-review" in names
        assert "notification" in names
        assert received(user_socket, "new-review") == []

        stored = Notification.query.filter_by(user_id=admin.id).one()
        assert stored.kind == "review"
        assert stored.is_admin_notification is True
        assert stored.extra_data["rating"] == 4


class TestListAndDelete:

    def test_list_returns_404_when_empty(self, client, event):
        assert client.get(f"/reviews/{event.id}").status_code == 404

    def test_list_newest_first(self, client, event, user, other_user):
        make_review(event, user, text="First")
        make_review(event, other_user, text="Second")
        resp = client.get(f"/reviews/{event.id}")
        assert resp.status_code == 200
        assert len(resp.get_json()) == 2

    def test_only_owner_can_delete(self, client, event, user, other_user):
        review = make_review(event, user)
        assert client.delete(f"/reviews/{review.id}", headers=auth_headers(other_user)).status_code == 404
        assert client.delete(f"/reviews/{review.id}", headers=auth_headers(user)).status_code == 200
        assert db.session.get(Review, review.id) is None


class TestAdminResponse:

    def test_non_admin_forbidden(self, client, event, user):
        review = make_review(event, user)
        resp = client.put(f"/reviews/respond/{review.id}", json={"admin_response": "Thanks"}, headers=auth_headers(user))
        assert resp.status_code == 403

    def test_reviewer_gets_user_notification(self, client, admin, user, event, socket_client):
        review = make_review(event, user)
        user_socket = socket_client(user)
        user_socket.get_received()

        resp = client.put(
            f"/reviews/respond/{review.id}",
            json={"admin_response": "Thanks for coming!"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.get_json()["response"] == "Thanks for coming!"

        pushed = received(user_socket, "user-notification")
        assert len(pushed) == 1
        assert pushed[0]["type"] == "review_response"
        assert pushed[0]["metadata"]["admin_response"] == "Thanks for coming!"

    def test_template_placeholders(self, client, admin, user, event):
        review = make_review(event, user, rating=4)
        resp = client.put(
            f"/reviews/respond/{review.id}",
            json={"template": "Hi {username}, thanks for rating {event_name} {rating} stars"},
            headers=auth_headers(admin),
        )
        assert resp.get_json()["response"] == "Hi alice, thanks for rating PyCon Meetup 4 stars"

    def test_generated_reply_follows_sentiment(self, client, admin, user, event):
        review = make_review(event, user, sentiment="negative", text="Boring")
        resp = client.put(f"/reviews/respond/{review.id}", headers=auth_headers(admin))
        assert resp.get_json()["response"].startswith("We're sorry to hear")


class TestSentimentEndpoint:

    def test_breakdown(self, client, event, user, other_user):
        make_review(event, user, text="Amazing and wonderful", sentiment="positive")
        make_review(event, other_user, text="Terrible and boring", sentiment="negative", rating=1)
        body = client.get(f"/reviews/sentiment/{event.id}").get_json()
        assert body["reviewCount"] == 2
        assert body["sentimentBreakdown"] == {"positive": 50, "neutral": 0, "negative": 50}
        assert body["insights"]
