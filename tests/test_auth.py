from flask_jwt_extended import decode_token

from eventhive.models import Review, User
from helpers import auth_headers, make_review


class TestRegister:

    def test_creates_user(self, client):
        resp = client.post("/auth", json={"username": "carol", "email": "Carol@Example.com", "password": "s3cretpass"})
        assert resp.status_code == 201
        user = User.query.filter_by(username="carol").one()
        assert user.email == "carol@example.com"
        assert user.is_admin is False
        assert user.check_password("s3cretpass")

    def test_cannot_self_promote(self, client):
        client.post("/auth", json={"username": "eve", "email": "eve@example.com", "password": "s3cretpass", "isAdmin": True})
        assert User.query.filter_by(username="eve").one().is_admin is False

    def test_duplicate_username(self, client, user):
        resp = client.post("/auth", json={"username": "alice", "email": "new@example.com", "password": "s3cretpass"})
        assert resp.status_code == 400

    def test_short_password(self, client):
        resp = client.post("/auth", json={"username": "dan", "email": "dan@example.com", "password": "short"})
        assert resp.status_code == 400
        assert "at least 8" in resp.get_json()["error"]

    def test_bad_email(self, client):
        resp = client.post("/auth", json={"username": "dan", "email": "dan-at-example", "password": "s3cretpass"})
        assert resp.status_code == 400


class TestLogin:

    def test_login_with_username_or_email(self, client, user):
        for identifier in ("alice", "alice@example.com"):
            resp = client.post("/auth/login", json={"identifier": identifier, "password": "password123"})
            assert resp.status_code == 200
            claims = decode_token(resp.get_json()["token"])
            assert claims["sub"] == str(user.id)
            assert claims["username"] == "alice"
            assert claims["is_admin"] is False

    def test_wrong_password(self, client, user):
        resp = client.post("/auth/login", json={"identifier": "alice", "password": "nope"})
        assert resp.status_code == 401

    def test_unknown_user(self, client):
        resp = client.post("/auth/login", json={"identifier": "ghost", "password": "whatever1"})
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "User doesn't exist"}

    def test_missing_json(self, client):
        assert client.post("/auth/login").status_code == 400


class TestTokenRoutes:

    def test_current_user(self, client, user):
        body = client.get("/auth/auth", headers=auth_headers(user)).get_json()
        assert body == {"id": user.id, "username": "alice", "isAdmin": False}

    def test_invalid_token(self, client):
        resp = client.get("/auth/auth", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid token"}

    def test_admin_ping(self, client, admin, user):
        assert client.get("/auth/admin", headers=auth_headers(user)).status_code == 403
        assert client.get("/auth/admin", headers=auth_headers(admin)).get_json()["message"] == "Welcome Admin!"


class TestProfile:

    def test_profile_lists_reviews_with_event(self, client, user, event):
        make_review(event, user, text="Loved it")
        body = client.get("/api/user/profile", headers=auth_headers(user)).get_json()
        assert body["user"]["username"] == "alice"
        assert body["reviews"][0]["text"] == "Loved it"
        assert body["reviews"][0]["event"]["title"] == "PyCon Meetup"

    def test_rename_updates_reviews(self, client, user, event):
        review = make_review(event, user)
        resp = client.put("/api/user/edit-profile", json={"username": "alice2"}, headers=auth_headers(user))
        assert resp.status_code == 200
        assert user.username == "alice2"
        assert Review.query.get(review.id).username == "alice2"

    def test_rename_to_taken_name(self, client, user, other_user):
        resp = client.put("/api/user/edit-profile", json={"username": "bob"}, headers=auth_headers(user))
        assert resp.status_code == 400

    def test_change_password(self, client, user):
        resp = client.put("/api/user/edit-profile", json={"password": "newpassword1"}, headers=auth_headers(user))
        assert resp.status_code == 200
        assert user.check_password("newpassword1")

    def test_nothing_to_update(self, client, user):
        assert client.put("/api/user/edit-profile", json={}, headers=auth_headers(user)).status_code == 400
