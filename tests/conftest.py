from datetime import date, timedelta

import pytest

from eventhive import create_app
from eventhive.extensions import db, socketio
from eventhive.models import Event
from helpers import make_user, token_for


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return make_user("admin", is_admin=True)


@pytest.fixture
def user(app):
    return make_user("alice")


@pytest.fixture
def other_user(app):
    return make_user("bob")


@pytest.fixture
def event(admin):
    event = Event(
        title="PyCon Meetup",
        description="An evening of Python talks",
        location="Bengaluru",
        category="Technology",
        date=date.today() + timedelta(days=30),
        price=0,
        is_paid=False,
        tickets_available=100,
        organizer_id=admin.id,
    )
    db.session.add(event)
    db.session.commit()
    return event


@pytest.fixture
def paid_event(admin):
    event = Event(
        title="Jazz Night",
        description="Live jazz by the lake",
        location="Pune",
        category="Music",
        date=date.today() + timedelta(days=14),
        price=25,
        is_paid=True,
        tickets_available=3,
        organizer_id=admin.id,
    )
    db.session.add(event)
    db.session.commit()
    return event


@pytest.fixture
def socket_client(app, client):
    """Factory for Socket.IO test clients; pass a user to authenticate on connect."""
    clients = []

    def connect(user=None):
        auth = {"token": token_for(user)} if user else None
        sio = socketio.test_client(app, flask_test_client=client, auth=auth)
        clients.append(sio)
        return sio

    yield connect

    for sio in clients:
        if sio.is_connected():
            sio.disconnect()
