from flask_jwt_extended import create_access_token

from eventhive.extensions import db
from eventhive.models import Review, User


def make_user(username, is_admin=False, password="password123"):
    user = User(username=username, email=f"{username}@example.com", is_admin=is_admin)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def token_for(user):
    return create_access_token(
        identity=str(user.id),
        additional_claims={"username": user.username, "email": user.email, "is_admin": user.is_admin},
    )


def auth_headers(user):
    return {"Authorization": f"Bearer {token_for(user)}"}


def make_review(event, author, rating=5, text="Amazing event, loved it", sentiment="positive", created_at=None):
    review = Review(
        event_id=event.id,
        user_id=author.id,
        username=author.username,
        rating=rating,
        review_text=text,
        sentiment=sentiment,
    )
    if created_at is not None:
        review.created_at = created_at
    db.session.add(review)
    db.session.commit()
    return review


def received(sio, name):
    """Payloads of every socket event called `name` the test client has received so far."""
    return [packet["args"][0] for packet in sio.get_received() if packet["name"] == name]
