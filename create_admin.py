import os
import secrets

from eventhive import create_app
from eventhive.extensions import db
from eventhive.models.user import User

app = create_app()

with app.app_context():
    username = os.getenv("ADMIN_USERNAME", "admin")
    email = os.getenv("ADMIN_EMAIL", "admin@eventhive.local")
    password = os.getenv("ADMIN_PASSWORD") or secrets.token_urlsafe(12)

    existing_user = User.query.filter((User.email == email) | (User.username == username)).first()
    if existing_user:
        if not existing_user.is_admin:
            existing_user.is_admin = True
            db.session.commit()
            print(f"Promoted '{existing_user.username}' to admin.")
        else:
            print(f"Admin '{existing_user.username}' already exists.")
    else:
        user = User(username=username, email=email, is_admin=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        print("Admin created successfully!")
        print(f"Username: {username}")
        print(f"Email: {email}")
        if not os.getenv("ADMIN_PASSWORD"):
            print(f"Password: {password}")
