"""Seed an administrator user."""

from app import create_app
from models import db
from models.user import User


def main() -> None:
    app = create_app()
    with app.app_context():
        email = app.config["ADMIN_EMAIL"].strip().lower()
        password = app.config["ADMIN_PASSWORD"]

        admin = User.query.filter_by(email=email).first()
        if admin is None:
            admin = User(
                first_name="Book Store",
                last_name="Admin",
                email=email,
                role="ADMIN",
                enabled=True,
            )
            admin.set_password(password)
            db.session.add(admin)
            action = "created"
        else:
            admin.role = "ADMIN"
            admin.enabled = True
            admin.set_password(password)
            action = "updated"
        db.session.commit()
        print(f"Admin user {action}: {email}")


if __name__ == "__main__":
    main()
