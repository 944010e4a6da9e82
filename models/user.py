"""User model definition."""

from werkzeug.security import check_password_hash, generate_password_hash

from . import db, utcnow


USER_ROLES = ("ADMIN", "USER")


class User(db.Model):
    """Represents a book store customer or administrator."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone_number = db.Column(db.String(20), unique=True, nullable=True)
    address = db.Column(db.String(500), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(*USER_ROLES, name="user_role"),
        nullable=False,
        default="USER",
        server_default=db.text("'USER'"),
    )
    enabled = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    last_verification_email_sent = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    verification_token = db.relationship(
        "VerificationToken",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    reset_password_token = db.relationship(
        "ResetPasswordToken",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def mark_enabled(self) -> None:
        """Mark the user's email address as verified."""

        self.enabled = True

    def verification_state(self) -> str:
        """Return UNVERIFIED, PENDING or VERIFIED for the email verification flow.

        A user with a token row (usable or not) is PENDING; expiry alone does
        not move the user back to UNVERIFIED.
        """

        if self.enabled:
            return "VERIFIED"
        if self.verification_token is not None:
            return "PENDING"
        return "UNVERIFIED"

    def to_dict(self) -> dict:
        """Serialize the user without credentials."""

        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "address": self.address,
            "role": self.role,
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
