"""Shared SQLAlchemy models."""

from datetime import datetime, timezone

from flask_login import UserMixin
from sqlalchemy import CheckConstraint, func

from extensions import db

# ---------- Allowed values ----------
ROLES = ["admin", "user", "editor"]
CATEGORIES = ["sifi", "krimi", "horror", "komoedie"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _in_list(column: str, values: list[str]) -> str:
    quoted = ",".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class User(UserMixin, db.Model):
    """Registered (or seeded) account. Email and password are optional for seeded users."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(_in_list("role", ROLES), name="ck_users_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    role = db.Column(db.Text, nullable=False, default="user", server_default="user")
    email = db.Column(db.Text)
    password_hash = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.id}: {self.name}>"


# Case-insensitive uniqueness; NULL emails are never equal to each other.
db.Index("idx_users_email_nocase", func.lower(User.__table__.c.email), unique=True)


class Content(db.Model):
    """A posted movie entry."""

    __tablename__ = "contents"
    __table_args__ = (
        CheckConstraint(_in_list("category", CATEGORIES), name="ck_contents_category"),
        db.Index("idx_contents_slug_unique", "slug", unique=True),
        db.Index("idx_contents_created_at", "created_at"),
        db.Index("idx_contents_category", "category"),
        db.Index("idx_contents_owner", "owner_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.Text, nullable=False)
    image_path = db.Column(db.Text, nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # nullable only so legacy rows survive until the backfill runs
    slug = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Content {self.slug}>"


class Like(db.Model):
    __tablename__ = "likes"
    __table_args__ = (
        db.Index("idx_likes_content", "content_id"),
        db.Index("idx_likes_user", "user_id"),
    )

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    content_id = db.Column(db.Integer, db.ForeignKey("contents.id", ondelete="CASCADE"), primary_key=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class Favorite(db.Model):
    __tablename__ = "favorites"
    __table_args__ = (
        db.Index("idx_fav_content", "content_id"),
        db.Index("idx_fav_user", "user_id"),
    )

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    content_id = db.Column(db.Integer, db.ForeignKey("contents.id", ondelete="CASCADE"), primary_key=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class AppMeta(db.Model):
    """Key/value markers, e.g. for one-time demo seeding."""

    __tablename__ = "app_meta"

    key = db.Column(db.Text, primary_key=True)
    value = db.Column(db.Text, nullable=False)
