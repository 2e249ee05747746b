"""Content store: users, contents, likes and favorites.

``ContentStore`` wraps a SQLAlchemy session and returns plain frozen records,
never ORM instances. Each write commits before returning; multi-statement
writes (create with slug, toggles) run inside a SAVEPOINT so they apply as a
unit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, exists, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from models import CATEGORIES, ROLES, Content, Favorite, Like, User
from store.errors import ConstraintViolation
from store.slugs import normalize, reserve_unique_slug

logger = logging.getLogger(__name__)

SORT_NEWEST = "newest"
SORT_LIKES = "likes"


# ---------- Records ----------

@dataclass(frozen=True)
class UserRecord:
    id: int
    name: str
    role: str
    email: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Credential:
    """A user row including the password hash; only returned by the email lookup."""

    id: int
    name: str
    role: str
    email: Optional[str]
    password_hash: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class ContentRecord:
    id: int
    title: str
    description: str
    category: str
    image_path: str
    slug: str
    owner_id: int
    owner_name: Optional[str]
    created_at: datetime
    like_count: Optional[int] = None


@dataclass(frozen=True)
class AuthorRecord:
    id: int
    name: str


@dataclass(frozen=True)
class LikeState:
    liked: bool
    count: int


@dataclass(frozen=True)
class FavoriteState:
    favorite: bool


@dataclass(frozen=True)
class ContentUpdate:
    """Fields for ``update_content``.

    Title, description and category are always written. ``image_path=None``
    (or empty) keeps the stored image.
    """

    id: int
    title: str
    description: str
    category: str
    image_path: Optional[str] = None


def _check_category(category: str) -> None:
    if category not in CATEGORIES:
        raise ConstraintViolation(f"unknown category {category!r}")


def _check_role(role: str) -> None:
    if role not in ROLES:
        raise ConstraintViolation(f"unknown role {role!r}")


def _like_counts():
    return (
        select(Like.content_id, func.count().label("like_count"))
        .group_by(Like.content_id)
        .subquery()
    )


_CONTENT_COLUMNS = (
    Content.id,
    Content.title,
    Content.description,
    Content.category,
    Content.image_path,
    Content.slug,
    Content.owner_id,
    User.name.label("owner_name"),
    Content.created_at,
)


class ContentStore:
    def __init__(self, session):
        self.session = session

    # ---------- Users ----------

    def list_users(self) -> list[UserRecord]:
        rows = self.session.execute(
            select(User.id, User.name, User.role, User.email, User.created_at).order_by(User.id.asc())
        ).all()
        return [UserRecord(**row._mapping) for row in rows]

    def insert_user(self, name: str, role: str = "user") -> int:
        """Short form without credentials, used for seeding and admin tooling."""
        _check_role(role)
        return self._insert_row(User(name=name, role=role))

    def create_user(self, name: str, email: str, password_hash: str, role: str = "user") -> int:
        _check_role(role)
        user = User(name=name, email=email.strip().lower(), password_hash=password_hash, role=role)
        return self._insert_row(user)

    def find_user_by_email(self, email: str) -> Optional[Credential]:
        if not email:
            return None
        row = self.session.execute(
            select(User.id, User.name, User.role, User.email, User.password_hash, User.created_at)
            .where(func.lower(User.email) == email.strip().lower())
            .limit(1)
        ).first()
        return Credential(**row._mapping) if row else None

    def list_authors(self) -> list[AuthorRecord]:
        rows = self.session.execute(
            select(User.id, User.name).order_by(func.lower(User.name), User.id)
        ).all()
        return [AuthorRecord(**row._mapping) for row in rows]

    # ---------- Contents ----------

    def list_contents(self) -> list[ContentRecord]:
        return self.list_contents_filtered()

    def create_content(self, title: str, description: str, category: str, image_path: str, owner_id: int) -> int:
        _check_category(category)
        try:
            with self.session.begin_nested():
                slug = reserve_unique_slug(self.session, normalize(title))
                content = Content(
                    title=title,
                    description=description,
                    category=category,
                    image_path=image_path,
                    owner_id=owner_id,
                    slug=slug,
                )
                self.session.add(content)
                self.session.flush()
                content_id = content.id
        except IntegrityError as exc:
            raise ConstraintViolation(f"content not saved: {exc.orig}") from exc
        self.session.commit()
        logger.info("content %s created as %r", content_id, slug)
        return content_id

    def find_content_by_slug(self, slug: str) -> Optional[ContentRecord]:
        return self._find_content(Content.slug == slug)

    def find_content_by_id(self, content_id: int) -> Optional[ContentRecord]:
        return self._find_content(Content.id == content_id)

    def update_content(self, changes: ContentUpdate) -> int:
        _check_category(changes.category)
        values = {
            "title": changes.title,
            "description": changes.description,
            "category": changes.category,
        }
        if changes.image_path:
            values["image_path"] = changes.image_path
        try:
            with self.session.begin_nested():
                result = self.session.execute(
                    update(Content)
                    .where(Content.id == changes.id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
        except IntegrityError as exc:
            raise ConstraintViolation(f"content {changes.id} not updated: {exc.orig}") from exc
        self.session.commit()
        return result.rowcount

    def delete_content_by_id(self, content_id: int) -> int:
        """Likes and favorites go with it (ON DELETE CASCADE)."""
        result = self.session.execute(
            delete(Content).where(Content.id == content_id).execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount

    def list_contents_filtered(
        self,
        category: Optional[str] = None,
        owner_id: Optional[int] = None,
        sort: str = SORT_NEWEST,
    ) -> list[ContentRecord]:
        """Feed rows with owner name and like count. ``None`` filters are ignored."""
        counts = _like_counts()
        like_count = func.coalesce(counts.c.like_count, 0)
        stmt = (
            select(*_CONTENT_COLUMNS, like_count.label("like_count"))
            .outerjoin(User, User.id == Content.owner_id)
            .outerjoin(counts, counts.c.content_id == Content.id)
        )
        if category:
            stmt = stmt.where(Content.category == category)
        if owner_id:
            stmt = stmt.where(Content.owner_id == owner_id)

        if sort == SORT_LIKES:
            stmt = stmt.order_by(like_count.desc(), Content.created_at.desc(), Content.id.desc())
        else:
            stmt = stmt.order_by(Content.created_at.desc(), Content.id.desc())
        return [ContentRecord(**row._mapping) for row in self.session.execute(stmt).all()]

    # ---------- Likes ----------

    def get_like_count(self, content_id: int) -> int:
        count = self.session.scalar(
            select(func.count()).select_from(Like).where(Like.content_id == content_id)
        )
        return count or 0

    def has_user_liked(self, user_id: int, content_id: int) -> bool:
        return self._member(Like, user_id, content_id)

    def toggle_like(self, user_id: int, content_id: int) -> LikeState:
        liked = self._toggle(Like, user_id, content_id)
        return LikeState(liked=liked, count=self.get_like_count(content_id))

    def user_liked_ids(self, user_id: int) -> set[int]:
        return set(self.session.scalars(select(Like.content_id).where(Like.user_id == user_id)))

    # ---------- Favorites ----------

    def is_favorite(self, user_id: int, content_id: int) -> bool:
        return self._member(Favorite, user_id, content_id)

    def toggle_favorite(self, user_id: int, content_id: int) -> FavoriteState:
        return FavoriteState(favorite=self._toggle(Favorite, user_id, content_id))

    def list_favorites_of_user(self, user_id: int) -> list[ContentRecord]:
        """Most recently favorited first."""
        rows = self.session.execute(
            select(*_CONTENT_COLUMNS)
            .select_from(Favorite)
            .join(Content, Content.id == Favorite.content_id)
            .outerjoin(User, User.id == Content.owner_id)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Content.id.desc())
        ).all()
        return [ContentRecord(**row._mapping) for row in rows]

    # ---------- Internals ----------

    def _insert_row(self, obj) -> int:
        try:
            with self.session.begin_nested():
                self.session.add(obj)
                self.session.flush()
                new_id = obj.id
        except IntegrityError as exc:
            raise ConstraintViolation(f"{obj.__tablename__} row not saved: {exc.orig}") from exc
        self.session.commit()
        return new_id

    def _find_content(self, condition) -> Optional[ContentRecord]:
        row = self.session.execute(
            select(*_CONTENT_COLUMNS)
            .outerjoin(User, User.id == Content.owner_id)
            .where(condition)
            .limit(1)
        ).first()
        return ContentRecord(**row._mapping) if row else None

    def _member(self, model, user_id: int, content_id: int) -> bool:
        return bool(self.session.scalar(
            select(exists().where(model.user_id == user_id, model.content_id == content_id))
        ))

    def _toggle(self, model, user_id: int, content_id: int) -> bool:
        """Flip the (user, content) row in ``model``; returns whether it now exists.

        The delete doubles as the existence check. If the insert then hits the
        primary key, a concurrent request already added the row: report present.
        """
        key = (model.user_id == user_id, model.content_id == content_id)
        try:
            with self.session.begin_nested():
                removed = self.session.execute(
                    delete(model).where(*key).execution_options(synchronize_session=False)
                ).rowcount
                if not removed:
                    self.session.execute(insert(model).values(user_id=user_id, content_id=content_id))
        except IntegrityError as exc:
            if not self._member(model, user_id, content_id):
                raise ConstraintViolation(
                    f"{model.__tablename__} toggle failed for user {user_id}, content {content_id}: {exc.orig}"
                ) from exc
            removed = 0
        self.session.commit()
        return not removed
