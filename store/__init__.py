"""Persistence layer for the movie site.

Inside the Flask app use ``get_store()``; it wraps the request-scoped
``db.session``. Scripts and tests outside an app use ``open_store(uri)``,
which owns its engine and disposes it on exit.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from extensions import db
from store.errors import ConstraintViolation, MigrationError, StoreError
from store.migrations import migrate
from store.repository import (
    SORT_LIKES,
    SORT_NEWEST,
    AuthorRecord,
    ContentRecord,
    ContentStore,
    ContentUpdate,
    Credential,
    FavoriteState,
    LikeState,
    UserRecord,
)
from store.seed import seed_demo_once
from store.slugs import normalize, reserve_unique_slug


def get_store() -> ContentStore:
    return ContentStore(db.session)


@contextmanager
def open_store(database_uri: str, seed: bool = False) -> Iterator[ContentStore]:
    engine = create_engine(database_uri)
    try:
        migrate(engine)
        with Session(engine) as session:
            if seed:
                seed_demo_once(session)
            yield ContentStore(session)
    finally:
        engine.dispose()


__all__ = [
    "SORT_LIKES",
    "SORT_NEWEST",
    "AuthorRecord",
    "ConstraintViolation",
    "ContentRecord",
    "ContentStore",
    "ContentUpdate",
    "Credential",
    "FavoriteState",
    "LikeState",
    "MigrationError",
    "StoreError",
    "UserRecord",
    "get_store",
    "migrate",
    "normalize",
    "open_store",
    "reserve_unique_slug",
    "seed_demo_once",
]
