"""Schema migration, run on every start.

Additive only: missing tables are created, missing columns are added in place,
derived values are backfilled and only then are the indexes created. The whole
run is one transaction; any failure raises ``MigrationError`` and nothing is
kept.
"""

import logging

from sqlalchemy import String, cast, func, inspect, or_, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateIndex

from extensions import db
from models import Content, User, utcnow
from store.errors import MigrationError
from store.slugs import normalize, reserve_unique_slug

logger = logging.getLogger(__name__)

# (table, column, DDL type) added to schemas deployed before the column existed
ADDED_COLUMNS = [
    ("users", "email", "TEXT"),
    ("users", "password_hash", "TEXT"),
    ("contents", "slug", "TEXT"),
]

# replaced by idx_users_email_nocase
LEGACY_INDEXES = ["idx_users_email_unique"]


def migrate(engine, metadata=None) -> None:
    metadata = metadata if metadata is not None else db.metadata
    try:
        with engine.begin() as conn:
            metadata.create_all(conn, checkfirst=True)
            _add_missing_columns(conn)
            _backfill_user_timestamps(conn)
            _backfill_slugs(conn)
            _drop_legacy_indexes(conn)
            _ensure_indexes(conn, metadata)
    except SQLAlchemyError as exc:
        logger.error("migration failed, nothing was applied: %s", exc)
        raise MigrationError(f"schema migration failed: {exc}") from exc


def _add_missing_columns(conn) -> None:
    inspector = inspect(conn)
    for table, column, ddl_type in ADDED_COLUMNS:
        existing = {c["name"] for c in inspector.get_columns(table)}
        if column in existing:
            continue
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl_type}"))
        logger.info("added column %s.%s", table, column)


def _blank(column):
    return or_(column.is_(None), func.trim(cast(column, String)) == "")


def _backfill_user_timestamps(conn) -> None:
    users = User.__table__
    result = conn.execute(
        update(users).where(_blank(users.c.created_at)).values(created_at=utcnow())
    )
    if result.rowcount:
        logger.info("backfilled created_at for %d users", result.rowcount)


def _backfill_slugs(conn) -> None:
    contents = Content.__table__
    rows = conn.execute(
        select(contents.c.id, contents.c.title)
        .where(_blank(contents.c.slug))
        .order_by(contents.c.id)
    ).all()
    for row in rows:
        slug = reserve_unique_slug(conn, normalize(row.title))
        conn.execute(update(contents).where(contents.c.id == row.id).values(slug=slug))
    if rows:
        logger.info("backfilled %d content slugs", len(rows))


def _drop_legacy_indexes(conn) -> None:
    for name in LEGACY_INDEXES:
        conn.execute(text(f"DROP INDEX IF EXISTS {name}"))


def _ensure_indexes(conn, metadata) -> None:
    # IF NOT EXISTS rather than reflection: SQLite does not reflect expression indexes
    for table in metadata.sorted_tables:
        for index in table.indexes:
            conn.execute(CreateIndex(index, if_not_exists=True))
