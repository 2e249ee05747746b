"""Schema migration against fresh and legacy databases."""

import pytest
from sqlalchemy import create_engine, inspect

from store import MigrationError, migrate, open_store
from store.slugs import FALLBACK_SLUG

LEGACY_SCHEMA = [
    """
    CREATE TABLE users (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      name TEXT NOT NULL,
      role TEXT NOT NULL DEFAULT 'user',
      created_at TEXT
    )
    """,
    """
    CREATE TABLE contents (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      title TEXT NOT NULL,
      description TEXT NOT NULL,
      category TEXT NOT NULL,
      image_path TEXT NOT NULL,
      owner_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
      created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    "INSERT INTO users (name, role, created_at) VALUES ('Max', 'admin', '2024-11-02 10:00:00')",
    "INSERT INTO users (name, role, created_at) VALUES ('Erika', 'user', '')",
    """
    INSERT INTO contents (title, description, category, image_path, owner_id) VALUES
      ('Die Zeitmaschine!', 'a', 'sifi', '/uploads/1.png', 1),
      ('die zeitmaschine', 'b', 'sifi', '/uploads/2.png', 2),
      ('???', 'c', 'horror', '/uploads/3.png', 2)
    """,
]


@pytest.fixture()
def engine():
    engine = create_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture()
def legacy_engine(engine):
    with engine.begin() as conn:
        for ddl in LEGACY_SCHEMA:
            conn.exec_driver_sql(ddl)
    return engine


def _columns(engine, table):
    return {c["name"] for c in inspect(engine).get_columns(table)}


def _index_names(engine, table):
    with engine.connect() as conn:
        return {row[1] for row in conn.exec_driver_sql(f"PRAGMA index_list({table})")}


def test_fresh_database_gets_full_schema(engine):
    migrate(engine)

    tables = set(inspect(engine).get_table_names())
    assert {"users", "contents", "likes", "favorites", "app_meta"} <= tables
    assert {"email", "password_hash"} <= _columns(engine, "users")
    assert "slug" in _columns(engine, "contents")
    assert "idx_users_email_nocase" in _index_names(engine, "users")
    assert "idx_contents_slug_unique" in _index_names(engine, "contents")
    assert {"idx_likes_content", "idx_likes_user"} <= _index_names(engine, "likes")


def test_migrate_is_repeatable(engine):
    migrate(engine)
    migrate(engine)
    assert "idx_contents_slug_unique" in _index_names(engine, "contents")


def test_legacy_schema_is_upgraded_in_place(legacy_engine):
    migrate(legacy_engine)

    assert {"email", "password_hash"} <= _columns(legacy_engine, "users")
    with legacy_engine.connect() as conn:
        slugs = [row[0] for row in conn.exec_driver_sql("SELECT slug FROM contents ORDER BY id")]
        blank_dates = conn.exec_driver_sql(
            "SELECT COUNT(*) FROM users WHERE created_at IS NULL OR TRIM(created_at) = ''"
        ).scalar()
        user_count = conn.exec_driver_sql("SELECT COUNT(*) FROM users").scalar()

    assert slugs == ["die-zeitmaschine", "die-zeitmaschine-2", FALLBACK_SLUG]
    assert blank_dates == 0
    assert user_count == 2
    assert "idx_contents_slug_unique" in _index_names(legacy_engine, "contents")


def test_legacy_rows_readable_through_store(tmp_path):
    db_file = tmp_path / "legacy.db"
    legacy = create_engine(f"sqlite:///{db_file}")
    with legacy.begin() as conn:
        for ddl in LEGACY_SCHEMA:
            conn.exec_driver_sql(ddl)
    legacy.dispose()

    with open_store(f"sqlite:///{db_file}") as store:
        item = store.find_content_by_slug("die-zeitmaschine-2")
        assert item is not None
        assert item.owner_name == "Erika"
        assert [u.name for u in store.list_users()] == ["Max", "Erika"]


def test_failed_migration_applies_nothing(engine):
    with engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, "
            "role TEXT NOT NULL DEFAULT 'user', email TEXT, created_at TEXT)"
        )
        conn.exec_driver_sql("CREATE UNIQUE INDEX idx_users_email_unique ON users(email)")
        conn.exec_driver_sql(
            "INSERT INTO users (name, email, created_at) VALUES "
            "('A', 'same@example.ch', '2024-01-01 00:00:00'), "
            "('B', 'SAME@example.ch', '2024-01-01 00:00:00')"
        )

    with pytest.raises(MigrationError):
        migrate(engine)

    assert "password_hash" not in _columns(engine, "users")
    assert "contents" not in inspect(engine).get_table_names()
    assert "idx_users_email_unique" in _index_names(engine, "users")


def test_open_store_seeds_demo_users_once(tmp_path):
    uri = f"sqlite:///{tmp_path / 'app.db'}"
    with open_store(uri, seed=True) as store:
        assert [(u.name, u.role) for u in store.list_users()] == [
            ("Max", "admin"), ("Erika", "user"), ("Sam", "editor"),
        ]
    with open_store(uri, seed=True) as store:
        assert len(store.list_users()) == 3
