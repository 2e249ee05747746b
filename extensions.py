import sqlite3

from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from sqlalchemy import event
from sqlalchemy.engine import Engine

# Extensions are created unbound; create_app() attaches them.

# Database
db = SQLAlchemy()

# Sessions and authentication
login_manager = LoginManager()


# --- SQLite connection setup ---
# pysqlite manages BEGIN on its own and skips it for DDL, which breaks SAVEPOINTs
# and transactional migrations. Switch the driver to autocommit and let
# SQLAlchemy emit BEGIN itself.

@event.listens_for(Engine, "connect")
def _sqlite_on_connect(dbapi_connection, connection_record):
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.close()


@event.listens_for(Engine, "begin")
def _sqlite_on_begin(conn):
    if conn.dialect.name == "sqlite":
        conn.exec_driver_sql("BEGIN")
