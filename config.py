import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _default_database_uri() -> str:
    """DATABASE_URI wins, then DB_FILE, then data/app.db (created on demand)."""
    uri = os.getenv('DATABASE_URI')
    if uri:
        return uri
    db_file = os.getenv('DB_FILE')
    if not db_file:
        data_dir = os.path.join(BASE_DIR, 'data')
        os.makedirs(data_dir, exist_ok=True)
        db_file = os.path.join(data_dir, 'app.db')
    return 'sqlite:///' + os.path.abspath(db_file)


class Config:
    SECRET_KEY = os.getenv('SESSION_SECRET', os.getenv('SECRET_KEY', 'dev-secret-change-me'))
    SQLALCHEMY_DATABASE_URI = _default_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'static', 'uploads'))
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024
    PERMANENT_SESSION_LIFETIME = 60 * 60 * 8
    SESSION_COOKIE_HTTPONLY = True
    SEED_DEMO = os.getenv('SEED_DEMO', '1').lower() not in ('0', 'false', 'no')
