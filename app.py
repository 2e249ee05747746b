import logging
import os

from flask import Flask, render_template
from dotenv import load_dotenv

load_dotenv()

from config import Config  # noqa: E402  (load_dotenv needs to run first)
from extensions import db, login_manager  # noqa: E402  (load_dotenv needs to run first)

logger = logging.getLogger(__name__)


def create_app(overrides: dict | None = None) -> Flask:
    """Application factory for the movie site.

    Migrates the schema before returning; a ``MigrationError`` propagates and
    the app is never created against a half-migrated database.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "accounts.login"
    login_manager.login_message = "Bitte melde dich an."

    # blueprints
    from modules.accounts import bp as accounts_bp
    from modules.contents import bp as contents_bp

    app.register_blueprint(accounts_bp)
    app.register_blueprint(contents_bp)

    # DB
    from store import migrate, seed_demo_once

    with app.app_context():
        logger.info("using database %s", db.engine.url)
        migrate(db.engine)
        if app.config.get("SEED_DEMO"):
            seed_demo_once(db.session)

    # uploads dir
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # --- template helpers ---
    from models import CATEGORIES
    from permissions import can_edit
    from utils import format_date

    app.add_template_filter(format_date)

    @app.context_processor
    def inject_helpers():
        return dict(can_edit=can_edit, categories=CATEGORIES)

    _register_error_handlers(app)
    return app


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(403)
    def forbidden(_err):
        return render_template(
            "error.html",
            title="403 – Kein Zugriff",
            message="Du hast keine Berechtigung für diese Aktion.",
        ), 403

    @app.errorhandler(404)
    def not_found(_err):
        return render_template(
            "error.html",
            title="404 – Nicht gefunden",
            message="Die angeforderte Seite wurde nicht gefunden.",
        ), 404

    @app.errorhandler(500)
    def server_error(err):
        logger.error("unhandled error: %s", getattr(err, "original_exception", err))
        return render_template(
            "error.html",
            title="500 – Serverfehler",
            message="Ein unerwarteter Fehler ist aufgetreten.",
        ), 500


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
