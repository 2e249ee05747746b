"""HTTP routes for registration, login and the user list."""

import logging
import re

from flask import flash, redirect, render_template, request, url_for
from flask_login import login_required, login_user, logout_user
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db, login_manager
from models import User
from store import ConstraintViolation, get_store

from . import bp

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
_SAFE_NEXT = re.compile(r"^/(?!/)\S*$")


@login_manager.user_loader
def load_user(user_id: str | None) -> User | None:
    """Resolve a ``User`` instance for Flask-Login sessions."""

    if not user_id:
        return None
    return db.session.get(User, int(user_id))


def _safe_next(target: str | None) -> str:
    if target and _SAFE_NEXT.match(target):
        return target
    return url_for("contents.content_list")


@bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "GET":
        return render_template("register.html", title="Registrieren")

    name = request.form.get("name", "").strip()
    email = request.form.get("email", "").strip().lower()
    password = request.form.get("password", "")
    confirm = request.form.get("password_confirm", "")

    errors = []
    if not name:
        errors.append("Name ist erforderlich.")
    if not email:
        errors.append("E-Mail ist erforderlich.")
    if not password:
        errors.append("Passwort ist erforderlich.")
    if password != confirm:
        errors.append("Passwörter stimmen nicht überein.")
    if password and len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Passwort muss mind. {MIN_PASSWORD_LENGTH} Zeichen lang sein.")

    store = get_store()
    if email and store.find_user_by_email(email):
        errors.append("Diese E-Mail ist bereits registriert.")

    user_id = None
    if not errors:
        try:
            user_id = store.create_user(name, email, generate_password_hash(password))
        except ConstraintViolation:
            # registered concurrently between the lookup and the insert
            errors.append("Diese E-Mail ist bereits registriert.")

    if errors:
        for error in errors:
            flash(error, "warning")
        return render_template(
            "register.html",
            title="Registrieren",
            values={"name": name, "email": email},
        ), 400

    login_user(db.session.get(User, user_id))
    logger.info("registered user %s", user_id)
    flash(f"Willkommen, {name}!", "success")
    return redirect(url_for("contents.content_list"))


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        return render_template("login.html", title="Login", next=request.args.get("next", ""))

    email = request.form.get("email", "").strip().lower()
    password = request.form.get("password", "")
    next_url = request.form.get("next", "")

    if not email or not password:
        flash("E-Mail und Passwort sind erforderlich.", "warning")
        return render_template(
            "login.html",
            title="Login",
            values={"email": email},
            next=next_url,
        ), 400

    credential = get_store().find_user_by_email(email)
    if not credential or not credential.password_hash \
            or not check_password_hash(credential.password_hash, password):
        flash("E-Mail oder Passwort ist falsch.", "warning")
        return render_template(
            "login.html",
            title="Login",
            values={"email": email},
            next=next_url,
        ), 401

    login_user(db.session.get(User, credential.id))
    return redirect(_safe_next(next_url))


@bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    flash("Du bist abgemeldet.", "info")
    return redirect(url_for("contents.home"))


@bp.route("/users")
@login_required
def users():
    return render_template("users.html", title="Benutzer", users=get_store().list_users())
