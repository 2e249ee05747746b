"""Accounts module package: registration, login, user list."""

from flask import Blueprint

bp = Blueprint("accounts", __name__)

from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "routes"]
