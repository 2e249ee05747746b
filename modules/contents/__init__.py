"""Contents module package: movie entries, likes, favorites."""

from flask import Blueprint

bp = Blueprint("contents", __name__)

from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "routes"]
