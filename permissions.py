# permissions.py
"""
Access rules.

Roles: admin, user, editor. Content may be edited or deleted by its owner
or by an admin; every other write only needs a logged-in user.
"""

from flask import abort
from flask_login import current_user


def has_role(role: str, user=None) -> bool:
    user = user if user is not None else current_user
    return bool(user and user.is_authenticated and getattr(user, "role", None) == role)


def is_admin(user=None) -> bool:
    return has_role("admin", user)


def can_edit(item, user=None) -> bool:
    """Template helper: may the (current) user edit or delete ``item``?"""
    user = user if user is not None else current_user
    if not item or not user or not user.is_authenticated:
        return False
    return is_admin(user) or item.owner_id == user.id


def ensure_can_edit(item) -> None:
    if not can_edit(item):
        abort(403)
