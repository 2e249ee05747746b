"""Errors raised by the content store.

Lookups that find nothing return ``None`` (or ``0`` for update/delete counts);
only writes and startup raise.
"""


class StoreError(RuntimeError):
    """Base class for content store failures."""


class ConstraintViolation(StoreError):
    """A write was rejected: duplicate slug/email, missing parent row or unknown category/role."""


class MigrationError(StoreError):
    """The schema could not be brought up to date. The app must not start."""
