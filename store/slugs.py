"""URL slugs for content titles.

``normalize`` is pure; ``reserve_unique_slug`` reads the current slugs and
picks the first free ``base``, ``base-2``, ``base-3``, ... The unique index on
``contents.slug`` is what actually prevents duplicates under concurrent writers.
"""

import re
import unicodedata

from sqlalchemy import exists, select

from models import Content

FALLBACK_SLUG = "eintrag"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DASHES = re.compile(r"-{2,}")


def normalize(text: str | None) -> str:
    """'Die Zeitmaschine!' -> 'die-zeitmaschine', 'Café & Kuchen' -> 'cafe-und-kuchen'."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text).lower())
    value = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    value = value.replace("&", " und ")
    value = _NON_ALNUM.sub("-", value).strip("-")
    return _DASHES.sub("-", value)


def slug_taken(conn, slug: str) -> bool:
    return bool(conn.scalar(select(exists().where(Content.slug == slug))))


def reserve_unique_slug(conn, candidate: str) -> str:
    """``conn`` may be a Session or a Connection; both are used (store and migration)."""
    base = candidate or FALLBACK_SLUG
    if not slug_taken(conn, base):
        return base
    n = 2
    while slug_taken(conn, f"{base}-{n}"):
        n += 1
    return f"{base}-{n}"
