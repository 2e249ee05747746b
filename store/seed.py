"""One-time demo data, guarded by a marker row in ``app_meta``."""

import logging

from models import AppMeta, User, utcnow

logger = logging.getLogger(__name__)

DEMO_SEED_KEY = "demo_seed_v1"
DEMO_USERS = [
    ("Max", "admin"),
    ("Erika", "user"),
    ("Sam", "editor"),
]


def seed_demo_once(session) -> bool:
    """Insert the demo users unless the marker exists. Returns True if anything was written."""
    if session.get(AppMeta, DEMO_SEED_KEY) is not None:
        return False

    with session.begin_nested():
        for name, role in DEMO_USERS:
            session.add(User(name=name, role=role))
        session.add(AppMeta(key=DEMO_SEED_KEY, value=utcnow().isoformat()))
    session.commit()
    logger.info("demo seed applied (%d users)", len(DEMO_USERS))
    return True
