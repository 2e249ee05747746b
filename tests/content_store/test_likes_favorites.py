"""Like and favorite toggles, cascades."""

import pytest
from sqlalchemy import delete, func, or_, select

from extensions import db
from models import Favorite, Like, User
from store import ConstraintViolation, ContentStore, FavoriteState, LikeState


@pytest.fixture()
def content_id(users, make_content):
    return make_content(users["user"])


def test_toggle_like_twice_restores_state(store, users, content_id):
    before = (store.has_user_liked(users["admin"], content_id), store.get_like_count(content_id))

    assert store.toggle_like(users["admin"], content_id) == LikeState(liked=True, count=1)
    assert store.has_user_liked(users["admin"], content_id)
    assert store.toggle_like(users["admin"], content_id) == LikeState(liked=False, count=0)

    after = (store.has_user_liked(users["admin"], content_id), store.get_like_count(content_id))
    assert before == after == (False, 0)


def test_likes_are_counted_per_user(store, users, content_id):
    store.toggle_like(users["admin"], content_id)
    state = store.toggle_like(users["user"], content_id)
    assert state == LikeState(liked=True, count=2)
    assert store.user_liked_ids(users["admin"]) == {content_id}


def test_toggle_favorite(store, users, content_id):
    assert store.toggle_favorite(users["user"], content_id) == FavoriteState(favorite=True)
    assert store.is_favorite(users["user"], content_id)
    assert not store.is_favorite(users["admin"], content_id)
    assert store.toggle_favorite(users["user"], content_id) == FavoriteState(favorite=False)
    assert not store.is_favorite(users["user"], content_id)


def test_likes_and_favorites_are_independent(store, users, content_id):
    store.toggle_like(users["user"], content_id)
    assert not store.is_favorite(users["user"], content_id)


def test_toggle_on_missing_content_fails(store, users):
    with pytest.raises(ConstraintViolation):
        store.toggle_like(users["user"], 404)
    assert store.get_like_count(404) == 0


def test_concurrent_insert_resolves_to_present(store, users, content_id, monkeypatch):
    """Another request adds the like right after our delete found nothing."""
    store.toggle_like(users["admin"], content_id)

    class NothingDeleted:
        rowcount = 0

    session = db.session()
    real_execute = session.execute

    def racing_execute(statement, *args, **kwargs):
        if getattr(statement, "is_delete", False):
            return NothingDeleted()
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(session, "execute", racing_execute)
    state = ContentStore(session).toggle_like(users["admin"], content_id)
    monkeypatch.undo()

    assert state == LikeState(liked=True, count=1)


def test_delete_content_cascades(store, users, content_id):
    store.toggle_like(users["admin"], content_id)
    store.toggle_like(users["user"], content_id)
    store.toggle_favorite(users["admin"], content_id)

    store.delete_content_by_id(content_id)

    for model in (Like, Favorite):
        remaining = store.session.scalar(
            select(func.count()).select_from(model).where(model.content_id == content_id)
        )
        assert remaining == 0
    assert store.get_like_count(content_id) == 0
    assert store.list_favorites_of_user(users["admin"]) == []


def test_favorites_listed_most_recent_first(store, users, make_content):
    first = make_content(users["user"], title="Erster")
    second = make_content(users["user"], title="Zweiter")
    store.toggle_favorite(users["admin"], second)
    store.toggle_favorite(users["admin"], first)

    favorites = store.list_favorites_of_user(users["admin"])
    assert [f.id for f in favorites] == [first, second]
    assert favorites[0].owner_name == "Bruno"
    assert store.list_favorites_of_user(users["user"]) == []


def test_delete_user_cascades_to_contents_likes_and_favorites(store, users, make_content):
    own = make_content(users["user"], title="Alien")
    foreign = make_content(users["admin"], title="Heat")
    store.toggle_like(users["admin"], own)
    store.toggle_favorite(users["admin"], own)
    store.toggle_like(users["user"], foreign)
    store.toggle_favorite(users["user"], foreign)

    store.session.execute(
        delete(User).where(User.id == users["user"]).execution_options(synchronize_session=False)
    )
    store.session.commit()

    assert store.find_content_by_id(own) is None
    assert store.find_content_by_id(foreign) is not None
    for model in (Like, Favorite):
        remaining = store.session.scalar(
            select(func.count()).select_from(model).where(
                or_(model.user_id == users["user"], model.content_id == own)
            )
        )
        assert remaining == 0
    assert store.get_like_count(foreign) == 0
    assert store.list_favorites_of_user(users["admin"]) == []
