"""HTTP routes for movie entries, likes and favorites."""

import logging
from dataclasses import replace

from flask import (
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    send_from_directory,
    url_for,
)
from flask_login import current_user, login_required

from models import CATEGORIES
from permissions import ensure_can_edit
from store import SORT_LIKES, SORT_NEWEST, ConstraintViolation, ContentUpdate, get_store
from utils import allowed_file, handle_file_upload, remove_upload

from . import bp

logger = logging.getLogger(__name__)

HOME_ITEMS_PER_CATEGORY = 3
HOME_TOP_RATED = 3


@bp.before_app_request
def canonical_lowercase():
    """/content/Die-Zeitmaschine -> 301 /content/die-zeitmaschine"""
    path = request.path
    if path.startswith("/content/") and path != path.lower():
        query = request.query_string.decode()
        return redirect(path.lower() + (f"?{query}" if query else ""), code=301)
    return None


def _content_or_404(slug: str):
    item = get_store().find_content_by_slug(slug)
    if item is None:
        abort(404)
    return item


def _validate(form) -> tuple[dict, list[str]]:
    values = {
        "title": form.get("title", "").strip(),
        "description": form.get("description", "").strip(),
        "category": form.get("category", ""),
    }
    errors = []
    if not values["title"]:
        errors.append("Titel ist erforderlich.")
    if not values["description"]:
        errors.append("Beschrieb ist erforderlich.")
    if values["category"] not in CATEGORIES:
        errors.append("Ungültige Kategorie.")
    return values, errors


def _flash_all(errors: list[str]) -> None:
    for error in errors:
        flash(error, "warning")


def _back_to(item):
    return redirect(request.referrer or url_for("contents.detail", slug=item.slug))


# ---------- Pages ----------

@bp.route("/")
def home():
    items = get_store().list_contents()
    groups = []
    for category in CATEGORIES:
        in_category = [i for i in items if i.category == category][:HOME_ITEMS_PER_CATEGORY]
        if in_category:
            groups.append({"category": category, "items": in_category})
    top_rated = sorted(items, key=lambda i: i.like_count, reverse=True)[:HOME_TOP_RATED]
    return render_template("home.html", title="Movie Rating App", groups=groups, top_rated=top_rated)


@bp.route("/about")
def about():
    return render_template("about.html", title="Über uns")


@bp.route("/uploads/<path:filename>")
def uploaded_file(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)


@bp.route("/content")
def content_list():
    category = request.args.get("category", "")
    category = category if category in CATEGORIES else ""
    author_id = request.args.get("author", type=int)
    author_id = author_id if author_id and author_id > 0 else None
    sort = SORT_LIKES if request.args.get("sort") == SORT_LIKES else SORT_NEWEST

    store = get_store()
    items = store.list_contents_filtered(category=category or None, owner_id=author_id, sort=sort)
    return render_template(
        "content_list.html",
        title="Filme",
        items=items,
        authors=store.list_authors(),
        selected_category=category,
        selected_author_id=author_id,
        selected_sort=sort,
        has_filter_active=bool(category or author_id or sort == SORT_LIKES),
    )


# ---------- CRUD ----------

@bp.route("/content/new")
@login_required
def content_new():
    return render_template("content_new.html", title="Neuer Film", values={})


@bp.route("/content", methods=["POST"])
@login_required
def content_create():
    values, errors = _validate(request.form)
    image = request.files.get("image")
    if not allowed_file(image):
        errors.append("Bild ist erforderlich (jpg, png, webp, gif).")
    if errors:
        _flash_all(errors)
        return render_template("content_new.html", title="Neuer Film", values=values), 400

    upload_folder = current_app.config["UPLOAD_FOLDER"]
    image_path = handle_file_upload(image, upload_folder)
    try:
        get_store().create_content(
            title=values["title"],
            description=values["description"],
            category=values["category"],
            image_path=image_path,
            owner_id=current_user.id,
        )
    except ConstraintViolation as exc:
        logger.warning("content not created: %s", exc)
        remove_upload(image_path, upload_folder)
        flash("Der Film konnte nicht gespeichert werden. Bitte erneut versuchen.", "warning")
        return render_template("content_new.html", title="Neuer Film", values=values), 400
    flash("Film gespeichert.", "success")
    return redirect(url_for("contents.content_list"))


@bp.route("/content/<slug>")
def detail(slug):
    item = _content_or_404(slug)
    store = get_store()
    liked = in_favorites = False
    if current_user.is_authenticated:
        liked = store.has_user_liked(current_user.id, item.id)
        in_favorites = store.is_favorite(current_user.id, item.id)
    return render_template(
        "detail.html",
        title=item.title,
        item=item,
        like_count=store.get_like_count(item.id),
        is_liked=liked,
        favorite=in_favorites,
    )


@bp.route("/content/id/<int:content_id>")
def detail_by_id(content_id):
    item = get_store().find_content_by_id(content_id)
    if item is None:
        abort(404)
    return redirect(url_for("contents.detail", slug=item.slug), code=301)


@bp.route("/content/<slug>/edit", methods=["GET", "POST"])
@login_required
def content_edit(slug):
    item = _content_or_404(slug)
    ensure_can_edit(item)

    if request.method == "GET":
        return render_template("content_edit.html", title=f"Bearbeiten: {item.title}", item=item)

    values, errors = _validate(request.form)
    image = request.files.get("image")
    has_new_image = bool(image and image.filename)
    if has_new_image and not allowed_file(image):
        errors.append("Nur Bilddateien (jpg, png, webp, gif) erlaubt.")
    if errors:
        _flash_all(errors)
        return render_template(
            "content_edit.html",
            title=f"Bearbeiten: {item.title}",
            item=replace(item, **values),
        ), 400

    upload_folder = current_app.config["UPLOAD_FOLDER"]
    new_image_path = handle_file_upload(image, upload_folder) if has_new_image else None
    get_store().update_content(ContentUpdate(id=item.id, image_path=new_image_path, **values))
    if new_image_path:
        remove_upload(item.image_path, upload_folder)
    flash("Film aktualisiert.", "success")
    return redirect(url_for("contents.detail", slug=item.slug))


@bp.route("/content/<slug>/delete", methods=["POST"])
@login_required
def content_delete(slug):
    item = _content_or_404(slug)
    ensure_can_edit(item)
    if get_store().delete_content_by_id(item.id):
        remove_upload(item.image_path, current_app.config["UPLOAD_FOLDER"])
        logger.info("content %s deleted by user %s", item.id, current_user.id)
        flash("Film gelöscht.", "success")
    return redirect(url_for("contents.content_list"))


# ---------- Likes & favorites ----------

@bp.route("/content/<slug>/like", methods=["POST"])
@login_required
def like(slug):
    item = _content_or_404(slug)
    get_store().toggle_like(current_user.id, item.id)
    return _back_to(item)


@bp.route("/content/<slug>/fav", methods=["POST"])
@login_required
def favorite(slug):
    item = _content_or_404(slug)
    get_store().toggle_favorite(current_user.id, item.id)
    return _back_to(item)


@bp.route("/me/favorites")
@login_required
def my_favorites():
    items = get_store().list_favorites_of_user(current_user.id)
    return render_template("favorites_list.html", title="Meine Favoriten", items=items)
