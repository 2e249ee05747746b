import os
import secrets
import time
from datetime import datetime

from werkzeug.utils import secure_filename

ALLOWED_EXTENSIONS = {'jpg', 'jpeg', 'png', 'webp', 'gif'}
ALLOWED_MIMETYPES = {'image/jpeg', 'image/png', 'image/webp', 'image/gif'}
UPLOAD_URL_PREFIX = '/uploads/'


def _extension(filename):
    name = secure_filename(filename or '')
    return name.rsplit('.', 1)[1].lower() if '.' in name else ''


def allowed_file(file):
    """True for an uploaded image with an allowed extension and mimetype."""
    return bool(file and file.filename) \
        and _extension(file.filename) in ALLOWED_EXTENSIONS \
        and file.mimetype in ALLOWED_MIMETYPES


def handle_file_upload(file, upload_folder):
    """Save the upload under a random name and return its web path, or None if not an image."""
    if not allowed_file(file):
        return None
    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(8)}.{_extension(file.filename)}"
    file.save(os.path.join(upload_folder, filename))
    return UPLOAD_URL_PREFIX + filename


def remove_upload(web_path, upload_folder):
    """Delete a file previously returned by handle_file_upload. Missing files are ignored."""
    if not web_path or not web_path.startswith(UPLOAD_URL_PREFIX):
        return False
    path = os.path.join(upload_folder, os.path.basename(web_path))
    if not os.path.isfile(path):
        return False
    os.remove(path)
    return True


def format_date(value):
    """de-CH short date, e.g. 2.11.2024."""
    if not isinstance(value, datetime):
        return ''
    return f"{value.day}.{value.month}.{value.year}"
