"""
Placement of uploaded images under the uploads directory.

Car covers and gallery images get collision-resistant generated names. The
owner portrait always goes to the same file. Stored rows keep the public path
(``/uploads/<name>``), which ``remove_upload`` maps back to the disk file.
"""

import os
import random
import time

from werkzeug.utils import secure_filename

from parcauto.config import OWNER_PHOTO_FILENAME, UPLOADS_URL_PREFIX
from parcauto.logger import get_logger

logger = get_logger(__name__)


def ensure_upload_dir(upload_dir):
    os.makedirs(upload_dir, exist_ok=True)


def has_file(file_storage):
    return bool(file_storage and file_storage.filename)


def generate_filename(original_name):
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}"
    _, ext = os.path.splitext(original_name or "")
    ext = ext.lower()
    # The stem may be non-ASCII; only the suffix has to survive sanitising.
    if ext and secure_filename("x" + ext) != "x" + ext:
        ext = ""
    return f"car-{unique}{ext}"


def public_path(filename):
    return f"{UPLOADS_URL_PREFIX}/{filename}"


def save_car_image(file_storage, upload_dir):
    """Write one uploaded car image and return its public path."""
    filename = generate_filename(file_storage.filename)
    file_storage.save(os.path.join(upload_dir, filename))
    return public_path(filename)


def save_submission(cover, gallery, upload_dir):
    """
    Write the cover (if any) and gallery files of one car submission.

    Returns ``(cover_path, gallery_paths)``. If any write fails, the files
    already written for this submission are removed before re-raising.
    """
    saved = []
    try:
        cover_path = save_car_image(cover, upload_dir) if cover else None
        if cover_path:
            saved.append(cover_path)
        gallery_paths = []
        for file_storage in gallery:
            gallery_paths.append(save_car_image(file_storage, upload_dir))
            saved.append(gallery_paths[-1])
    except Exception:
        remove_uploads(saved, upload_dir)
        raise
    return cover_path, gallery_paths


def owner_photo_path(upload_dir):
    return os.path.join(upload_dir, OWNER_PHOTO_FILENAME)


def save_owner_photo(file_storage, upload_dir):
    """Replace the owner portrait. Last upload wins."""
    file_storage.save(owner_photo_path(upload_dir))
    logger.info("Owner portrait replaced")
    return public_path(OWNER_PHOTO_FILENAME)


def resolve_upload(image_path, upload_dir):
    """Map a stored public path to a file inside ``upload_dir`` or ``None``."""
    if not image_path:
        return None
    prefix = UPLOADS_URL_PREFIX + "/"
    if not image_path.startswith(prefix):
        return None
    filename = image_path[len(prefix):]
    if not filename or filename != os.path.basename(filename) or filename in (".", ".."):
        return None
    return os.path.join(upload_dir, filename)


def remove_upload(image_path, upload_dir):
    """
    Delete the file behind a stored image path.

    Returns True when a file was removed. Failures are logged and reported
    through the return value only, so callers never fail on cleanup.
    """
    file_path = resolve_upload(image_path, upload_dir)
    if file_path is None:
        if image_path:
            logger.warning("Refusing to remove %r: not an uploaded file", image_path)
        return False
    try:
        os.remove(file_path)
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", file_path, exc)
        return False
    logger.debug("Removed upload %s", file_path)
    return True


def remove_uploads(image_paths, upload_dir):
    """Remove several uploads; return the paths that could not be removed."""
    return [path for path in image_paths if path and not remove_upload(path, upload_dir)]
