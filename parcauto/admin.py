import os

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from parcauto.auth import admin_required
from parcauto.db import get_store
from parcauto.forms import car_fields_from_form
from parcauto.logger import get_logger
from parcauto.uploads import (
    ensure_upload_dir,
    has_file,
    remove_upload,
    remove_uploads,
    save_owner_photo,
    save_submission,
)
from parcauto.views import owner_photo_url

logger = get_logger(__name__)

ALLOWED_IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

bp = Blueprint("admin", __name__, url_prefix="/admin")
bp.before_request(admin_required)


def validate_images(images):
    for image in images:
        _, ext = os.path.splitext(image.filename.lower())
        if ext not in ALLOWED_IMAGE_EXTS:
            return False, "Only JPG, PNG, GIF and WEBP images are allowed."
    return True, ""


def read_submission(require_title):
    """
    Collect car fields and uploaded files from the current request.

    Returns ``(fields, cover, gallery, error)``. Only fields present in the
    form are returned so an edit can change any subset of them.
    """
    fields = {
        name: value
        for name, value in car_fields_from_form(request.form).items()
        if name in request.form
    }
    cover = request.files.get("image")
    cover = cover if has_file(cover) else None
    gallery = [image for image in request.files.getlist("gallery") if has_file(image)]

    if (require_title or "title" in request.form) and not fields.get("title"):
        return fields, cover, gallery, "Title is required."
    max_gallery = current_app.config["MAX_GALLERY_IMAGES"]
    if len(gallery) > max_gallery:
        return fields, cover, gallery, f"You can upload up to {max_gallery} gallery photos."
    ok, msg = validate_images(([cover] if cover else []) + gallery)
    if not ok:
        return fields, cover, gallery, msg
    return fields, cover, gallery, None


@bp.route("/cars")
def list_cars():
    return render_template("admin_list.html", cars=get_store().list_cars())


@bp.route("/cars/new")
def new_car():
    return render_template("admin_form.html", car=None, images=[], values={})


@bp.route("/cars", methods=["POST"])
def create_car():
    fields, cover, gallery, error = read_submission(require_title=True)
    if error:
        flash(error)
        return render_template("admin_form.html", car=None, images=[], values=request.form), 400

    upload_dir = current_app.config["UPLOAD_DIR"]
    ensure_upload_dir(upload_dir)
    fields["image"], gallery_paths = save_submission(cover, gallery, upload_dir)
    try:
        car_id = get_store().insert_car(fields, gallery_paths)
    except Exception:
        remove_uploads([fields["image"]] + gallery_paths, upload_dir)
        raise
    logger.info("Created car %s with %d gallery images", car_id, len(gallery_paths))
    return redirect(url_for("admin.list_cars"))


@bp.route("/cars/<int:car_id>/edit")
def edit_car(car_id):
    store = get_store()
    car = store.get_car(car_id)
    if not car:
        abort(404, "Car not found.")
    return render_template(
        "admin_form.html", car=car, images=store.list_images(car_id), values={}
    )


@bp.route("/cars/<int:car_id>", methods=["POST"])
def update_car(car_id):
    store = get_store()
    car = store.get_car(car_id)
    if not car:
        abort(404, "Car not found.")

    fields, cover, gallery, error = read_submission(require_title=False)
    if error:
        flash(error)
        return (
            render_template(
                "admin_form.html",
                car=car,
                images=store.list_images(car_id),
                values=request.form,
            ),
            400,
        )

    upload_dir = current_app.config["UPLOAD_DIR"]
    ensure_upload_dir(upload_dir)
    cover_path, gallery_paths = save_submission(cover, gallery, upload_dir)
    if cover_path:
        fields["image"] = cover_path
    try:
        updated = store.update_car(car_id, fields, gallery_paths)
    except Exception:
        remove_uploads([fields.get("image")] + gallery_paths, upload_dir)
        raise
    if not updated:
        # Deleted by a concurrent request after the lookup above.
        remove_uploads([fields.get("image")] + gallery_paths, upload_dir)
        abort(404, "Car not found.")

    if cover and car["image"]:
        remove_upload(car["image"], upload_dir)
    logger.info("Updated car %s (%d new gallery images)", car_id, len(gallery_paths))
    return redirect(url_for("admin.list_cars"))


@bp.route("/cars/<int:car_id>/delete", methods=["POST"])
def delete_car(car_id):
    store = get_store()
    car = store.get_car(car_id)
    if not car:
        abort(404, "Car not found.")
    images = store.list_images(car_id)
    if not store.delete_car(car_id):
        abort(404, "Car not found.")

    failed = remove_uploads(
        [car["image"]] + [image["image"] for image in images],
        current_app.config["UPLOAD_DIR"],
    )
    if failed:
        logger.warning("Car %s deleted, %d image files left on disk", car_id, len(failed))
    else:
        logger.info("Deleted car %s", car_id)
    return redirect(url_for("admin.list_cars"))


@bp.route("/cars/<int:car_id>/images/<int:image_id>/delete", methods=["POST"])
def delete_car_image(car_id, image_id):
    store = get_store()
    image = store.get_image(image_id, car_id)
    if image and store.delete_image(image_id, car_id):
        remove_upload(image["image"], current_app.config["UPLOAD_DIR"])
        logger.info("Removed gallery image %s from car %s", image_id, car_id)
    else:
        flash("Image not found.")
    return redirect(url_for("admin.edit_car", car_id=car_id))


@bp.route("/owner-photo", methods=["GET", "POST"])
def owner_photo():
    if request.method == "POST":
        photo = request.files.get("photo")
        if not has_file(photo):
            flash("Please choose a photo.")
            return render_template("owner_photo.html", owner_photo=owner_photo_url()), 400
        ok, msg = validate_images([photo])
        if not ok:
            flash(msg)
            return render_template("owner_photo.html", owner_photo=owner_photo_url()), 400
        upload_dir = current_app.config["UPLOAD_DIR"]
        ensure_upload_dir(upload_dir)
        save_owner_photo(photo, upload_dir)
        return redirect(url_for("public.home"))
    return render_template("owner_photo.html", owner_photo=owner_photo_url())
