import os

from flask import (
    Blueprint,
    abort,
    current_app,
    jsonify,
    redirect,
    render_template,
    request,
    send_from_directory,
    url_for,
)

from parcauto.auth import check_admin_password, is_authenticated, log_in, log_out
from parcauto.config import OWNER_PHOTO_FILENAME
from parcauto.db import get_store
from parcauto.forms import parse_id_list
from parcauto.logger import get_logger
from parcauto.search import SearchFilters
from parcauto.uploads import owner_photo_path, public_path

logger = get_logger(__name__)

bp = Blueprint("public", __name__)


def owner_photo_url():
    file_path = owner_photo_path(current_app.config["UPLOAD_DIR"])
    if not os.path.isfile(file_path):
        return None
    # Same filename on every replace, so bust browser caches with the mtime.
    return f"{public_path(OWNER_PHOTO_FILENAME)}?v={int(os.path.getmtime(file_path))}"


def filter_choices(store, column, selected):
    # Exact-match filters only offer values that listings actually use.
    choices = store.distinct_values(column)
    if selected and selected not in choices:
        choices.append(selected)
    return choices


@bp.app_context_processor
def inject_site_context():
    return {
        "app_name": current_app.config["APP_NAME"],
        "is_authenticated": is_authenticated(),
        "owner": current_app.config["OWNER"],
    }


@bp.route("/")
def home():
    cars = get_store().list_cars()
    return render_template("home.html", cars=cars, owner_photo=owner_photo_url())


@bp.route("/cars")
def cars():
    filters = SearchFilters.from_args(request.args)
    store = get_store()
    return render_template(
        "cars.html",
        cars=store.search_cars(filters),
        filters=filters.form_values(),
        fuel_options=filter_choices(store, "fuel_type", filters.fuel),
        transmission_options=filter_choices(store, "transmission", filters.transmission),
    )


@bp.route("/cars/<int:car_id>")
def car_detail(car_id):
    store = get_store()
    car = store.get_car(car_id)
    if not car:
        abort(404, "Car not found.")
    images = store.list_images(car_id)
    return render_template(
        "car_detail.html", car=car, images=images, owner_photo=owner_photo_url()
    )


# Favorites are kept in the browser; this resolves their ids into cars.
@bp.route("/api/cars")
def api_cars():
    ids = parse_id_list(request.args.get("ids"))
    return jsonify(get_store().get_cars_by_ids(ids))


@bp.route("/favorites")
def favorites():
    return render_template("favorites.html")


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        if check_admin_password(request.form.get("password", "")):
            log_in()
            logger.info("Admin logged in from %s", request.remote_addr)
            return redirect(url_for("admin.list_cars"))
        logger.warning("Failed admin login from %s", request.remote_addr)
        return render_template("login.html", error="Incorrect password."), 401
    return render_template("login.html", error=None)


@bp.route("/logout", methods=["POST"])
def logout():
    log_out()
    return redirect(url_for("public.home"))


@bp.route("/uploads/<path:filename>")
def uploaded_file(filename):
    return send_from_directory(current_app.config["UPLOAD_DIR"], filename)


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})
