from flask import current_app, redirect, session, url_for
from werkzeug.security import check_password_hash, generate_password_hash

from parcauto.config import DEFAULT_ADMIN_PASSWORD, DEFAULT_SECRET_KEY
from parcauto.logger import get_logger

logger = get_logger(__name__)


def init_auth(app):
    """Hash the admin secret once and warn about insecure defaults."""
    if not app.config.get("ADMIN_PASSWORD_HASH"):
        app.config["ADMIN_PASSWORD_HASH"] = generate_password_hash(app.config["ADMIN_PASSWORD"])
    # Only the hash is kept around after startup.
    app.config.pop("ADMIN_PASSWORD", None)

    if check_password_hash(app.config["ADMIN_PASSWORD_HASH"], DEFAULT_ADMIN_PASSWORD):
        logger.warning("ADMIN_PASSWORD is the built-in default; set it before exposing the site")
    if app.config.get("SECRET_KEY") == DEFAULT_SECRET_KEY:
        logger.warning("SESSION_SECRET is the built-in default; set it before exposing the site")


def is_authenticated():
    return bool(session.get("authenticated"))


def check_admin_password(password):
    if not password:
        return False
    return check_password_hash(current_app.config["ADMIN_PASSWORD_HASH"], password)


def log_in():
    session.clear()
    session.permanent = True
    session["authenticated"] = True


def log_out():
    session.clear()


def admin_required():
    """``before_request`` hook for admin routes: redirect anonymous users to login."""
    if not is_authenticated():
        return redirect(url_for("public.login"))
    return None
