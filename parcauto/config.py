"""
Application settings.

Values come from environment variables (a local ``.env`` file is loaded with
python-dotenv) with development defaults. ``build_config`` turns them into the
mapping handed to ``Flask.config``; tests pass their own overrides on top.
"""

import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

APP_NAME = "ParcAuto"

# Insecure defaults, only acceptable for local development.
DEFAULT_ADMIN_PASSWORD = "change-me"
DEFAULT_SECRET_KEY = "change-me-in-production"

DATABASE_FILENAME = "parcauto.db"
UPLOADS_URL_PREFIX = "/uploads"
OWNER_PHOTO_FILENAME = "owner-photo.jpg"
MAX_GALLERY_IMAGES = 10

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_config():
    # Relative to the working directory, never the installed package.
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "data"))
    return {
        "APP_NAME": APP_NAME,
        "PORT": int(os.getenv("PORT", "3000")),
        "SECRET_KEY": os.getenv("SESSION_SECRET", DEFAULT_SECRET_KEY),
        "ADMIN_PASSWORD": os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
        "ADMIN_PASSWORD_HASH": os.getenv("ADMIN_PASSWORD_HASH"),
        "DATA_DIR": data_dir,
        "DATABASE": None,
        "UPLOAD_DIR": None,
        "MAX_GALLERY_IMAGES": MAX_GALLERY_IMAGES,
        "PERMANENT_SESSION_LIFETIME": timedelta(days=7),
        # Sessions expire 7 days after login, activity does not extend them.
        "SESSION_REFRESH_EACH_REQUEST": False,
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "LOG_FILE": os.getenv("LOG_FILE"),
        "OWNER": {
            "name": os.getenv("OWNER_NAME", "Park owner"),
            "phone": os.getenv("OWNER_PHONE", ""),
            "email": os.getenv("OWNER_EMAIL", ""),
            "snap": os.getenv("OWNER_SNAPCHAT", ""),
            "address": os.getenv("OWNER_ADDRESS", ""),
        },
    }


def resolve_paths(config):
    """Fill in the database and upload paths derived from ``DATA_DIR``."""
    if not config.get("DATABASE"):
        config["DATABASE"] = os.path.join(config["DATA_DIR"], DATABASE_FILENAME)
    if not config.get("UPLOAD_DIR"):
        config["UPLOAD_DIR"] = os.path.join(config["DATA_DIR"], "uploads")
