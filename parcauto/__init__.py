import os

import click
from flask import Flask

from parcauto.config import build_config, resolve_paths
from parcauto.logger import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(test_config=None):
    """
    Build the application: config, logging, data directories, the car store
    and the routes. Failing to prepare storage aborts startup.
    """
    from parcauto import admin, auth, views
    from parcauto.db import CarStore

    app = Flask(__name__, static_folder="static", static_url_path="/public")
    app.config.from_mapping(build_config())
    if test_config:
        app.config.update(test_config)
    resolve_paths(app.config)

    configure_logging(app.config["LOG_LEVEL"], app.config.get("LOG_FILE"))

    try:
        os.makedirs(app.config["DATA_DIR"], exist_ok=True)
        os.makedirs(app.config["UPLOAD_DIR"], exist_ok=True)
        store = CarStore(app.config["DATABASE"])
        store.migrate()
    except Exception:
        logger.critical("Could not prepare storage under %s", app.config["DATA_DIR"], exc_info=True)
        raise
    app.extensions["parcauto.store"] = store

    auth.init_auth(app)
    app.register_blueprint(views.bp)
    app.register_blueprint(admin.bp)

    @app.cli.command("init-db")
    def init_db_command():
        """Apply pending database migrations."""
        applied = store.migrate()
        click.echo(f"Database ready at {store.path} ({applied} migrations applied).")

    logger.info(
        "Started with database %s and uploads in %s",
        app.config["DATABASE"],
        app.config["UPLOAD_DIR"],
    )
    return app
