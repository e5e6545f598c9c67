from __future__ import annotations

import logging
import os

import click
from flask import Flask, redirect, request

from .extensions import csrf, get_store, init_store
from .views.draws import draws_bp
from .views.public import public_bp


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SECRETDRAW_DATA_FILE"] = os.environ.get("DATA_FILE", "data.json")

    # Draw results are encrypted in the data file unless this is switched off.
    app.config["ASSIGNMENT_ENC_KEY"] = os.environ.get("ASSIGNMENT_ENC_KEY", "").strip()
    app.config["SECRETDRAW_SEAL_ASSIGNMENTS"] = _env_flag("SEAL_ASSIGNMENTS", True)

    app.config["FORCE_HTTPS"] = _env_flag("FORCE_HTTPS", True)
    app.config["PREFERRED_URL_SCHEME"] = "https"
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO").upper()

    if test_config:
        app.config.update(test_config)

    _configure_logging(app)
    csrf.init_app(app)
    init_store(app)

    app.register_blueprint(public_bp)
    app.register_blueprint(draws_bp)

    @app.before_request
    def force_https():
        # Local development stays on plain HTTP.
        if not app.config["FORCE_HTTPS"]:
            return None
        if request.is_secure or request.headers.get("X-Forwarded-Proto", "").lower() == "https":
            return None
        if request.host.startswith(("localhost", "127.0.0.1")):
            return None
        return redirect(request.url.replace("http://", "https://", 1), code=301)

    @app.cli.command("sweep-expired")
    def sweep_expired_command():
        """
        Delete draws older than the retention window.

        Offline maintenance: run it while the server is stopped. A running
        server keeps its own copy in memory and writes it back on its next
        change. Loading the store already sweeps, so the count includes that.
        """
        store = get_store()
        removed = store.swept_on_load + store.sweep_expired()
        click.echo(f"Removed {removed} expired draw(s).")

    return app


def _configure_logging(app: Flask) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger(__name__).setLevel(app.config["LOG_LEVEL"])
