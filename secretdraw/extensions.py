from __future__ import annotations

from flask import Flask, current_app
from flask_wtf.csrf import CSRFProtect

from .security import AssignmentSealer, assignment_fernet
from .store import EventStore

STORE_KEY = "secretdraw.store"

csrf = CSRFProtect()


def init_store(app: Flask) -> EventStore:
    sealer = None
    if app.config["SECRETDRAW_SEAL_ASSIGNMENTS"]:
        sealer = AssignmentSealer(
            assignment_fernet(app.config["SECRET_KEY"], app.config.get("ASSIGNMENT_ENC_KEY"))
        )
    store = EventStore.open(app.config["SECRETDRAW_DATA_FILE"], sealer=sealer)
    app.extensions[STORE_KEY] = store
    return store


def get_store() -> EventStore:
    return current_app.extensions[STORE_KEY]
