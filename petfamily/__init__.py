from __future__ import annotations

import logging
import os
import sqlite3
from typing import Any, Mapping, Optional

from flask import Flask, jsonify

from sqlalchemy import event
from sqlalchemy.engine import Engine

from .extensions import db, migrate, login_manager
from .errors import register_error_handlers


@event.listens_for(Engine, "connect")
def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    if isinstance(dbapi_connection, sqlite3.Connection):
        cur = dbapi_connection.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.execute("PRAGMA journal_mode=WAL")
        cur.execute("PRAGMA synchronous=NORMAL")
        cur.execute("PRAGMA busy_timeout=30000")
        cur.close()


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object("config.Config")
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    os.makedirs(app.instance_path, exist_ok=True)
    os.makedirs(app.config["PRIVATE_OBJECT_DIR"], exist_ok=True)

    uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if uri.startswith("sqlite:"):
        opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}))
        ca = dict(opts.get("connect_args", {}))
        ca.setdefault("check_same_thread", False)
        ca.setdefault("timeout", 30)
        opts["connect_args"] = ca
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = opts

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({"message": "Unauthorized"}), 401

    from .models.user import User
    from .models.family import Family, FamilyMember
    from .models.pet import Pet
    from .models.note import Note
    from .models.pet_file import PetFile
    from .models.vaccination import Vaccination

    from .auth.identity import default_resolver
    from .objects.storage import ObjectStorage

    app.extensions["identity_resolver"] = default_resolver(
        app.config["FEDERATED_CLAIMS_KEY"]
    )
    app.extensions["object_storage"] = ObjectStorage(app.config["PRIVATE_OBJECT_DIR"])

    from .auth.routes import auth_bp
    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    from .families.routes import families_bp
    app.register_blueprint(families_bp)

    from .pets.routes import pets_bp
    app.register_blueprint(pets_bp)

    from .notes.routes import notes_bp
    app.register_blueprint(notes_bp)

    from .files.routes import files_bp
    app.register_blueprint(files_bp)

    from .vaccinations.routes import vaccinations_bp
    app.register_blueprint(vaccinations_bp)

    from .public.routes import public_bp
    app.register_blueprint(public_bp)

    from .objects.routes import objects_bp
    app.register_blueprint(objects_bp)

    register_error_handlers(app)

    from .cli import (
        init_db_cmd,
        reset_db_cmd,
        purge_data_cmd,
        seed_demo_cmd,
    )

    app.cli.add_command(init_db_cmd)
    app.cli.add_command(reset_db_cmd)
    app.cli.add_command(purge_data_cmd)
    app.cli.add_command(seed_demo_cmd)

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.teardown_request
    def _teardown_request(_exc):
        try:
            if _exc is not None:
                db.session.rollback()
        finally:
            db.session.remove()

    return app
