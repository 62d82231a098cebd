import atexit
import logging
import os
import uuid

from flask import Flask, g, jsonify, request
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.vcms.config import load_config
from app.vcms.db import init_db, shutdown_db, teardown_db_session
from app.vcms.models import Base  # noqa: F401  (registers module tables on Base.metadata)
from app.vcms.routes import bp as routes_bp
from app.vcms.modules.customer_import.admin import bp as customer_import_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = False

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres or MySQL in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    atexit.register(shutdown_db, app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose(close=False)
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(customer_import_bp, url_prefix="/api/customers")

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        # 405 for non-POST on the API, 413 for oversized uploads, 404 for unknown routes.
        return jsonify({"error": e.name, "details": e.description}), e.code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        app.logger.error("Unhandled 500 (request_id=%s)", rid, exc_info=getattr(e, "original_exception", None) or e)
        return jsonify({"error": "Internal Server Error", "details": f"request_id={rid}"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
