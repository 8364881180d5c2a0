import signal
import sys
from typing import Optional

from flask import Flask

from backend.config import Settings
from backend.database.connection_manager import ConnectionManager
from backend.database.context import CONNECTION_MANAGER_KEY
from shared.modules.errors.exceptions import (
    ConfigurationError,
    ConnectionCloseError,
    StoreConnectionError,
)
from shared.modules.log.logger import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    connection_manager: Optional[ConnectionManager] = None,
) -> Flask:
    """
    Build the Flask app.

    Settings are resolved before any blueprint is registered, so a missing
    required variable raises ConfigurationError and no route ever exists.
    Connections are not opened here; they are created on first use.
    """
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.config["SETTINGS"] = settings
    app.extensions[CONNECTION_MANAGER_KEY] = connection_manager or ConnectionManager(settings)

    from backend.api.error_handlers import register_error_handlers
    from backend.api.health_controller import bp as health_controller_bp
    from backend.api.course_controller import bp as course_controller_bp
    from backend.api.student_controller import bp as student_controller_bp

    register_error_handlers(app)
    app.register_blueprint(health_controller_bp)
    app.register_blueprint(course_controller_bp)
    app.register_blueprint(student_controller_bp)
    return app


def connect_backing_services(manager: ConnectionManager) -> None:
    """
    Open both connections up front.

    In strict mode a failure propagates. Otherwise it is logged and the
    server keeps starting while the scheduled reconnect runs.
    """
    for ensure in (manager.ensure_document_store_connected, manager.ensure_cache_store_connected):
        try:
            ensure()
        except StoreConnectionError as e:
            if manager.settings.strict_connections:
                raise
            logger.warning(f"Starting without {e.service}, reconnect pending: {e}")


def install_signal_handlers(manager: ConnectionManager) -> None:
    """Close both connections on SIGTERM/SIGINT, exit 0 on success, 1 otherwise."""

    def _shutdown(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        try:
            manager.close_all()
        except ConnectionCloseError as e:
            logger.error(f"Error during shutdown: {e}")
            sys.exit(1)
        logger.info("Connections closed, exiting")
        sys.exit(0)

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)


def main():
    configure_logging()
    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        app = create_app(settings)
        manager = app.extensions[CONNECTION_MANAGER_KEY]
        connect_backing_services(manager)
    except (ConfigurationError, StoreConnectionError) as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)

    install_signal_handlers(manager)
    logger.info(f"Server is running on port {settings.port}")
    app.run(host=settings.host, port=settings.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
