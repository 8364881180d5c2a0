"""Startup, health and shutdown behaviour of the application."""

import signal

import pytest

from backend import app as app_module
from backend.app import connect_backing_services, create_app, install_signal_handlers
from shared.modules.errors.exceptions import ConfigurationError, StoreConnectionError

REQUIRED = ("MONGODB_URI", "MONGODB_DB_NAME", "REDIS_URI")


@pytest.fixture
def bare_env(monkeypatch, tmp_path):
    # No .env file and no connection variables
    monkeypatch.chdir(tmp_path)
    for name in REQUIRED:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_missing_configuration_fails_before_routes_exist(bare_env):
    registered = []
    bare_env.setattr(app_module.Flask, "register_blueprint", lambda self, bp, **kw: registered.append(bp))

    with pytest.raises(ConfigurationError, match="MONGODB_URI"):
        create_app()
    assert registered == []


def test_main_exits_with_status_1_on_configuration_error(bare_env):
    with pytest.raises(SystemExit) as exc_info:
        app_module.main()
    assert exc_info.value.code == 1


def test_create_app_reads_environment(bare_env):
    bare_env.setenv("MONGODB_URI", "mongodb://db:27017")
    bare_env.setenv("MONGODB_DB_NAME", "campus")
    bare_env.setenv("REDIS_URI", "redis://cache:6379/0")

    app = create_app()

    assert app.config["SETTINGS"].mongodb_db_name == "campus"
    rules = [r.rule for r in app.url_map.iter_rules()]
    assert rules.index("/courses/stats") < rules.index("/courses/<course_id>")


def test_strict_startup_surfaces_connection_error(make_manager, strict_settings, backends):
    manager = make_manager(strict_settings)
    backends.mongo_down = True

    with pytest.raises(StoreConnectionError):
        connect_backing_services(manager)
    assert backends.timers == []


def test_normal_startup_continues_with_retry_pending(manager, backends):
    backends.redis_down = True

    connect_backing_services(manager)

    assert manager.get_document_store_handle() is backends.database
    assert manager.get_cache_store_handle() is None
    assert len(backends.timers) == 1


def test_health_reports_connection_state(client, manager):
    body = client.get("/health").get_json()
    assert body["status"] == "degraded"
    assert body["connections"]["mongodb"]["state"] == "uninitialized"

    manager.ensure_document_store_connected()
    manager.ensure_cache_store_connected()
    body = client.get("/health").get_json()
    assert body["status"] == "ok"


def _capture_handlers(monkeypatch):
    handlers = {}
    monkeypatch.setattr(signal, "signal", lambda signum, handler: handlers.__setitem__(signum, handler))
    return handlers


def test_sigterm_closes_connections_and_exits_0(monkeypatch, manager, backends):
    handlers = _capture_handlers(monkeypatch)
    manager.ensure_document_store_connected()
    manager.ensure_cache_store_connected()
    install_signal_handlers(manager)

    with pytest.raises(SystemExit) as exc_info:
        handlers[signal.SIGTERM](signal.SIGTERM, None)

    assert exc_info.value.code == 0
    assert backends.mongo_clients[0].closed is True
    assert backends.redis_clients[0].closed is True


def test_shutdown_failure_exits_1(monkeypatch, manager, backends):
    handlers = _capture_handlers(monkeypatch)
    manager.ensure_document_store_connected()
    backends.mongo_close_error = True
    install_signal_handlers(manager)

    with pytest.raises(SystemExit) as exc_info:
        handlers[signal.SIGINT](signal.SIGINT, None)
    assert exc_info.value.code == 1
