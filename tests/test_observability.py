import logging

from core.observability import APP_LOGGERS, setup_logging


def test_handler_goes_on_application_loggers_only():
    root_handlers = list(logging.getLogger().handlers)

    setup_logging("WARNING")
    setup_logging("INFO")

    for name in APP_LOGGERS:
        logger = logging.getLogger(name)
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
    assert logging.getLogger().handlers == root_handlers
    assert not logging.getLogger("asyncpg").handlers


def test_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert client.get("/api/health").headers["X-Request-ID"]
