import logging

import pytest

from femo_client import logging_setup
from femo_client.application.session_store import SessionStore
from femo_client.infrastructure import log_utils
from femo_client.infrastructure.key_value_store import InMemoryKeyValueStore


@pytest.fixture
def captured_log(tmp_path):
    log_path = tmp_path / "femo_client.log"
    logging_setup.configure_logging(log_path=log_path, level="DEBUG", force=True)
    try:
        yield log_path
    finally:
        logging_setup.reset_logging()


def _flush():
    for handler in logging.getLogger(logging_setup.LOGGER_NAME).handlers:
        handler.flush()


def test_explicit_tag_is_written(captured_log):
    log_utils.log_message("hello", "INFO", tag="AUTH")
    _flush()

    line = captured_log.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert "[INFO] [AUTH] hello" in line


def test_unknown_level_falls_back_to_info(captured_log):
    log_utils.log_message("odd level", "LOUD", tag="CLI")
    _flush()

    contents = captured_log.read_text(encoding="utf-8")
    assert "Received unknown log level 'LOUD'" in contents
    assert "[INFO] [CLI] odd level" in contents


def test_tag_is_inferred_from_calling_module(captured_log):
    SessionStore(InMemoryKeyValueStore()).clear()
    _flush()

    assert "[INFO] [STORE] Cleared stored session credentials." in captured_log.read_text(encoding="utf-8")


@pytest.mark.parametrize(
    "module_name, expected",
    [
        ("femo_client.application.auth_manager", "AUTH"),
        ("femo_client.infrastructure.http_client", "HTTP"),
        ("femo_client.infrastructure.key_value_store", "STORE"),
        ("femo_client.application.shell", "NAV"),
        ("femo_client.application.profile_service", "USER"),
        ("femo_client.cli.main", "CLI"),
        ("somewhere.else", "GEN"),
    ],
)
def test_get_tag_for_module(module_name, expected):
    assert logging_setup.get_tag_for_module(module_name) == expected


@pytest.mark.parametrize(
    "token, expected",
    [(None, "<none>"), ("", "<none>"), ("short", "***"), ("eyJhbGciOiJIUzI1NiJ9.payload", "eyJh...ad")],
)
def test_redact_token(token, expected):
    assert log_utils.redact_token(token) == expected
