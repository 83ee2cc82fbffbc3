import logging

import pytest

from quadtreex import config as qx_config
from quadtreex.logging import get_logger


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in [
        "QUADTREEX_LOG_LEVEL",
        "QUADTREEX_STUB_POLICY",
        "QUADTREEX_VALIDATE",
    ]:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_cache():
    qx_config.reset_runtime_config_cache()
    yield
    qx_config.reset_runtime_config_cache()


def test_runtime_config_defaults(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)

    runtime = qx_config.runtime_config()

    assert runtime.log_level == "INFO"
    assert runtime.stub_policy == "raise"
    assert runtime.skips_stubs is False
    assert runtime.validate_on_build is False


def test_stub_policy_override(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("QUADTREEX_STUB_POLICY", " Skip ")

    runtime = qx_config.runtime_config()

    assert runtime.stub_policy == "skip"
    assert runtime.skips_stubs is True


def test_invalid_stub_policy(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("QUADTREEX_STUB_POLICY", "scan")

    with pytest.raises(ValueError):
        qx_config.runtime_config()


def test_invalid_log_level(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("QUADTREEX_LOG_LEVEL", "chatty")

    with pytest.raises(ValueError):
        qx_config.runtime_config()


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), ("yes", True), ("off", False), ("maybe", False)],
)
def test_validate_flag_parsing(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool):
    _clear_env(monkeypatch)
    monkeypatch.setenv("QUADTREEX_VALIDATE", raw)

    assert qx_config.runtime_config().validate_on_build is expected


def test_config_is_cached_until_reset(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    first = qx_config.runtime_config()
    monkeypatch.setenv("QUADTREEX_STUB_POLICY", "skip")

    assert qx_config.runtime_config() is first
    qx_config.reset_runtime_config_cache()
    assert qx_config.runtime_config().stub_policy == "skip"


def test_logger_respects_runtime_level(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("QUADTREEX_LOG_LEVEL", "DEBUG")

    logger = get_logger("tests.logging")

    assert logger.level == logging.DEBUG
    assert logger.name == "quadtreex.tests.logging"
    assert logging.getLogger("quadtreex").handlers


def test_logger_level_override(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)

    logger = get_logger("tests.override", level="warning")

    assert logger.level == logging.WARNING
