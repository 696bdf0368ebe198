import logging
import parapix
from parapix.kernel.system import config
from parapix.kernel.system.config import APP_CONFIG
from parapix.kernel.system.logging import get_logger, setup_logging
from parapix.kernel.system.performance import time_function


def test_version_is_read_from_file():
    assert parapix.__version__ == "0.3.0"


def test_app_config_defaults_in_range():
    assert APP_CONFIG.history_capacity >= 1
    assert 1 <= APP_CONFIG.export_quality <= 100
    w, h = APP_CONFIG.viewport_size
    assert w > 0 and h > 0


def test_env_int(monkeypatch):
    monkeypatch.setenv("PARAPIX_TEST_INT", "42")
    assert config._env_int("PARAPIX_TEST_INT", 1) == 42
    monkeypatch.setenv("PARAPIX_TEST_INT", "many")
    assert config._env_int("PARAPIX_TEST_INT", 1) == 1
    monkeypatch.delenv("PARAPIX_TEST_INT")
    assert config._env_int("PARAPIX_TEST_INT", 7) == 7


def test_env_viewport(monkeypatch):
    monkeypatch.setenv("PARAPIX_TEST_VIEWPORT", "800x600")
    assert config._env_viewport("PARAPIX_TEST_VIEWPORT", (1, 1)) == (800, 600)
    for bad in ("800", "0x600", "axb"):
        monkeypatch.setenv("PARAPIX_TEST_VIEWPORT", bad)
        assert config._env_viewport("PARAPIX_TEST_VIEWPORT", (1, 1)) == (1, 1)


def test_env_log_level(monkeypatch):
    monkeypatch.setenv("PARAPIX_TEST_LEVEL", "debug")
    assert config._env_log_level("PARAPIX_TEST_LEVEL", logging.INFO) == logging.DEBUG
    monkeypatch.setenv("PARAPIX_TEST_LEVEL", "chatty")
    assert config._env_log_level("PARAPIX_TEST_LEVEL", logging.INFO) == logging.INFO


def test_get_logger_prefix():
    assert get_logger().name == "parapix"
    assert get_logger("perf").name == "parapix.perf"
    assert get_logger("parapix.services").name == "parapix.services"
    assert get_logger("parapix").name == "parapix"


def test_setup_logging_single_handler():
    first = setup_logging(logging.WARNING)
    count = len(first.handlers)
    second = setup_logging(logging.WARNING)
    assert second is first
    assert len(second.handlers) == count


def test_setup_logging_updates_level_on_repeat():
    logger = setup_logging(logging.WARNING)
    setup_logging(logging.DEBUG)
    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)
    setup_logging(logging.WARNING)


def test_time_function_preserves_result(caplog):
    @time_function
    def double(x):
        return x * 2

    with caplog.at_level(logging.DEBUG, logger="parapix.perf"):
        assert double(21) == 42
    assert double.__name__ == "double"
    assert any("PERF: double" in rec.message for rec in caplog.records)
