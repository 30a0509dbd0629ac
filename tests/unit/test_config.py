import logging

import pytest

from vtlemulator import config
from vtlemulator.logging import setup as logging_setup


class TestEnvParsing:
    @pytest.mark.parametrize("value", ["1", "true", "True", " TRUE "])
    def test_is_env_true(self, monkeypatch, value):
        monkeypatch.setenv("VTL_TEST_FLAG", value)
        assert config.is_env_true("VTL_TEST_FLAG")

    @pytest.mark.parametrize("value", ["0", "false", "False"])
    def test_false_values(self, monkeypatch, value):
        monkeypatch.setenv("VTL_TEST_FLAG", value)
        assert not config.is_env_true("VTL_TEST_FLAG")

    def test_unset_values(self, monkeypatch):
        monkeypatch.delenv("VTL_TEST_FLAG", raising=False)
        assert not config.is_env_true("VTL_TEST_FLAG")

    @pytest.mark.parametrize("value,expected", [("", 7), ("12", 12), ("-3", 0), ("abc", 7)])
    def test_parse_int_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("VTL_TEST_INT", value)
        assert config.parse_int_env("VTL_TEST_INT", 7) == expected

    @pytest.mark.parametrize(
        "value,expected", [("debug", "debug"), ("TRACE", "trace"), ("verbose", False), ("", False)]
    )
    def test_eval_log_type(self, monkeypatch, value, expected):
        monkeypatch.setenv("VTL_LOG", value)
        assert config.eval_log_type("VTL_LOG") == expected


class TestLogLevels:
    def test_log_level_from_vtl_log(self, monkeypatch):
        monkeypatch.setattr(config, "VTL_LOG", "trace")
        assert logging_setup.get_log_level_from_config() == logging.DEBUG
        assert config.is_trace_logging_enabled()

        monkeypatch.setattr(config, "VTL_LOG", "warn")
        assert logging_setup.get_log_level_from_config() == logging.WARNING
        assert not config.is_trace_logging_enabled()

    def test_log_level_from_debug(self, monkeypatch):
        monkeypatch.setattr(config, "VTL_LOG", False)
        monkeypatch.setattr(config, "DEBUG", True)
        assert logging_setup.get_log_level_from_config() == logging.DEBUG
        monkeypatch.setattr(config, "DEBUG", False)
        assert logging_setup.get_log_level_from_config() == logging.INFO

    def test_setup_render_trace_logger(self):
        logger = logging.getLogger("vtlemulator.render.trace")
        handlers, propagate = logger.handlers, logger.propagate
        try:
            logging_setup.setup_render_trace_logger()
            assert len(logger.handlers) == 1
            assert not logger.propagate
        finally:
            logger.handlers = handlers
            logger.propagate = propagate
