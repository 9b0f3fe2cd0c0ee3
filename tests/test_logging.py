"""Tests for logging configuration"""
import tempfile
import os
import logging
from pathlib import Path
from unittest.mock import Mock, patch

from config import Config
from logging_config import (
    setup_structured_logging,
    get_logger,
    log_collection_cycle,
    log_server_startup,
    log_error
)


class TestLoggingConfig:
    """Test logging configuration and structured logging"""

    def test_setup_structured_logging(self):
        """Test structured logging setup"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "nested" / "test.log"

            config = Config()
            config.log_file = log_file
            config.log_level = "DEBUG"

            setup_structured_logging(config)

            assert log_file.parent.exists()

            logger = logging.getLogger("test")
            assert logger.isEnabledFor(logging.DEBUG)

            # Release the file handler before the directory is removed
            for handler in logging.getLogger().handlers[:]:
                handler.close()
                logging.getLogger().removeHandler(handler)

    def test_get_logger(self):
        """Test getting structured logger"""
        logger = get_logger("test_logger")

        assert logger is not None
        assert hasattr(logger, 'info')
        assert hasattr(logger, 'error')
        assert hasattr(logger, 'debug')
        assert hasattr(logger, 'warning')

    def test_log_collection_cycle(self):
        """Test structured collection cycle logging"""
        logger = Mock()

        log_collection_cycle(logger, records_count=10, collection_time=0.51234, timed_out=1)

        logger.info.assert_called_once()
        _, kwargs = logger.info.call_args
        assert kwargs["records_count"] == 10
        assert kwargs["collection_time_seconds"] == 0.512
        assert kwargs["timed_out_observers"] == 1
        assert kwargs["event_type"] == "collection_cycle"

    def test_log_server_startup(self):
        """Test structured server startup logging"""
        logger = Mock()
        config = Config()

        log_server_startup(logger, config)

        _, kwargs = logger.info.call_args
        assert kwargs["export_format"] == "console"
        assert kwargs["event_type"] == "server_startup"

    def test_log_error(self):
        """Test structured error logging"""
        logger = Mock()
        error = ValueError("Test error")

        log_error(logger, error, {"component": "test"})
        log_error(logger, error)

        first, second = logger.error.call_args_list
        assert first.kwargs["error_type"] == "ValueError"
        assert first.kwargs["context"] == {"component": "test"}
        assert second.kwargs["context"] == {}

    def test_development_vs_production_logging(self):
        """Test different logging configurations for development vs production"""
        config = Config()

        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            setup_structured_logging(config)
            logger = get_logger("test")
            logger.info("Test development log")

        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            setup_structured_logging(config)
            logger = get_logger("test")
            logger.info("Test production log")

    def test_logger_context_binding(self):
        """Test logger context binding"""
        logger = get_logger("test")

        bound_logger = logger.bind(meter="checkout", metric="requests")
        bound_logger.info("Test message with context")

        more_bound = bound_logger.bind(event_type="test")
        more_bound.info("Test message with more context")
