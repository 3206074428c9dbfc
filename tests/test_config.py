"""Tests for settings and logging setup."""

import logging
from pathlib import Path

from liftlog.config import DEFAULT_REMOTE_URL, Settings, get_db_path
from liftlog.logging_setup import setup_logging


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.remote_url == DEFAULT_REMOTE_URL
        assert settings.user_id == "local"
        assert settings.recent_limit == 50
        assert settings.db_path == settings.data_dir / "liftlog.db"

    def test_environment_overrides(self, tmp_path):
        settings = Settings.from_env({
            "LIFTLOG_DATA_DIR": str(tmp_path),
            "LIFTLOG_REMOTE_URL": "https://sync.example.com",
            "LIFTLOG_USER_ID": "alice",
            "LIFTLOG_RECENT_LIMIT": "10",
            "LIFTLOG_PROBE_PORT": "8443",
            "LIFTLOG_HTTP_TIMEOUT": "2.5",
        })

        assert settings.data_dir == tmp_path
        assert settings.remote_url == "https://sync.example.com"
        assert settings.user_id == "alice"
        assert settings.recent_limit == 10
        assert settings.probe_port == 8443
        assert settings.http_timeout == 2.5

    def test_with_overrides_ignores_none(self):
        settings = Settings.from_env({}).with_overrides(user_id="bob", remote_url=None)

        assert settings.user_id == "bob"
        assert settings.remote_url == DEFAULT_REMOTE_URL

    def test_get_db_path_creates_directory(self, tmp_path):
        data_dir = tmp_path / "nested" / "data"

        assert get_db_path(data_dir) == data_dir / "liftlog.db"
        assert data_dir.is_dir()


class TestLogging:
    def test_setup_logging_is_repeatable(self, tmp_path):
        log_file = tmp_path / "logs" / "liftlog.log"

        setup_logging("debug", log_file=log_file)
        setup_logging("info", log_file=log_file)

        logger = logging.getLogger("liftlog")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 2
        assert Path(log_file).parent.is_dir()

    def test_unknown_level_falls_back_to_warning(self):
        setup_logging("chatty")

        assert logging.getLogger("liftlog").level == logging.WARNING
