"""Runtime settings."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

# Default data directory
DATA_DIR = Path.home() / ".liftlog"

DEFAULT_USER_ID = "local"
DEFAULT_RECENT_LIMIT = 50
DEFAULT_REMOTE_URL = "http://127.0.0.1:8000"


@dataclass
class Settings:
    """Settings for the local store, remote store and network probe.

    Every field can be overridden by a ``LIFTLOG_<FIELD>`` environment
    variable (see :meth:`from_env`) and most by CLI options.
    """

    data_dir: Path = field(default_factory=lambda: DATA_DIR)
    remote_url: str = DEFAULT_REMOTE_URL
    user_id: str = DEFAULT_USER_ID
    recent_limit: int = DEFAULT_RECENT_LIMIT
    probe_host: str | None = None
    probe_port: int = 443
    probe_interval: float = 15.0
    http_timeout: float = 10.0
    log_level: str = "WARNING"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "liftlog.db"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from ``LIFTLOG_*`` environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()

        if env.get("LIFTLOG_DATA_DIR"):
            settings.data_dir = Path(env["LIFTLOG_DATA_DIR"]).expanduser()
        if env.get("LIFTLOG_REMOTE_URL"):
            settings.remote_url = env["LIFTLOG_REMOTE_URL"]
        if env.get("LIFTLOG_USER_ID"):
            settings.user_id = env["LIFTLOG_USER_ID"]
        if env.get("LIFTLOG_RECENT_LIMIT"):
            settings.recent_limit = int(env["LIFTLOG_RECENT_LIMIT"])
        if env.get("LIFTLOG_PROBE_HOST"):
            settings.probe_host = env["LIFTLOG_PROBE_HOST"]
        if env.get("LIFTLOG_PROBE_PORT"):
            settings.probe_port = int(env["LIFTLOG_PROBE_PORT"])
        if env.get("LIFTLOG_PROBE_INTERVAL"):
            settings.probe_interval = float(env["LIFTLOG_PROBE_INTERVAL"])
        if env.get("LIFTLOG_HTTP_TIMEOUT"):
            settings.http_timeout = float(env["LIFTLOG_HTTP_TIMEOUT"])
        if env.get("LIFTLOG_LOG_LEVEL"):
            settings.log_level = env["LIFTLOG_LOG_LEVEL"]

        return settings

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the database file path, creating the data directory."""
    if data_dir is None:
        data_dir = Settings.from_env().data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "liftlog.db"
