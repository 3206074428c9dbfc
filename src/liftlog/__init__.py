"""liftlog: offline-first workout and body-weight logging with remote sync."""

__version__ = "0.1.0"
