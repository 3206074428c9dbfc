"""FastAPI application serving the authoritative remote store."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from .. import __version__
from ..config import Settings
from ..remote.sqlite import SqliteRemoteStore
from .routers import documents


def create_app(store: SqliteRemoteStore | None = None, db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Document store to serve (built from ``db_path`` if omitted)
        db_path: SQLite file for the document store
    """
    if store is None:
        if db_path is None:
            db_path = Settings.from_env().data_dir / "remote.db"
        store = SqliteRemoteStore(db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - creates the schema on startup."""
        await store.init_db()
        yield

    app = FastAPI(
        title="liftlog",
        description="Remote store for liftlog workout sync",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store

    app.include_router(documents.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
