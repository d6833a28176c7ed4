"""Launch the tracker API under uvicorn."""

from __future__ import annotations

import logging
import threading
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import TrackerSettings
from .db import database_connection
from .paths import get_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)


def run_server(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    open_browser: bool = False,
    log_level: str = "info",
) -> None:
    """Serve the API until interrupted; the running activity lives in this process."""
    resolved_db = Path(db_path or get_db_path())
    # Create the schema up front so a bad path fails before uvicorn binds.
    with database_connection(resolved_db):
        pass
    app = create_app(db_path=resolved_db, settings=settings or TrackerSettings())

    base_url = f"http://{host}:{port}"
    logger.info("Serving Day in the Life on %s (database %s)", base_url, resolved_db)
    if open_browser:
        timer = threading.Timer(1.0, webbrowser.open, args=(f"{base_url}/docs",))
        timer.daemon = True
        timer.start()

    uvicorn.run(app, host=host, port=port, log_level=log_level)
