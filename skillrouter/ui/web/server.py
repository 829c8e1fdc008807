"""
Web API server — Flask app factory.

Creates the Flask application that exposes detection, routing,
proposals and sync plans as JSON endpoints under /api.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask

logger = logging.getLogger(__name__)


def create_app(
    workspace_root: Path | None = None,
    config_path: Path | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        workspace_root: Root directory of the workspace.
        config_path: Path to skillrouter.yml.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    app.config["WORKSPACE_ROOT"] = str(workspace_root or Path.cwd())
    app.config["CONFIG_PATH"] = str(config_path) if config_path else None
    app.json.sort_keys = False
    app.json.ensure_ascii = False

    from skillrouter.ui.web.routes_api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    logger.info("Web API app created (root=%s)", app.config["WORKSPACE_ROOT"])
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting web API on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False)
