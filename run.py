"""Entry point for running the storefront exchange rate service."""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Configuration classes read the environment at import time, so `.env` must
# be loaded before the application package is imported.
load_dotenv(os.path.join(os.path.abspath(os.path.dirname(__file__)), ".env"))

from storefront_fx import create_app  # noqa: E402


def main() -> None:
    """Create the Flask app and run the development server."""

    config_name = os.getenv("APP_ENV")
    app = create_app(config_name=config_name)

    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_RUN_PORT", "5000"))
    debug = app.config.get("DEBUG", False)

    # The reloader would start a second scheduler in the child process.
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
