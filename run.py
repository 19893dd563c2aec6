"""Entry point for running the FX quote board Flask app."""

from __future__ import annotations

import os

from dotenv import load_dotenv

ENV_FILES = (".env", ".env.local")


def _prepare_environment() -> None:
    """Load environment variables from local .env files if present."""

    project_root = os.path.abspath(os.path.dirname(__file__))
    for name in ENV_FILES:
        env_file = os.path.join(project_root, name)
        if os.path.exists(env_file):
            load_dotenv(env_file)


def main() -> None:
    """Create the Flask app and run the development server."""

    _prepare_environment()

    # Config classes read the environment at import time.
    from quoteboard import create_app

    config_name = os.getenv("APP_ENV")
    app = create_app(config_name=config_name)

    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_RUN_PORT", "5000"))
    debug = app.config.get("DEBUG", False)

    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
