#!/usr/bin/env python3
"""
Authgate -- user registration, login and bearer-token authentication service.

Usage:
  python main.py
  python main.py --host 127.0.0.1 --port 8000
  python main.py --reload

Environment variables (or .env):
  JWT_SECRET      Token signing secret, at least 32 characters. Required unless
                  ENVIRONMENT=development/test or DEBUG=true.
  JWT_EXPIRES_IN  Token lifetime, e.g. 7d, 12h, 30m (default 7d).
  BCRYPT_ROUNDS   bcrypt cost factor, 4-31 (default 10).
  DATABASE_URL    SQLAlchemy URL of the user store (default sqlite:///authgate.db).
  ENVIRONMENT     production | development | test (default production).
  HOST / PORT     Bind address (default 0.0.0.0:3000).
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the Authgate API server.")
    parser.add_argument("--host", default=settings.host, help=f"Bind host (default {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Bind port (default {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    # uvicorn installs its own SIGINT/SIGTERM handlers and runs the app
    # lifespan shutdown, which disposes the user store.
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
