#!/usr/bin/env python3
"""
Startup script for the robot relay
"""

import argparse
import logging
import sys

import uvicorn

from robot_relay.config import RelaySettings
from robot_relay.main import create_app


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Relay between one robot and its operator consoles")
    parser.add_argument("--host", help="bind address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="bind port (default: $PORT or 3001)")
    parser.add_argument("--reload", action="store_true", help="auto-reload on code changes")
    return parser.parse_args(argv)


def load_settings(args) -> RelaySettings:
    settings = RelaySettings.from_env()
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.reload:
        overrides["reload"] = True
    if overrides:
        settings = RelaySettings(**{**settings.model_dump(), **overrides})
    return settings


def main(argv=None):
    """Main startup function"""
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        sys.exit(1)

    logging.basicConfig(level=logging.DEBUG if settings.log_level == "trace" else settings.log_level.upper())

    print("🤖 Starting robot relay...")
    print(f"📍 Server will run on {settings.host}:{settings.port}")
    print(f"🔄 Auto-reload: {'enabled' if settings.reload else 'disabled'}")
    print(f"📡 WebSocket (robot):   ws://{settings.host}:{settings.port}/ws/robot")
    print(f"💻 WebSocket (console): ws://{settings.host}:{settings.port}/ws/client")
    print(f"🔗 Status:              http://{settings.host}:{settings.port}/api/status")

    if settings.reload:
        # reload needs an import string; the app re-reads its settings from the environment
        target = "robot_relay.main:app"
    else:
        target = create_app(settings)

    try:
        uvicorn.run(
            target,
            host=settings.host,
            port=settings.port,
            reload=settings.reload,
            log_level=settings.log_level,
        )
    except KeyboardInterrupt:
        print("\n🛑 Server stopped by user")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
