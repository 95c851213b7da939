#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import getpass
import logging
import sys

from .app import LynxApp
from .backends.manager import get_backend
from .config import (
    clear_session,
    load_config,
    load_session,
    save_session,
    setup_logging,
)
from .errors import LynxError

logger = logging.getLogger("lynx")


def login(config: dict, email: str) -> int:
    password = getpass.getpass(f"Password for {email}: ")
    backend = get_backend(config)
    try:
        session = backend.authenticate(email, password)
    except LynxError as e:
        print(f"Login failed: {e.message}", file=sys.stderr)
        return 1
    save_session(session)
    print(f"Logged in as {email}.")
    return 0


# --- Entrypoint ---
def main() -> None:
    parser = argparse.ArgumentParser(description="Lynx read-it-later TUI client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--server", type=str, help="Lynx server URL for this run")
    parser.add_argument(
        "--query",
        type=str,
        default=None,
        help="Initial feed location, e.g. 's=python&t=TAG_ID' (from a share link)",
    )
    parser.add_argument("--login", metavar="EMAIL", help="Log in and store the session")
    parser.add_argument("--logout", action="store_true", help="Forget the stored session")
    args = parser.parse_args()

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    config = load_config()
    if args.server:
        config["server_url"] = args.server

    if args.logout:
        clear_session()
        print("Logged out.")
        return
    if args.login:
        sys.exit(login(config, args.login))

    location = args.query
    if location and "?" in location:
        location = location.split("?", 1)[1]

    logger.info("Using server: %s", config.get("server_url"))

    try:
        app = LynxApp(config=config, session=load_session(), location=location)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)


if __name__ == "__main__":
    main()
