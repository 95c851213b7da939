from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Any, Dict, Optional

from .datamodels import AuthSession

# --- Configuration ---
DEFAULT_SERVER_URL = "http://127.0.0.1:8090"
HTTP_TIMEOUT = 15
PAGE_SIZE = 10
# Reading progress at or past this fraction counts as "read".
READ_THRESHOLD = 0.9

CONFIG_PATH = os.path.expanduser("~/.config/lynx/config.json")
SESSION_FILE = os.path.expanduser("~/.config/lynx/session.json")

REQUEST_HEADERS = {
    "User-Agent": "lynx-tui/0.1",
    "Accept": "application/json",
}
UPDATE_LAST_VIEWED_HEADER = "X-Lynx-Update-Last-Viewed"

DEFAULT_CONFIG: Dict[str, Any] = {
    "server_url": DEFAULT_SERVER_URL,
    "page_size": PAGE_SIZE,
    "read_threshold": READ_THRESHOLD,
}

# Default UI settings
UI_DEFAULTS = {
    "statusbar_keybindings": "[b cyan]/[/] search  [b cyan][ ][/] page  [b cyan]t[/] tags",
}

# --- Logging ---
logger = logging.getLogger("lynx")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(message)s"


def setup_logging(debug: bool = False, log_dir: Optional[str] = None) -> Optional[str]:
    """Route the "lynx" logger to a per-run file when debugging.

    Textual owns the terminal, so nothing may be written to stderr while the
    app runs. Without ``debug`` the logger is silenced. Returns the log path.
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    if not debug:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL)
        return None

    stamp = datetime.now().strftime("%Y%m%dT%H%M%S")
    debug_path = os.path.join(
        log_dir or tempfile.gettempdir(), f"lynx_debug_{stamp}_{os.getpid()}.log"
    )
    handler = logging.FileHandler(debug_path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    logger.debug("Debug log for %s opened", REQUEST_HEADERS["User-Agent"])
    return debug_path


def ensure_config_file_exists() -> None:
    """Write the default config file if the user's config file is not found."""
    if not os.path.exists(CONFIG_PATH):
        logger.info("Config file not found at %s, creating default.", CONFIG_PATH)
        save_config(dict(DEFAULT_CONFIG))


def load_config() -> Dict[str, Any]:
    """Load the main configuration file, filling in defaults for missing keys."""
    ensure_config_file_exists()
    config = dict(DEFAULT_CONFIG)
    try:
        with open(CONFIG_PATH, "r") as f:
            config.update(json.load(f))
            logger.info("Loaded config from %s", CONFIG_PATH)
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", CONFIG_PATH, e)
    return config


def save_config(config: Dict[str, Any]) -> None:
    """Save the main configuration file."""
    try:
        os.makedirs(os.path.dirname(CONFIG_PATH), exist_ok=True)
        with open(CONFIG_PATH, "w") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", CONFIG_PATH)
    except IOError as e:
        logger.error("Failed to save config to %s: %s", CONFIG_PATH, e)


def load_session() -> Optional[AuthSession]:
    """Load the stored auth session, if any."""
    if not os.path.exists(SESSION_FILE):
        return None
    try:
        with open(SESSION_FILE, "r") as f:
            data = json.load(f)
        return AuthSession(token=data["token"], user_id=data["user_id"])
    except (IOError, json.JSONDecodeError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable session file %s: %s", SESSION_FILE, e)
        return None


def save_session(session: AuthSession) -> None:
    try:
        os.makedirs(os.path.dirname(SESSION_FILE), exist_ok=True)
        with open(SESSION_FILE, "w") as f:
            json.dump({"token": session.token, "user_id": session.user_id}, f)
        os.chmod(SESSION_FILE, 0o600)
    except (IOError, OSError) as e:
        logger.error("Failed to save session to %s: %s", SESSION_FILE, e)


def clear_session() -> None:
    try:
        os.remove(SESSION_FILE)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Failed to remove session file %s: %s", SESSION_FILE, e)
