"""Session helpers for talking to Wikidot as the logged-in user."""

from __future__ import annotations

import json
import os
import secrets

import requests

from wikidot_inbox_cleaner.constants import (
    SESSION_COOKIE,
    SESSION_ENV_VAR,
    SESSION_PATH,
    TOKEN_COOKIE,
    WIKIDOT_BASE_URL,
)


def load_session_config() -> dict:
    """Return ``{"session_id": ..., "token7": ...}`` from the environment or SESSION_PATH.

    The ``WIKIDOT_SESSION_ID`` environment variable wins over the file.
    """
    config: dict = {}
    if SESSION_PATH.exists():
        try:
            config = json.loads(SESSION_PATH.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Session file {SESSION_PATH} is not valid JSON: {e}") from e

    env_session = os.environ.get(SESSION_ENV_VAR)
    if env_session:
        config["session_id"] = env_session

    if not config.get("session_id"):
        raise FileNotFoundError(
            f"Wikidot session not found at {SESSION_PATH}.\n"
            "Log in to wikidot.com in your browser, copy the value of the "
            f"{SESSION_COOKIE} cookie and either export it as {SESSION_ENV_VAR} "
            "or save it as:\n"
            f'  {SESSION_PATH}  ->  {{"session_id": "<cookie value>"}}'
        )
    return config


def get_wikidot_session() -> requests.Session:
    """Return a requests session carrying the Wikidot login cookies.

    Wikidot only checks that the ``wikidot_token7`` form field matches the
    cookie, so a fresh random token is used when none is configured.
    """
    config = load_session_config()
    token7 = config.get("token7") or secrets.token_hex(16)

    session = requests.Session()
    session.headers["Referer"] = f"{WIKIDOT_BASE_URL}/account/messages"
    session.cookies.set(SESSION_COOKIE, config["session_id"], domain=".wikidot.com")
    session.cookies.set(TOKEN_COOKIE, token7, domain=".wikidot.com")
    return session


def check_auth() -> bool:
    """Test whether the configured session can read the inbox.

    Returns True when the first inbox page loads, False otherwise.
    Prints human-readable status messages.
    """
    from wikidot_inbox_cleaner.wikidot_client import WikidotError, fetch_inbox_page

    try:
        session = get_wikidot_session()
        page = fetch_inbox_page(session, 1)
    except (FileNotFoundError, ValueError, WikidotError, requests.RequestException) as exc:
        print(f"Authentication failed: {exc}")
        return False

    print(f"Session works: inbox page 1 has {len(page.messages)} messages")
    return True
