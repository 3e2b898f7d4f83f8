"""Constants for Wikidot Inbox Cleaner."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".wikidot-inbox-cleaner"
SESSION_PATH = CONFIG_DIR / "session.json"
SESSION_ENV_VAR = "WIKIDOT_SESSION_ID"

# --- Wikidot endpoints ---
WIKIDOT_BASE_URL = "https://www.wikidot.com"
AJAX_CONNECTOR_URL = f"{WIKIDOT_BASE_URL}/ajax-module-connector.php"
INBOX_MODULE = "dashboard/messages/DMInboxModule"
MESSAGE_ACTION = "DashboardMessageAction"
REMOVE_MESSAGES_EVENT = "removeMessages"
SESSION_COOKIE = "WIKIDOT_SESSION_ID"
TOKEN_COOKIE = "wikidot_token7"
REQUEST_TIMEOUT = 30  # seconds
RETRYABLE_STATUS_CODES = (429, 500, 502, 503)

# --- Deletion ---
MAX_BATCH_SIZE = 100  # ids per removeMessages call
BATCH_DELAY_SECONDS = 1.5  # pause before each batch when there are several

# --- Classification ---
SYSTEM_ACCOUNT = "Wikidot"
APPLICATION_SUBJECT = "You received a membership application"
APPLICATION_PREVIEW_PATTERN = r"applied for membership on (.*), one of your sites"

# --- Pager ---
NEXT_PAGE_LABEL = "next »"
