"""Centralized constants for leetrack.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Forgetting curve ----------
DEFAULT_FORGETTING_CURVE = (1, 2, 4, 7, 15)  # days
MAX_PROFICIENCY = 5
ONE_DAY_MS = 24 * 60 * 60 * 1000

# ---------- Storage ----------
SETTINGS_KEY = "remindSettings"
DURABLE_FILENAME = "durable_store.json"

# ---------- Judge / HTTP ----------
DEFAULT_BASE_URL = "https://leetcode.com"
DEFAULT_JUDGE_DOMAINS = ("leetcode.com", "leetcode.cn")
REQUEST_TIMEOUT = 30.0

# ---------- Verdict polling ----------
POLL_INTERVAL = 2.0  # seconds
POLL_MAX_ATTEMPTS = 60
POLL_MAX_ELAPSED = 180.0  # seconds
TERMINAL_STATE = "SUCCESS"
ACCEPTED_STATUS = "Accepted"

# ---------- Debounce ----------
DEBOUNCE_DELAY = 2.0  # seconds

# ---------- Logging ----------
LOG_FILENAME = "leetrack.log"
LOG_FILE_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"
