"""Runtime constants for the Phrack reader."""

# ── Source ─────────────────────────────────────────────────────
ISSUE_URL_TEMPLATE = "http://www.phrack.org/archives/tgz/phrack{issue}.tar.gz"
DEFAULT_ISSUE = "1"
DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) phracked/1.0"
FETCH_TIMEOUT = 60.0

# ── Scratch storage ────────────────────────────────────────────
SCRATCH_PREFIX = "issue-"
ARCHIVE_SUFFIX = ".tar.gz"
PAGE_SUFFIX = ".txt"
FIRST_PAGE = "1" + PAGE_SUFFIX

# ── Status channel ─────────────────────────────────────────────
STATUS_BUFFER = 1
HEARTBEAT_INTERVAL = 1.0
HEARTBEAT = "."

# ── UI ─────────────────────────────────────────────────────────
LOAD_ENTRY = "load"
LOADING_ENTRY = "Loading..."
MISSING_PAGE_TEXT = "Can't find file..."
PROMPT_TITLE = "Issue Number To Load"
