"""
logging_setup.py — one-time stdlib logging config + log-safe rendering of user text.
"""
import logging
import re
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# ANSI escape sequences first, then any remaining C0/C1 control character
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-_]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def configure_logging(environment: str = "production") -> None:
    level = logging.DEBUG if environment == "development" else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)

    # Avoid stacking handlers when the app factory runs more than once (tests, reload)
    if not any(getattr(h, "_review_service", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._review_service = True
        root.addHandler(handler)

    # SDK transport chatter is only useful while debugging
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def safe_for_log(value, limit: int = 120) -> str:
    """Render user-supplied text for a single log line: no escapes, no newlines, capped."""
    if value is None:
        return ""
    text = _ANSI_ESCAPE.sub("", str(value))
    text = _CONTROL_CHARS.sub("?", text)
    if len(text) > limit:
        text = text[:limit] + "…"
    return text
