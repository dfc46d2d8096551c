"""Text sanitization for catalogue fields echoed back to clients."""

import html
import re

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_EVENT_HANDLER = re.compile(r"\bon\w+\s*=", re.IGNORECASE)
_JAVASCRIPT_URL = re.compile(r"javascript\s*:", re.IGNORECASE)


def sanitize(text):
    """Strip script blocks and inline handlers, then HTML-escape what is left."""
    if text is None:
        return None

    cleaned = _SCRIPT_BLOCK.sub("", str(text))
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = _JAVASCRIPT_URL.sub("", cleaned)
    return html.escape(cleaned.strip(), quote=True)
