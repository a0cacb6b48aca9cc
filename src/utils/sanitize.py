import re

# Anything outside ASCII letters, digits, whitespace and this punctuation set is dropped
ALLOWED_PUNCTUATION = ".,!?'\"#$%&()*+-_=<>@`~[]{}:;\\|/^"

_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s" + re.escape(ALLOWED_PUNCTUATION) + r"]")


def sanitize_name(name) -> str:
    """
    Strip characters outside the display-name allowlist and trim whitespace.

    Non-string input yields an empty string.
    """
    if not isinstance(name, str):
        return ""
    return _DISALLOWED.sub("", name).strip()
