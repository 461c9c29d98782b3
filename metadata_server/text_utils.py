"""Free-text sanitization for issue summaries and diagnostic messages."""
from __future__ import annotations

ELLIPSIS = "..."


def sanitize_text(text: str, max_length: int) -> str:
    """Clamp ``text`` to at most ``max_length`` characters.

    Long text is cut right after the last newline that still leaves room for
    the ellipsis, otherwise hard-cut so the result is exactly ``max_length``
    characters long.
    """
    if len(text) <= max_length:
        return text
    if max_length < len(ELLIPSIS):
        return text[:max_length]
    keep = max(0, max_length - len(ELLIPSIS))
    newline_idx = text.rfind("\n", 0, keep)
    if newline_idx >= 0:
        return text[: newline_idx + 1] + ELLIPSIS
    return text[:keep] + ELLIPSIS
