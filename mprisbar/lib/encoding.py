"""
Escaping for text embedded in the waybar JSON payload.

waybar renders the ``text`` field as Pango markup, so markup characters become
entities, and the control characters that would break the JSON line become
backslash escapes.  Every escaped character is single-byte ASCII, so the
function is safe on any Unicode input.
"""

_ESCAPES = str.maketrans({
    "&": "&amp;",
    '"': "&quot;",
    "'": "&apos;",
    "<": "&lt;",
    ">": "&gt;",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
})


def encode(text: str) -> str:
    """Return *text* escaped for the status line payload."""
    return text.translate(_ESCAPES)
