"""Classify a raw chat reply as a menu selection or literal text."""

import re

from .models import OptionIntent, TextIntent, ReplyIntent

# ASCII only: str.isdigit() would also accept superscripts and other scripts
OPTION_RE = re.compile(r"[0-9]+")


def parse_reply(raw: str) -> ReplyIntent:
    """
    Parse a reply into an intent.

    A reply made only of digits is a 1-based option number ("2" selects the
    second option, "10" the tenth). Anything else is free text. Range checks
    belong to the keystroke compiler.

    Args:
        raw: Reply text; callers must reject empty replies first

    Returns:
        OptionIntent with a zero-based index, or TextIntent with the trimmed text
    """
    reply = str(raw).strip()
    if OPTION_RE.fullmatch(reply):
        return OptionIntent(index=int(reply) - 1)
    return TextIntent(content=reply)
