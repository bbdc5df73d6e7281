"""Condense captured pane text into a notification-sized summary."""

import re

# Regex to match ANSI escape codes (comprehensive)
ANSI_ESCAPE_RE = re.compile(
    r'\x1b\[[0-9;?]*[a-zA-Z]|'  # CSI sequences (including private modes like ?2026h)
    r'\x1b\][^\x07]*\x07|'       # OSC sequences (title, etc.)
    r'\x1b[PX^_].*?\x1b\\|'      # DCS, SOS, PM, APC sequences
    r'\x1b[\(\)][AB012]|'        # Character set selection
    r'\x1b[=>]|'                 # Keypad modes
    r'\x1b[78]|'                 # Save/restore cursor
    r'\x1b[DMEHc]|'              # Various single-char commands
    r'[\x00-\x08\x0b\x0c\x0e-\x1f]'  # Other control characters
)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes and control characters from text."""
    text = ANSI_ESCAPE_RE.sub('', text)
    # Second pass: remove any remaining escape sequences we might have missed
    return re.sub(r'\x1b[^a-zA-Z]*[a-zA-Z]', '', text)


def summarize(pane_text: str, max_lines: int = 15, max_chars: int = 600) -> str:
    """
    Keep the tail of a pane capture: the question and its options.

    Blank lines are dropped, then the last max_lines lines are kept and the
    result is cut to its last max_chars characters.
    """
    lines = [line for line in strip_ansi(pane_text or "").split("\n") if line.strip()]
    return "\n".join(lines[-max_lines:])[-max_chars:]
