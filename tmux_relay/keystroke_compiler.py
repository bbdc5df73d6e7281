"""Turn a parsed reply into the key sequence that answers the prompt."""

import logging
from typing import Optional, Sequence

from .models import (
    CompileResult,
    ErrorKind,
    KeyEvent,
    Literal,
    OptionIntent,
    RelayError,
    ReplyIntent,
    TextIntent,
)

logger = logging.getLogger(__name__)


def compile_keys(intent: ReplyIntent, options: Optional[Sequence[str]] = None) -> CompileResult:
    """
    Compile an intent into logical key events.

    Menu prompts start with the first entry highlighted, so option N is
    reached with N-1 Down presses followed by Enter. Text replies clear the
    input line first so nothing already typed gets concatenated.

    Args:
        intent: Parsed reply
        options: Known option labels, used for range validation and echo

    Returns:
        CompileResult with the sequence, or an out_of_range error
    """
    if isinstance(intent, OptionIntent):
        if intent.index < 0:
            # "0" parses to -1; options are numbered from 1
            return CompileResult(error=RelayError(
                kind=ErrorKind.OUT_OF_RANGE,
                message=f"option index {intent.index + 1} out of range (options are numbered from 1)",
            ))
        if options is not None and intent.index >= len(options):
            return CompileResult(error=RelayError(
                kind=ErrorKind.OUT_OF_RANGE,
                message=(
                    f"option index {intent.index + 1} out of range "
                    f"({len(options)} options available)"
                ),
            ))

        sequence = [KeyEvent.DOWN] * intent.index + [KeyEvent.ENTER]
        option_text = options[intent.index] if options is not None else None
        if option_text is not None:
            logger.debug(f"Selecting option {intent.index + 1}: {option_text}")
        return CompileResult(sequence=sequence, option_text=option_text)

    if isinstance(intent, TextIntent):
        return CompileResult(sequence=[
            KeyEvent.CLEAR_LINE,
            Literal(intent.content),
            KeyEvent.ENTER,
        ])

    raise TypeError(f"Unsupported reply intent: {intent!r}")
