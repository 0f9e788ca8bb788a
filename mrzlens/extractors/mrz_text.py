"""
MRZ Text Extractor - Turns a pasted text block into clean MRZ lines.

Users paste MRZ text from OCR tools, scanners or by hand, so we expect:
- lowercase letters
- spaces in the middle of a line (scanner column breaks)
- blank lines, stray page numbers, short garbage lines

Normalization: uppercase, drop all whitespace inside each line, then
discard lines shorter than 6 characters.
"""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


# Shorter lines are never MRZ content (the shortest MRZ line is 30 chars)
MIN_LINE_LENGTH = 6

WHITESPACE = re.compile(r"\s+")


@dataclass
class MRZText:
    """
    Normalized input of one decode call.

    Attributes:
        lines: Uppercased lines without whitespace, short lines removed
    """
    lines: list[str] = field(default_factory=list)


def extract_mrz_lines(raw_input: str | bytes | None) -> MRZText:
    """
    Normalize a raw text block into candidate MRZ lines.

    Never raises: None becomes an empty input and bytes are decoded as
    latin-1 (every byte maps to one character).

    Args:
        raw_input: Text block with 1-3 MRZ lines

    Returns:
        MRZText with the cleaned lines

    Example:
        >>> extract_mrz_lines("p<uto eriksson<<anna\\n\\n12").lines
        ['P<UTOERIKSSON<<ANNA']
    """
    if raw_input is None:
        raw_input = ""
    elif isinstance(raw_input, bytes):
        raw_input = raw_input.decode("latin-1")

    lines = []
    for physical_line in raw_input.upper().splitlines():
        line = WHITESPACE.sub("", physical_line)
        if len(line) >= MIN_LINE_LENGTH:
            lines.append(line)

    logger.debug(f"Extracted {len(lines)} candidate MRZ line(s)")
    return MRZText(lines=lines)
