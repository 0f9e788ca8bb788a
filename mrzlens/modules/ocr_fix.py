"""
OCR auto-fix pass.

OCR engines regularly confuse look-alike glyphs in the OCR-B font
(O/0, I/1, S/5, B/8, Z/2). When the caller enables auto-fix, characters
inside spans that the layout grammar declares numeric are mapped to
digits, and characters inside alphabetic spans are mapped to letters.

Optional data is never touched: it is free-form and may legitimately
mix letters and digits.
"""

import logging

logger = logging.getLogger(__name__)


# (line index, start, end) with end exclusive
Range = tuple[int, int, int]


# Letters that are commonly read where a digit should be
FIX_NUMERIC: dict[str, str] = {
    "O": "0", "Q": "0", "D": "0",
    "I": "1", "L": "1",
    "Z": "2",
    "S": "5",
    "B": "8",
}

# Digits that are commonly read where a letter should be
FIX_ALPHA: dict[str, str] = {
    "0": "O",
    "1": "I",
    "2": "Z",
    "5": "S",
    "8": "B",
}


def fix_characters(
    line: str,
    ranges: list[tuple[int, int]],
    table: dict[str, str],
) -> tuple[str, list[tuple[int, str, str]]]:
    """
    Substitute characters of line inside the given ranges.

    Args:
        line: One MRZ line
        ranges: (start, end) pairs, end exclusive. Offsets past the end
            of the line are ignored.
        table: Substitution table (FIX_NUMERIC or FIX_ALPHA)

    Returns:
        Tuple of (fixed_line, changes) where changes lists
        (position, old_char, new_char).

    Example:
        >>> fix_characters("74O8I22", [(0, 7)], FIX_NUMERIC)
        ('7408122', [(2, 'O', '0'), (4, 'I', '1')])
    """
    chars = list(line)
    changes = []

    for start, end in ranges:
        for i in range(max(start, 0), min(end, len(chars))):
            replacement = table.get(chars[i])
            if replacement is not None:
                changes.append((i, chars[i], replacement))
                chars[i] = replacement

    return "".join(chars), changes


def fix_type_code(line: str) -> tuple[str, str | None]:
    """
    Repair a "P0" document code, which is always a misread "PO".

    Returns:
        Tuple of (line, log_entry). log_entry is None when nothing changed.
    """
    if line.startswith("P0"):
        return "PO" + line[2:], "L1 Type [P0 -> PO]"
    return line, None


def apply_ocr_fixes(
    lines: list[str],
    numeric: tuple[Range, ...],
    alpha: tuple[Range, ...],
    type_code: bool = False,
) -> tuple[list[str], list[str]]:
    """
    Apply the numeric and alphabetic tables to the ranges of a layout.

    This is a pure function: the input list is not modified.

    Args:
        lines: MRZ lines of one document
        numeric: Ranges that must only contain digits (dates, check digits)
        alpha: Ranges that must only contain letters (names, country codes)
        type_code: Also repair a "P0" passport code on the first line

    Returns:
        Tuple of (fixed_lines, log_entries). One log entry per substituted
        character, e.g. "L2[15] O -> 0".
    """
    fixed = list(lines)
    logs = []

    if type_code and fixed:
        fixed[0], entry = fix_type_code(fixed[0])
        if entry:
            logs.append(entry)

    for ranges, table in ((numeric, FIX_NUMERIC), (alpha, FIX_ALPHA)):
        for line_index, start, end in ranges:
            if line_index >= len(fixed):
                continue
            fixed[line_index], changes = fix_characters(fixed[line_index], [(start, end)], table)
            for pos, old, new in changes:
                logs.append(f"L{line_index + 1}[{pos}] {old} -> {new}")

    if logs:
        logger.debug(f"OCR auto-fix applied {len(logs)} correction(s)")

    return fixed, logs
