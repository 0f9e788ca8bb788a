"""
Check digit engine (ICAO 9303 Part 3, section 4.9).

Every protected MRZ field is followed by one check digit computed with
weights 7, 3, 1 repeating, modulo 10. Character values:
- "0"-"9" -> 0-9
- "A"-"Z" -> 10-35
- "<" (filler) and anything else -> 0

ICAO also lets the filler stand in for a check digit of 0, which is
common on optional data fields left blank.
"""

from mrzlens.models import CheckResult


FILLER = "<"

WEIGHTS = (7, 3, 1)

DIGITS = "0123456789"


def char_value(char: str) -> int:
    """
    Numeric value of one MRZ character.

    Examples:
        >>> char_value("7")
        7
        >>> char_value("A")
        10
        >>> char_value("<")
        0
    """
    if len(char) != 1:
        return 0
    if char in DIGITS:
        return ord(char) - ord("0")
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    return 0


def compute_check_digit(span: str) -> int:
    """
    Compute the weighted modulus-10 check digit of a character span.

    Args:
        span: Any string. Unknown characters count as 0.

    Returns:
        Check digit 0-9

    Example:
        >>> compute_check_digit("L898902C3")
        6
    """
    total = 0
    for i, char in enumerate(span):
        total += char_value(char) * WEIGHTS[i % 3]
    return total % 10


def is_valid_check(computed: int, actual: str | None) -> bool:
    """
    Compare a printed check character with the computed digit.

    The filler is accepted as an encoding of 0. Anything that is not a
    single ASCII digit or the filler fails, it never raises.
    """
    if actual == FILLER:
        return computed == 0
    if not actual or len(actual) != 1 or actual not in DIGITS:
        return False
    return int(actual) == computed


def check_field(span: str, actual: str | None) -> CheckResult:
    """Compute the check digit of span and judge the printed one against it."""
    computed = compute_check_digit(span)
    return CheckResult(computed=computed, valid=is_valid_check(computed, actual))


def format_check_log(label: str, actual: str | None, computed: int) -> str:
    """
    Build the human-readable log line for one check.

    Example:
        >>> format_check_log("DOC_NUM", "6", 6)
        '[DOC_NUM] Check Digit: 6 | Calculated: 6 | Result: OK'
    """
    result = "OK" if is_valid_check(computed, actual) else "FAIL"
    shown = actual if actual else "?"
    return f"[{label}] Check Digit: {shown} | Calculated: {computed} | Result: {result}"
