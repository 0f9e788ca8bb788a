"""
Scoring - Turns a decoded MRZ into a risk level and a short summary.

Two independent signals feed the verdict:
- check digits (Validations): was the MRZ read and printed correctly?
- risks (Risk): is the content internally consistent?

Risk levels:
- LOW: every check passed and no finding
- MEDIUM: a check digit failed, or only "warn" findings
- HIGH: one critical finding, or the MRZ could not be recognized
- CRITICAL: two or more critical findings
"""

from typing import Literal

from mrzlens.models import MRZResult, MRZSummary, Risk


RiskLevelName = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]

# Sort order, most serious first
LEVEL_ORDER = {"critical": 0, "warn": 1}

# Human-readable sentence for each risk code
RISK_MESSAGES: dict[str, str] = {
    "risk_truncation_logic": "The name buffer declares a truncation but still has free slots.",
    "risk_name_mismatch": "The Latin name does not match the embedded Chinese name.",
    "risk_truncation_len_mismatch": "A truncated name is declared but the Latin name has nothing to spare.",
    "risk_truncation_vowel": "The Latin name is too short to hold the hidden Chinese characters.",
}

# Validations attribute -> label used in bullets
CHECK_LABELS = {
    "document_number": "document number",
    "birth_date": "date of birth",
    "expiry_date": "expiry date",
    "optional_data": "optional data",
    "composite": "composite",
}


def collect_risks(result: MRZResult) -> list[Risk]:
    """All risks of a result, critical first, otherwise in raising order."""
    return sorted(result.risks, key=lambda r: LEVEL_ORDER.get(r.level, 2))


def count_risks_by_level(risks: list[Risk]) -> dict[str, int]:
    """Count risks per level."""
    counts = {"critical": 0, "warn": 0}
    for risk in risks:
        if risk.level in counts:
            counts[risk.level] += 1
    return counts


def failed_checks(result: MRZResult) -> list[str]:
    """Names of the Validations flags that are False."""
    return [name for name in CHECK_LABELS if not getattr(result.validations, name)]


def get_risk_level(result: MRZResult) -> RiskLevelName:
    """
    Risk level of a decoded document.

    Examples:
        >>> get_risk_level(MRZResult())  # unrecognized input
        'HIGH'
    """
    if result.format == "UNKNOWN":
        return "HIGH"

    counts = count_risks_by_level(result.risks)
    if counts["critical"] >= 2:
        return "CRITICAL"
    if counts["critical"] == 1:
        return "HIGH"
    if not result.valid or counts["warn"] > 0:
        return "MEDIUM"
    return "LOW"


def expiry_bullet(result: MRZResult) -> str | None:
    days = result.parsed.days_remaining
    if days is None:
        return None
    if days < 0:
        return f"The document expired {-days} day(s) ago."
    return f"The document is valid for another {days} day(s)."


def generate_summary(result: MRZResult) -> MRZSummary:
    """
    Build a verdict and bullet list for display.

    Args:
        result: Decoded MRZ

    Returns:
        MRZSummary
    """
    level = get_risk_level(result)

    if result.format == "UNKNOWN":
        return MRZSummary(
            verdict="We could not recognize an MRZ in this text.",
            risk_level=level,
            bullets=["Expected 2 lines of 44 or 36 characters, 3 lines of 30, or 1 line of 30."],
        )

    bullets = []

    failed = failed_checks(result)
    for name in failed:
        bullets.append(f"The {CHECK_LABELS[name]} check digit does not match.")
    if not failed:
        bullets.append("All check digits are valid.")

    for risk in collect_risks(result):
        message = RISK_MESSAGES.get(risk.code, risk.code)
        bullets.append(f"{message} ({risk.details})" if risk.details else message)

    expiry = expiry_bullet(result)
    if expiry:
        bullets.append(expiry)

    fixes = [log for log in result.logs if "->" in log]
    if fixes:
        bullets.append(f"{len(fixes)} character(s) were corrected by the OCR auto-fix.")

    if level == "CRITICAL":
        verdict = "This MRZ shows strong signs of tampering."
    elif level == "HIGH":
        verdict = "We suspect this MRZ has been altered."
    elif level == "MEDIUM":
        verdict = "This MRZ needs a manual check."
    else:
        verdict = "This MRZ looks consistent."

    return MRZSummary(verdict=verdict, risk_level=level, bullets=bullets)
