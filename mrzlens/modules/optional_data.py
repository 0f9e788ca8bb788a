"""
Optional data mining.

The optional data field is free for the issuer to use. Many states put a
national personal number there (PESEL, BSN, CNP...), Germany stores
administrative serials, and Chinese passports pack the native name.

This module turns the field into ExtendedData for display and, on the
Chinese path, cross-checks the native name against the Latin one.

Rules are looked up by normalized issuer code, first match wins. Countries
without a rule get the cleaned field verbatim.
"""

import logging
import re
from dataclasses import dataclass, field

from mrzlens.models import ExtendedData, MRZResult, Risk
from mrzlens.modules.checksum import FILLER
from mrzlens.modules.chinese_name import (
    Decoder,
    Transliterator,
    cross_check_name,
    decode_embedded_name,
    decode_gbk,
    pinyin_syllables,
)
from mrzlens.modules.classifier import GREATER_CHINA, normalize_country

logger = logging.getLogger(__name__)


TITLE_STRUCT_CHECK = "lbl_struct_check"
TITLE_PERSONAL_NO = "lbl_personal_no"
TITLE_CHINESE_NAME = "lbl_chn_id"

ICAO_COMPLIANT = "ICAO COMPLIANT"


@dataclass(frozen=True)
class PersonalNumberRule:
    """
    How to display the optional data of one or more issuers.

    Attributes:
        countries: ICAO codes the rule applies to
        label: Prefix shown before the value ("PESEL", "BSN", ...)
        pattern: Regex that must be found in the field. When set, only the
            matched part is displayed.
        exact: The pattern must match the whole field
        min_length: Minimum cleaned length for the rule to apply
        formats: Restrict the rule to these formats (None = any)
    """
    countries: frozenset[str]
    label: str
    pattern: str | None = None
    exact: bool = False
    min_length: int = 0
    formats: frozenset[str] | None = None

    def apply(self, issuer: str, document_format: str, text: str) -> str | None:
        """Return the display text, or None if the rule does not match."""
        if issuer not in self.countries:
            return None
        if self.formats is not None and document_format not in self.formats:
            return None
        if len(text) < self.min_length:
            return None

        value = text
        if self.pattern:
            match = re.fullmatch(self.pattern, text) if self.exact else re.search(self.pattern, text)
            if not match:
                return None
            value = match.group(0)

        return f"{self.label}: {value}"


def _rule(countries: str, label: str, **kwargs) -> PersonalNumberRule:
    formats = kwargs.pop("formats", None)
    return PersonalNumberRule(
        countries=frozenset(countries.split()),
        label=label,
        formats=frozenset(formats.split()) if formats else None,
        **kwargs,
    )


PERSONAL_NUMBER_RULES: list[PersonalNumberRule] = [
    _rule("ESP", "DNI"),
    _rule("DEU", "Serial/Auth", formats="TD2"),
    _rule("DEU", "Admin"),
    _rule("NLD", "BSN", pattern=r"[0-9]{9}", exact=True),
    _rule("CZE SVK", "RČ", min_length=9),
    _rule("SVN", "EMŠO", min_length=13),
    _rule("ZAF", "ID No"),
    _rule("POL", "PESEL", pattern=r"[0-9]{11}"),
    _rule("ROU", "CNP", pattern=r"[0-9]{13}"),
    _rule("BEL", "Nat. No", pattern=r"[0-9]{11}"),
    _rule("CHE", "AHV", pattern=r"[0-9]{13}"),
    _rule("ISR", "ID No", pattern=r"[0-9]{9}"),
    _rule("PRT", "Civil ID/Tax"),
    _rule("SWE FIN NOR ISL", "Personal ID"),
    _rule("EST LVA LTU", "Personal Code"),
    _rule("UKR", "Record No"),
]


@dataclass
class MiningResult:
    """Output of mine_optional_data."""
    extended_data: ExtendedData
    risks: list[Risk] = field(default_factory=list)
    logs: list[str] = field(default_factory=list)


def clean_optional_data(text: str | None) -> str:
    """Drop fillers and surrounding whitespace."""
    if not text:
        return ""
    return text.replace(FILLER, "").strip()


def format_personal_number(issuer: str, document_format: str, text: str) -> str:
    """
    Display text for a non-Chinese optional data field.

    Examples:
        >>> format_personal_number("POL", "TD3", "X12345678901")
        'PESEL: 12345678901'
        >>> format_personal_number("UTO", "TD3", "ZE184226B")
        'ZE184226B'
    """
    for rule in PERSONAL_NUMBER_RULES:
        display = rule.apply(issuer, document_format, text)
        if display is not None:
            return display
    return text


def mine_chinese_name(
    result: MRZResult,
    transliterate: Transliterator,
    decode: Decoder,
) -> MiningResult | None:
    """
    Decode the native name of a Chinese TD3 passport and cross-check it.

    Returns:
        MiningResult, or None if the field does not hold a packed name
        (the caller then falls back to the generic rules).
    """
    embedded = decode_embedded_name(result.fields.optional_data, decode)
    if embedded is None:
        return None

    mined = MiningResult(
        extended_data=ExtendedData(TITLE_CHINESE_NAME, embedded.text, embedded.truncated),
    )

    try:
        mined.risks = cross_check_name(
            embedded,
            result.fields.surname,
            result.fields.given_names,
            transliterate,
        )
    except Exception as e:
        # Transliterator is pluggable, anything can come out of it
        logger.warning(f"Pinyin cross-check skipped: {e}")
        mined.logs.append("Pinyin cross-check skipped")

    return mined


def mine_optional_data(
    result: MRZResult,
    issuer: str | None,
    raw_optional: str | None,
    transliterate: Transliterator = pinyin_syllables,
    decode: Decoder = decode_gbk,
) -> MiningResult:
    """
    Interpret the optional data field of a decoded document.

    Args:
        result: Result of the layout engine (format and fields are used)
        issuer: Issuing state as printed on the document
        raw_optional: Optional data to mine (TD1 joins both segments)
        transliterate: Pinyin collaborator for the Chinese path
        decode: GBK collaborator for the Chinese path

    Returns:
        MiningResult with extended data and any risks found
    """
    issuer = normalize_country(issuer)
    clean = clean_optional_data(raw_optional)

    if not clean:
        return MiningResult(extended_data=ExtendedData(TITLE_STRUCT_CHECK, ICAO_COMPLIANT))

    if issuer in GREATER_CHINA and result.format == "TD3":
        mined = mine_chinese_name(result, transliterate, decode)
        if mined is not None:
            return mined
        logger.debug("No packed name in Chinese optional data, using generic rules")

    text = format_personal_number(issuer, result.format, clean)
    return MiningResult(extended_data=ExtendedData(TITLE_PERSONAL_NO, text))
