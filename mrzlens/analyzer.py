"""
MRZ Lens Analyzer - Main entry point for decoding a Machine Readable Zone.

Pipeline for one call:
1. Normalize the pasted text into candidate lines
2. Detect the layout from line count and width
3. Extract fields and run every check digit (optional OCR auto-fix first)
4. Normalize country codes and classify the document type
5. Derive dates, days until expiry and age
6. Mine the optional data field (personal numbers, Chinese native name)

Usage:
    from mrzlens.analyzer import MRZAnalyzer

    analyzer = MRZAnalyzer(auto_fix=True)
    result = analyzer.analyze(text)

    print(f"Valid: {result.valid} ({result.format})")
    for risk in result.risks:
        print(risk.level, risk.code, risk.details)
"""

import logging
from datetime import datetime
from typing import Callable

from mrzlens.models import MRZResult, MRZSummary
from mrzlens.extractors.mrz_text import extract_mrz_lines
from mrzlens.modules.chinese_name import Decoder, Transliterator, decode_gbk, pinyin_syllables
from mrzlens.modules.classifier import classify_document, normalize_country
from mrzlens.modules.dates import derive_dates
from mrzlens.modules.layouts import match_layout, parse_layout
from mrzlens.modules.optional_data import mine_optional_data
from mrzlens.scoring import generate_summary

logger = logging.getLogger(__name__)


UNRECOGNIZED_FORMAT = "Unrecognized Format"


def unknown_result(lines: list[str]) -> MRZResult:
    """Empty, well-shaped result for input that matches no layout."""
    return MRZResult(
        valid=False,
        format="UNKNOWN",
        type="UNKNOWN",
        raw_lines=list(lines),
        logs=[UNRECOGNIZED_FORMAT],
    )


class MRZAnalyzer:
    """
    Decoder for MRZ text blocks.

    The analyzer holds no per-call state, so one instance can be shared
    between threads.

    Attributes:
        auto_fix: Repair common OCR confusions before checking digits
        transliterate: Chinese text -> pinyin syllables
        decode: GBK bytes -> text
        clock: Returns "now" (dates, days remaining, age)

    Example:
        >>> analyzer = MRZAnalyzer()
        >>> result = analyzer.analyze(
        ...     "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<\\n"
        ...     "L898902C36UTO7408122F1204159ZE184226B<<<<<10"
        ... )
        >>> result.valid, result.fields.surname
        (True, 'ERIKSSON')
    """

    def __init__(
        self,
        auto_fix: bool = False,
        transliterate: Transliterator = pinyin_syllables,
        decode: Decoder = decode_gbk,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.auto_fix = auto_fix
        self.transliterate = transliterate
        self.decode = decode
        self.clock = clock

    def analyze(self, raw_input: str | bytes | None) -> MRZResult:
        """
        Decode and validate one MRZ.

        Never raises: unreadable input gives format "UNKNOWN" and
        valid=False.

        Args:
            raw_input: Text block with the MRZ lines

        Returns:
            MRZResult
        """
        text = extract_mrz_lines(raw_input)
        layout, lines = match_layout(text.lines)

        if layout is None:
            logger.info(f"Unrecognized MRZ shape: {[len(line) for line in text.lines]}")
            return unknown_result(text.lines)

        logger.info(f"Decoding {layout.name} MRZ (auto_fix={self.auto_fix})")
        result = parse_layout(layout, lines, auto_fix=self.auto_fix)

        for line in text.lines:
            if len(line) > layout.width:
                result.logs.append(f"Trimmed {len(line) - layout.width} trailing filler(s)")

        # Keep the raw issuer for mining, expose normalized codes
        issuer = result.fields.issuing_state
        result.fields.issuing_state = normalize_country(issuer)
        result.fields.nationality = normalize_country(result.fields.nationality)

        logger.debug("Classifying document...")
        result.fields.detailed_type = classify_document(
            issuer,
            result.fields.document_type_raw,
            layout.name,
            result.fields.document_number,
        )

        logger.debug("Deriving dates...")
        result.parsed = derive_dates(result.fields, now=self.clock())

        logger.debug("Mining optional data...")
        optional_parts = [
            part for part in (result.fields.optional_data, result.fields.optional_data_2)
            if part is not None
        ]
        mined = mine_optional_data(
            result,
            issuer,
            " ".join(optional_parts),
            transliterate=self.transliterate,
            decode=self.decode,
        )
        result.parsed.extended_data = mined.extended_data
        result.risks.extend(mined.risks)
        result.logs.extend(mined.logs)

        logger.info(f"Decode complete: format={result.format}, valid={result.valid}, risks={len(result.risks)}")
        return result

    def analyze_with_summary(self, raw_input: str | bytes | None) -> tuple[MRZResult, MRZSummary]:
        """
        Decode an MRZ and build the human-readable verdict.

        Returns:
            Tuple of (MRZResult, MRZSummary)
        """
        result = self.analyze(raw_input)
        return result, generate_summary(result)


def process_mrz(
    raw_input: str | bytes | None,
    auto_fix: bool = False,
    *,
    now: datetime | None = None,
    transliterate: Transliterator | None = None,
    decode: Decoder | None = None,
) -> MRZResult:
    """
    One-shot decode for simple use cases.

    Args:
        raw_input: Text block with 1-3 MRZ lines
        auto_fix: Repair common OCR confusions first
        now: Reference time for date derivation (defaults to the clock)
        transliterate: Override the pinyin collaborator
        decode: Override the GBK collaborator

    Returns:
        MRZResult

    Example:
        >>> result = process_mrz("garbage")
        >>> result.format, result.valid
        ('UNKNOWN', False)
    """
    analyzer = MRZAnalyzer(
        auto_fix=auto_fix,
        transliterate=transliterate or pinyin_syllables,
        decode=decode or decode_gbk,
        clock=(lambda: now) if now is not None else datetime.now,
    )
    return analyzer.analyze(raw_input)
