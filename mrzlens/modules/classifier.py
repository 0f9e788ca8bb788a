"""
Country and document type classification.

Two jobs:
1. normalize_country: turn the 1-3 letter issuing codes found on real
   documents into ICAO 3-letter codes. Some older European documents
   print distinguishing signs ("D", "F", "GB") instead of ICAO codes.
2. classify_document: derive a fine-grained type key (e.g. "type_hkg",
   "type_deu_id") used by the UI to pick a label and by reviewers to
   filter documents.

The classifier is an ordered list of rules evaluated first-match-wins,
so adding a special case means adding one line, not another branch.
"""

from dataclasses import dataclass
from typing import Callable

from mrzlens.modules.checksum import FILLER


# Legacy distinguishing signs -> ICAO 9303 codes
COUNTRY_ALIASES: dict[str, str] = {
    "D": "DEU",
    "F": "FRA",
    "E": "ESP",
    "I": "ITA",
    "A": "AUT",
    "B": "BEL",
    "P": "PRT",
    "N": "NOR",
    "S": "SWE",
    "FIN": "FIN",
    "DK": "DNK",
    "CH": "CHE",
    "GB": "GBR",
    "GR": "GRC",
    "NL": "NLD",
}

# Issuers whose passports follow the Chinese numbering conventions
GREATER_CHINA = frozenset({"CHN", "HKG", "MAC"})

# Formats that are always identity cards
CARD_FORMATS = frozenset({"TD1", "TD2", "CN_CARD"})


def normalize_country(code: str | None) -> str:
    """
    Normalize an issuing state or nationality code.

    Fillers and whitespace are removed, legacy codes are mapped, anything
    else passes through unchanged. Applying it twice gives the same result.

    Examples:
        >>> normalize_country("D<<")
        'DEU'
        >>> normalize_country("GB<")
        'GBR'
        >>> normalize_country("UTO")
        'UTO'
    """
    if not code:
        return ""
    clean = code.replace(FILLER, "").strip()
    return COUNTRY_ALIASES.get(clean, clean)


@dataclass(frozen=True)
class DocumentContext:
    """Inputs of the classifier, already normalized."""
    issuer: str
    type_code: str
    layout: str
    document_number: str

    @property
    def chinese(self) -> bool:
        return self.issuer in GREATER_CHINA


# Ordered (predicate, type key) rules. First match wins.
TYPE_RULES: list[tuple[Callable[[DocumentContext], bool], str]] = [
    (lambda d: d.type_code.startswith("V"), "type_visa"),
    (lambda d: d.chinese and d.type_code == "PO", "type_chn_po"),
    (lambda d: d.chinese and d.type_code.startswith("P") and d.issuer == "HKG", "type_hkg"),
    (lambda d: d.chinese and d.type_code.startswith("P") and d.issuer == "MAC", "type_mac"),
    (lambda d: d.chinese and d.type_code.startswith("P") and d.document_number[:1] in ("H", "K"), "type_hkg"),
    (lambda d: d.chinese and d.type_code.startswith("P") and d.document_number.startswith("M")
        and len(d.document_number) > 8, "type_mac"),
    (lambda d: d.chinese and d.type_code.startswith("P"), "type_chn_pe"),
    (lambda d: d.chinese and d.type_code == "CS", "type_eep_hk"),
    (lambda d: d.chinese and d.type_code == "CD", "type_eep_tw"),
]


def generic_type(context: DocumentContext) -> str:
    """Build "type_<country>_<id|p>" for documents without a special rule."""
    doc_class = "p"
    if context.layout in CARD_FORMATS or context.type_code[:1] in ("I", "C"):
        doc_class = "id"
    return f"type_{context.issuer.lower()}_{doc_class}"


def classify_document(
    issuer: str | None,
    type_code: str | None,
    layout: str,
    document_number: str | None = "",
) -> str:
    """
    Derive the fine-grained document type key.

    Args:
        issuer: Issuing state as printed (normalized here)
        type_code: First two characters of the type line (e.g. "P<", "PO", "ID")
        layout: Base format name ("TD3", "TD2", "TD1", "CN_CARD")
        document_number: Raw document number slice (used for HK/Macau
            heuristics on Chinese passports)

    Returns:
        Type key such as "type_visa", "type_hkg", "type_uto_p"

    Examples:
        >>> classify_document("UTO", "P<", "TD3", "L898902C3")
        'type_uto_p'
        >>> classify_document("CHN", "P<", "TD3", "K12345678")
        'type_hkg'
    """
    context = DocumentContext(
        issuer=normalize_country(issuer),
        type_code=type_code or "",
        layout=layout,
        document_number=document_number or "",
    )

    for predicate, type_key in TYPE_RULES:
        if predicate(context):
            return type_key

    return generic_type(context)
