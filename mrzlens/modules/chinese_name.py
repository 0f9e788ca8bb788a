"""
Embedded Chinese name decoding and pinyin cross-check.

Chinese (CHN/HKG/MAC) TD3 passports hide the holder's name in native
script inside the optional data field:

    optional data (14 chars) = BUFFER(12) + TRUNCATION(1) + ...

- BUFFER: the GBK bytes of the name, one hex nibble per character, with
  "A".."P" standing for 0x0..0xF. Two characters make one byte. Unused
  slots are filled with '<'.
- TRUNCATION: "A".."Z" -> 0..25, how many characters of the name did not
  fit in the buffer.

The Latin name printed on line 1 must begin with the pinyin of the
decoded name, and whatever follows must be able to hold the declared
number of missing characters. Contradictions are raised as risks:

| code                          | level    | meaning                                        |
|-------------------------------|----------|------------------------------------------------|
| risk_truncation_logic         | critical | truncation declared but buffer not full        |
| risk_name_mismatch            | critical | MRZ name does not start with the pinyin        |
| risk_name_mismatch            | warn     | no truncation declared but MRZ name is longer  |
| risk_truncation_len_mismatch  | critical | truncation declared but MRZ name ends there    |
| risk_truncation_vowel         | critical | too few vowels for the declared hidden syllables |

Both the pinyin and the GBK steps are delegated to collaborators so they
can be swapped (or stubbed in tests):
- transliterate(text) -> list of syllables (default: pypinyin.lazy_pinyin)
- decode(bytes) -> text (default: GB18030, the superset of GBK)
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from pypinyin import Style, lazy_pinyin

from mrzlens.models import Risk
from mrzlens.modules.checksum import FILLER

logger = logging.getLogger(__name__)


Transliterator = Callable[[str], list[str]]
Decoder = Callable[[bytes], str]


# Buffer layout inside the optional data field
NAME_BUFFER_LENGTH = 12
TRUNCATION_INDEX = 12

# "A" is nibble 0x0, "P" is nibble 0xF
NIBBLE_BASE = ord("A")

VOWELS = re.compile(r"[AEIOU]")

WHITESPACE = re.compile(r"\s+")


@dataclass
class EmbeddedName:
    """
    Native name recovered from the optional data field.

    Attributes:
        text: Decoded name (e.g. "张三")
        truncated: Declared number of missing characters, None if the
            truncation slot is not a letter
        has_fillers: True if the 12-char buffer contains '<'
    """
    text: str
    truncated: int | None
    has_fillers: bool


# =============================================================================
# DEFAULT COLLABORATORS
# =============================================================================

def pinyin_syllables(text: str) -> list[str]:
    """Toneless pinyin syllables, with ü written as "v" (e.g. 吕 -> "lv")."""
    return lazy_pinyin(text, style=Style.NORMAL)


def decode_gbk(data: bytes) -> str:
    """Decode GBK bytes. Invalid sequences become U+FFFD instead of failing."""
    return data.decode("gb18030", errors="replace")


# =============================================================================
# DECODING
# =============================================================================

def unpack_nibbles(buffer: str) -> bytes | None:
    """
    Convert the packed letter buffer into bytes.

    Fillers are dropped and an odd trailing nibble is discarded.

    Returns:
        bytes, or None if a character is outside "A".."P" or nothing is left

    Example:
        >>> unpack_nibbles("NFMFMIPN<<<<")
        b'\\xd5\\xc5\\xc8\\xfd'
    """
    packed = buffer.replace(FILLER, "")
    if len(packed) % 2:
        packed = packed[:-1]
    if not packed:
        return None

    nibbles = []
    for char in packed:
        value = ord(char) - NIBBLE_BASE
        if value < 0 or value > 15:
            return None
        nibbles.append(value)

    return bytes(high << 4 | low for high, low in zip(nibbles[0::2], nibbles[1::2]))


def read_truncation(char: str) -> int | None:
    """Map the truncation slot "A".."Z" to 0..25, anything else to None."""
    if len(char) == 1 and "A" <= char <= "Z":
        return ord(char) - ord("A")
    return None


def decode_embedded_name(optional_data: str | None, decode: Decoder = decode_gbk) -> EmbeddedName | None:
    """
    Recover the native name hidden in a Chinese passport's optional data.

    Args:
        optional_data: Raw optional data slice (fillers included)
        decode: bytes -> text collaborator for the legacy codepage

    Returns:
        EmbeddedName, or None when the field does not hold a packed name
        (too short, foreign characters, or the decoder failed)
    """
    if not optional_data or len(optional_data) <= TRUNCATION_INDEX:
        return None

    buffer = optional_data[:NAME_BUFFER_LENGTH]
    data = unpack_nibbles(buffer)
    if data is None:
        return None

    try:
        text = decode(data)
    except Exception as e:
        # Decoder is pluggable, anything can come out of it
        logger.warning(f"Embedded name decode failed: {e}")
        return None

    return EmbeddedName(
        text=text,
        truncated=read_truncation(optional_data[TRUNCATION_INDEX]),
        has_fillers=FILLER in buffer,
    )


# =============================================================================
# CROSS-CHECK
# =============================================================================

def normalize_latin(text: str) -> str:
    """Uppercase, remove whitespace, and write ü/v as U (LYU == LVU == LÜ)."""
    text = WHITESPACE.sub("", text.upper())
    return text.replace("V", "U").replace("Ü", "U")


def phonetic_key(name: str, transliterate: Transliterator = pinyin_syllables) -> str:
    """
    Pinyin reconstruction of a native name, in MRZ spelling.

    Example:
        >>> phonetic_key("张三")
        'ZHANGSAN'
    """
    return normalize_latin("".join(transliterate(name)))


def count_vowels(text: str) -> int:
    return len(VOWELS.findall(text))


def cross_check_name(
    embedded: EmbeddedName,
    surname: str | None,
    given_names: str | None,
    transliterate: Transliterator = pinyin_syllables,
) -> list[Risk]:
    """
    Compare the decoded native name with the Latin name of the MRZ.

    Args:
        embedded: Result of decode_embedded_name
        surname / given_names: Latin name fields from line 1
        transliterate: text -> syllables collaborator

    Returns:
        List of risks (empty when the two names agree)

    Raises:
        Whatever the transliterator raises. The caller decides how to
        degrade.
    """
    risks = []
    key = phonetic_key(embedded.text, transliterate)
    mrz_name = normalize_latin((surname or "") + (given_names or ""))
    truncated = embedded.truncated or 0

    # A declared truncation means the buffer was too small, so it must be full
    if truncated > 0 and embedded.has_fillers:
        risks.append(Risk("critical", "risk_truncation_logic", f"Tag:{truncated}, Fillers:YES"))

    if not mrz_name.startswith(key):
        risks.append(Risk("critical", "risk_name_mismatch", f"CN:{key} !~ MRZ:{mrz_name}"))
        return risks

    # Whatever follows the pinyin must spell the hidden characters
    suffix = mrz_name[len(key):]

    if truncated == 0:
        if suffix:
            risks.append(Risk("warn", "risk_name_mismatch", "Tag=0 but Extra MRZ"))
    elif not suffix:
        risks.append(Risk("critical", "risk_truncation_len_mismatch", f"Tag={truncated} but MRZ Ends"))
    else:
        # Every pinyin syllable has at least one vowel
        vowels = count_vowels(suffix)
        if vowels < truncated:
            risks.append(Risk("critical", "risk_truncation_vowel", f"Tag={truncated}, SuffixVowels={vowels}"))

    return risks
