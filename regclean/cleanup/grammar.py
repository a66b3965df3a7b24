"""
Regex grammars for the legal-structure heuristics, kept as named constants,
plus the small matchers that turn text into tagged classification results.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from regclean.models import MarkerType

# --- Titles ---

ARTICLE_TITLE_RE = re.compile(r"^(\d+(?:\.\d+)*[a-e]?)\.\s*gr\.?$", re.IGNORECASE)
PROVISIONAL_ARTICLE_RE = re.compile(r"^Ákvæði til bráðabirgða\.?$", re.IGNORECASE)

# Roman numerals up to XXXIX, followed by a period and whitespace
ROMAN_NUMERAL = r"X{0,3}(?:I{1,4}|IV|VI{0,3}|IX|X)"
ROMAN_CHAPTER_RE = re.compile(rf"^{ROMAN_NUMERAL}\.\s")
DECIMAL_CHAPTER_RE = re.compile(r"^\d+[a-e]?\. ?kafli\b", re.IGNORECASE)
APPENDIX_CHAPTER_RE = re.compile(r"^Viðauki\.?$", re.IGNORECASE)

# Used to split "12. gr. - Name" style one-liners
DASH_SPLITTER_RE = re.compile(r"\s([-–—])\s")

# Tidies "3. gr ." and "3. gr" into "3. gr." on explicitly classed titles
TRAILING_GR_RE = re.compile(r" gr\s*\.?$", re.IGNORECASE)

# --- Signature block ---

YEAR = r" (?:19\d\d|20\d\d)"
HAS_YEAR_RE = re.compile(rf"{YEAR}\s?(?:[,. ]|$)")

MONTH = (
    r"(?:jan(?:\.|úar)|feb(?:\.|rúar)|mar(?:\.|s)|apr(?:\.|íl)|maí|jún(?:\.|í)|júl(?:\.|í)"
    r"|ágú(?:\.|st)|sep(?:\.|tember)|okt(?:\.|óber)|nóv(?:\.|ember)|des(?:\.|ember))"
)
DATE_LINE_RE = re.compile(
    rf"ráðuneyti(?:ð|nu)\s?,?\s(?:[12]?\d|3[01])\.\s{MONTH}{YEAR}\s?[,.]?$",
    re.IGNORECASE,
)
ON_BEHALF_ABBR_RE = re.compile(r"^f.\s?h.\s?r\s?[.,]?$", re.IGNORECASE)
ON_BEHALF_MINISTER_RE = re.compile(r"^f\.\s?h\.\s.+ráðherra\s*[.,]?$", re.IGNORECASE)

# --- List markers ---

BULLET_MARKERS = frozenset(["-", "–", "—", "•"])
COMPLEX_MARKER_RE = re.compile(r"^\d+(?:\.\d+)+\s*[.)]$")
DECIMAL_MARKER_RE = re.compile(r"^\d+\s*[.)]$")
LOWER_ALPHA_MARKER_RE = re.compile(r"^[a-z]\s*[.)]$")
UPPER_ALPHA_MARKER_RE = re.compile(r"^[A-Z]\s*[.)]$")
ROMAN_MARKER_RE = re.compile(rf"^{ROMAN_NUMERAL}\s*[.)]$", re.IGNORECASE)
ROMAN_LETTERS = frozenset("ivxclIVXCL")


class TitleKind(str, Enum):
    ARTICLE = "article"
    PROVISIONAL_ARTICLE = "provisional-article"
    CHAPTER = "chapter"
    APPENDIX_CHAPTER = "appendix-chapter"


_TITLE_CLASS_NAMES = {
    TitleKind.ARTICLE: "article__title",
    TitleKind.PROVISIONAL_ARTICLE: "article__title article__title--provisional",
    TitleKind.CHAPTER: "chapter__title",
    TitleKind.APPENDIX_CHAPTER: "chapter__title chapter__title--appendix",
}


@dataclass(frozen=True)
class TitleMatch:
    kind: TitleKind
    text: str

    @property
    def tag(self) -> str:
        return "h2" if self.kind in (TitleKind.CHAPTER, TitleKind.APPENDIX_CHAPTER) else "h3"

    @property
    def class_name(self) -> str:
        return _TITLE_CLASS_NAMES[self.kind]


class SignatureKind(str, Enum):
    DATE_LINE = "Dags"
    ON_BEHALF = "FHUndirskr"


def normalize_title_text(text: str) -> str:
    """Collapses "7. gr ." into "7. gr." before matching."""
    return re.sub(r"\s*\.$", ".", text.strip())


def classify_article_title(text: str) -> Optional[TitleMatch]:
    """Matches "12. gr.", "3a. gr" and "Ákvæði til bráðabirgða" style titles."""
    text = normalize_title_text(text)
    if PROVISIONAL_ARTICLE_RE.match(text):
        kind = TitleKind.PROVISIONAL_ARTICLE
    elif ARTICLE_TITLE_RE.match(text):
        kind = TitleKind.ARTICLE
    else:
        return None
    return TitleMatch(kind, text.rstrip(".") + ".")


def is_chapter_title(text: str) -> bool:
    text = text.strip()
    return bool(ROMAN_CHAPTER_RE.match(text) or DECIMAL_CHAPTER_RE.match(text))


def classify_chapter_title(text: str) -> Optional[TitleMatch]:
    """Matches "IV. Kafli", "II. Um gildissvið", "3. kafli" and "Viðauki"."""
    text = normalize_title_text(text)
    if APPENDIX_CHAPTER_RE.match(text):
        return TitleMatch(TitleKind.APPENDIX_CHAPTER, text)
    if is_chapter_title(text):
        return TitleMatch(TitleKind.CHAPTER, text)
    return None


def classify_signature_line(text: str) -> Optional[SignatureKind]:
    text = text.strip()
    if ON_BEHALF_ABBR_RE.match(text) or ON_BEHALF_MINISTER_RE.match(text):
        return SignatureKind.ON_BEHALF
    if DATE_LINE_RE.search(text):
        return SignatureKind.DATE_LINE
    return None


def has_year(text: str) -> bool:
    return bool(HAS_YEAR_RE.search(text))


def get_item_marker(text: str) -> str:
    """The first whitespace-free token of a list item."""
    return text[:10].strip().split(" ")[0]


def infer_marker_type(text: str, prefer_roman: bool = False) -> MarkerType:
    """
    Infers the list-marker style of a leading token such as "a)", "iv." or "–".
    Single letters that are also roman digits count as roman when `prefer_roman`.
    """
    if text in BULLET_MARKERS:
        return MarkerType.BULLET
    if COMPLEX_MARKER_RE.match(text):
        return MarkerType.COMPLEX
    if DECIMAL_MARKER_RE.match(text):
        return MarkerType.DECIMAL
    if LOWER_ALPHA_MARKER_RE.match(text):
        return MarkerType.LOWER_ROMAN if prefer_roman and text[0] in ROMAN_LETTERS else MarkerType.LOWER_ALPHA
    if UPPER_ALPHA_MARKER_RE.match(text):
        return MarkerType.UPPER_ROMAN if prefer_roman and text[0] in ROMAN_LETTERS else MarkerType.UPPER_ALPHA
    if ROMAN_MARKER_RE.match(text):
        return MarkerType.LOWER_ROMAN if text[0].islower() else MarkerType.UPPER_ROMAN
    return MarkerType.NONE


def is_faux_list_marker(text: str) -> bool:
    return infer_marker_type(text) is not MarkerType.NONE
