from __future__ import annotations
import re
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from .base_data import (
    BUILDING_TYPES,
    CITY_NAMES,
    COMMON_WORDS,
    CRITICAL_STREET_ABBREVIATIONS,
    DIRECTION_KEYWORDS,
    DIRECTIONS,
    STREET_KEYWORDS,
    STREET_TYPES,
    build_reverse_alias_map,
)
from .models import AddressComponents, PreprocessedAddress

_CITY_ALT = "|".join(re.escape(c) for c in sorted(CITY_NAMES, key=len, reverse=True))
CITY_PREFIX = re.compile(rf"^(?:г\.?\s*|город\s+)?(?:{_CITY_ALT})(?:\s*,\s*|\s+|$)")
CITY_SUFFIX = re.compile(rf"\s*,\s*(?:г\.?\s*|город\s+)?(?:{_CITY_ALT})\.?$")

# Ordered from most to least specific; the first rule that matches wins.
HOUSE_NUMBER_RULES: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("corpus", re.compile(r"(?<!\d)\d+[а-яё]*\s*(?:корпус|к)\s*\d+[а-яё]*")),
    ("structure", re.compile(r"(?<!\d)\d+[а-яё]*\s*(?:строение|стр|с)\s*\d+[а-яё]*")),
    ("house", re.compile(r"(?<!\d)\d+[а-яё]*\s*(?:дом|д)\s*\d+[а-яё]*")),
    ("lettered", re.compile(r"(?<!\d)\d+[а-яё]+")),
    ("plain", re.compile(r"(?<!\d)\d+")),
)

BUILDING_PATTERN = re.compile(
    r"(?<![a-zа-яё])(?:корпус|строение|литер|владение|стр|лит|влд|к)(?=[\s\d])\s*(\d+[а-яё]?|[а-яё](?![а-яё]))"
)
DIRECTION_PATTERN = re.compile(r"\b(" + "|".join(DIRECTION_KEYWORDS) + r")\b")
_NUMBER_MARKERS = frozenset(["дом", "корпус", "строение", "литер", "владение", "сооружение"])

# Aggressive rewrites, applied in order after the street abbreviations are expanded.
AGGRESSIVE_RULES: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"(?<![\w-])(?:дом|д)\.?\s*(?=\d)"), ""),
    (re.compile(r"(\d+)\s*(?:корпус|корп|кор|к)\.?\s*(\d+)"), r"\1к\2"),
    (re.compile(r"(\d+)\s*(?:строение|стр|с)\.?\s*(\d+)"), r"\1с\2"),
    (re.compile(r"(\d+)\s*к\.?\s*$"), r"\1к"),
    (re.compile(r"(\d+)\s+([а-яё])(?!\w)"), r"\1\2"),
)

_PUNCTUATION = re.compile(r"[^\w\s]|_")
_AGGRESSIVE_PUNCTUATION = re.compile(r"[.,;:\-]")
_SPACES = re.compile(r"\s+")


class SynonymExpander:
    """Whole-word, case-insensitive substitution of variants with their canonical form."""

    def __init__(self, canonical_to_variants: Dict[str, List[str]]):
        self.reverse = build_reverse_alias_map(canonical_to_variants)
        # longest first so that "пр-т" wins over "пр"
        alts = sorted(self.reverse, key=len, reverse=True)
        self.pattern = re.compile(
            r"(?<![\w-])(" + "|".join(re.escape(a) for a in alts) + r")(?![\w-])",
            re.IGNORECASE,
        )

    def expand(self, text: str) -> str:
        return self.pattern.sub(lambda m: self.reverse[m.group(1).lower()], text)


def strip_city(text: str) -> str:
    text = CITY_PREFIX.sub("", text, count=1)
    text = CITY_SUFFIX.sub("", text, count=1)
    return text.strip()


def _collapse(text: str) -> str:
    return _SPACES.sub(" ", text).strip()


def extract_street(tokens: Sequence[str]) -> Optional[str]:
    for idx, token in enumerate(tokens):
        if token not in STREET_KEYWORDS:
            continue
        before: List[str] = []
        j = idx - 1
        while j >= 0 and tokens[j].isalpha() and tokens[j] not in _NUMBER_MARKERS:
            before.insert(0, tokens[j])
            j -= 1
        if before:
            return " ".join(before)
        # "улица ленина 10": the name follows the street type
        after: List[str] = []
        for nxt in tokens[idx + 1:]:
            if not nxt.isalpha() or nxt in _NUMBER_MARKERS or nxt in STREET_KEYWORDS:
                break
            after.append(nxt)
        return " ".join(after) or None
    return None


def extract_house_number(text: str) -> Optional[str]:
    for _name, pattern in HOUSE_NUMBER_RULES:
        m = pattern.search(text)
        if m:
            return m.group(0).strip()
    return None


def extract_building(text: str) -> Optional[str]:
    found = [m.group(0).strip() for m in BUILDING_PATTERN.finditer(text)]
    return " ".join(found) if found else None


def extract_direction(text: str) -> Optional[str]:
    m = DIRECTION_PATTERN.search(text)
    return m.group(1) if m else None


class AddressPreprocessor:
    def __init__(self, street_types: Optional[Dict[str, List[str]]] = None):
        self.expanders = [
            SynonymExpander(street_types or STREET_TYPES),
            SynonymExpander(BUILDING_TYPES),
            SynonymExpander(DIRECTIONS),
            SynonymExpander(COMMON_WORDS),
        ]
        self.critical = SynonymExpander(CRITICAL_STREET_ABBREVIATIONS)

    def normalize(self, raw: str) -> str:
        text = strip_city((raw or "").lower().strip())
        for expander in self.expanders:
            text = expander.expand(text)
        return _collapse(_PUNCTUATION.sub(" ", text))

    def preprocess(self, raw: str) -> PreprocessedAddress:
        normalized = self.normalize(raw)
        tokens = [t for t in normalized.split(" ") if t]
        components = AddressComponents(
            street=extract_street(tokens),
            house_number=extract_house_number(normalized),
            building=extract_building(normalized),
            direction=extract_direction(normalized),
        )
        return PreprocessedAddress(
            original=raw or "",
            normalized=normalized,
            components=components,
            tokens=tokens,
        )

    def aggressive(self, raw: str) -> str:
        """Compact form used for obvious matches: "10 корпус 1", "10 к 1" and "10к1" all become "10к1"."""
        if not raw:
            return ""
        text = strip_city(raw.lower().strip())
        text = self.critical.expand(text)
        for pattern, repl in AGGRESSIVE_RULES:
            text = pattern.sub(repl, text)
        return _collapse(_AGGRESSIVE_PUNCTUATION.sub(" ", text))


_default = AddressPreprocessor()


def preprocess_address(raw: str) -> PreprocessedAddress:
    return _default.preprocess(raw)


def aggressive_normalize(raw: str) -> str:
    return _default.aggressive(raw)
