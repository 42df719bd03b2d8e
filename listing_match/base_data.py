from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, List, Tuple

# canonical -> variants; every variant is matched as a whole word
STREET_TYPES: Dict[str, List[str]] = {
    "улица": ["ул", "улица", "улицa", "street", "st", "str"],
    "проспект": ["пр", "проспект", "пр-т", "пр-кт", "проспкт", "avenue", "av", "ave"],
    "переулок": ["пер", "переулок", "перкулок", "lane", "ln"],
    "бульвар": ["бул", "бульвар", "б-р", "бр", "boulevard", "blvd"],
    "площадь": ["пл", "площадь", "плошадь", "square", "sq"],
    "набережная": ["наб", "набережная", "нбр", "embankment", "emb"],
    "шоссе": ["ш", "шоссе", "шосе", "highway", "hwy"],
    "тупик": ["туп", "тупик", "тупк", "dead end"],
    "проезд": ["пр-д", "проезд", "прзд", "drive", "dr"],
    "аллея": ["ал", "аллея", "алея", "alley"],
    "дорога": ["дор", "дорога", "дрг", "road", "rd"],
    "магистраль": ["маг", "магистраль", "мгстр"],
    "линия": ["лин", "линия", "лня", "line"],
}

BUILDING_TYPES: Dict[str, List[str]] = {
    "дом": ["д", "дом", "house", "h", "home"],
    "корпус": ["к", "корп", "корпус", "кор", "building", "bld", "corp"],
    "строение": ["стр", "строение", "стрн", "structure"],
    "сооружение": ["соор", "сооружение", "сорж"],
    "литер": ["лит", "литер", "лтр", "letter", "lit"],
    "владение": ["влд", "владение", "влдн", "possession"],
}

DIRECTIONS: Dict[str, List[str]] = {
    "северный": ["сев", "северный", "север", "north", "n"],
    "южный": ["юж", "южный", "юг", "south", "s"],
    "восточный": ["вост", "восточный", "восток", "east", "e"],
    "западный": ["зап", "западный", "запад", "west", "w"],
    "центральный": ["центр", "центральный", "цнтр", "central", "c"],
}

COMMON_WORDS: Dict[str, List[str]] = {
    "большой": ["б", "бол", "большой", "больш", "big"],
    "малый": ["м", "мал", "малый", "мл", "small"],
    "новый": ["н", "нов", "новый", "нвы", "new"],
    "старый": ["ст", "стар", "старый", "стры", "old"],
    "верхний": ["верх", "верхний", "врх", "upper"],
    "нижний": ["ниж", "нижний", "нжн", "lower"],
}

# Abbreviations that are always expanded by the aggressive normalizer.
CRITICAL_STREET_ABBREVIATIONS: Dict[str, List[str]] = {
    "улица": ["ул"],
    "проспект": ["пр", "пр-т", "пр-кт"],
    "переулок": ["пер"],
    "бульвар": ["б-р", "бул"],
    "шоссе": ["ш"],
    "площадь": ["пл"],
    "набережная": ["наб"],
    "тупик": ["туп"],
    "проезд": ["пр-д"],
}

CITY_NAMES: Tuple[str, ...] = ("москва", "мск", "санкт-петербург", "спб")

# Street types recognised when pulling the street name out of a normalized string.
STREET_KEYWORDS: Tuple[str, ...] = (
    "улица", "проспект", "переулок", "бульвар", "площадь", "набережная",
    "шоссе", "тупик", "проезд", "аллея", "дорога",
)

# Keywords accepted as the "direction" component (directions and size adjectives).
DIRECTION_KEYWORDS: Tuple[str, ...] = (
    "северный", "южный", "восточный", "западный", "центральный",
    "большой", "малый", "новый", "старый", "верхний", "нижний",
)


def load_alias_map(path: str | Path) -> Dict[str, List[str]]:
    p = Path(path)
    return json.loads(p.read_text(encoding="utf-8"))


def merge_alias_maps(base: Dict[str, List[str]], extra: Dict[str, List[str]]) -> Dict[str, List[str]]:
    out = {canon: list(variants) for canon, variants in base.items()}
    for canon, aliases in extra.items():
        bucket = out.setdefault(canon.lower(), [canon.lower()])
        for a in aliases:
            a = a.lower()
            if a not in bucket:
                bucket.append(a)
    return out


def build_reverse_alias_map(canonical_to_aliases: Dict[str, List[str]]) -> Dict[str, str]:
    """
    Return: alias -> canonical (all lower-case). The first canonical that
    claims an alias wins.
    """
    rev: Dict[str, str] = {}
    for canon, aliases in canonical_to_aliases.items():
        rev.setdefault(canon.lower(), canon)
        for a in aliases:
            rev.setdefault(a.lower(), canon)
    return rev
