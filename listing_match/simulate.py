from __future__ import annotations
import random
from typing import Dict, List, Optional, Tuple

from .models import AddressRecord, Coordinates, Listing
from .utils import offset_coordinates

"""
Synthetic data for a Moscow-style address catalog.

1) generate_catalog(): canonical records laid out on a grid, one street per row,
   houses spaced along it; a few houses carry a "корпус".
2) generate_listings(): listing texts written the way real adverts write them
   (abbreviated street types, "д."/"дом", "10к1" / "10 к 1" / "10 корп. 1",
   the city prefix sometimes, swapped word order) with a few metres of
   coordinate jitter. Returns the ground truth listing_id -> address_id.
3) generate_training_pairs(): labelled (listing text, catalog text, label)
   pairs; positives are a variant and its own record, negatives pair a
   variant with another record, preferably on the same street.
"""

MOSCOW_CENTER = Coordinates(lat=55.7558, lng=37.6173)

STREETS: List[Tuple[str, str]] = [
    ("ленина", "улица"),
    ("тверская", "улица"),
    ("мира", "проспект"),
    ("гагарина", "переулок"),
    ("чистопрудный", "бульвар"),
    ("пушкина", "улица"),
    ("кутузовский", "проспект"),
    ("садовая", "улица"),
    ("варшавское", "шоссе"),
    ("смоленская", "набережная"),
]

# how adverts abbreviate each street type
STREET_TYPE_STYLES: Dict[str, List[str]] = {
    "улица": ["ул.", "ул", "улица"],
    "проспект": ["пр-т", "просп.", "пр.", "проспект"],
    "переулок": ["пер.", "переулок"],
    "бульвар": ["б-р", "бул.", "бульвар"],
    "шоссе": ["ш.", "шоссе"],
    "набережная": ["наб.", "набережная"],
}

STREET_SPACING_M = 300.0
HOUSE_SPACING_M = 60.0


def canonical_text(street: str, street_type: str, house: str, corpus: Optional[str] = None) -> str:
    text = f"г. Москва, {street_type} {street.capitalize()}, д. {house}"
    if corpus:
        text += f" к{corpus}"
    return text


def generate_catalog(n_streets: int = 8, houses_per_street: int = 6, seed: int = 7) -> List[AddressRecord]:
    rng = random.Random(seed)
    records: List[AddressRecord] = []
    for si, (street, street_type) in enumerate(STREETS[:n_streets]):
        for hi in range(houses_per_street):
            house = str(2 * hi + 1)
            corpus = str(rng.randint(1, 3)) if rng.random() < 0.25 else None
            coords = offset_coordinates(MOSCOW_CENTER, north_m=si * STREET_SPACING_M, east_m=hi * HOUSE_SPACING_M)
            records.append(AddressRecord(
                id=f"addr{len(records) + 1:04d}",
                address=canonical_text(street, street_type, house, corpus),
                coordinates=coords,
            ))
    return records


def _parse_canonical(rec: AddressRecord) -> Dict[str, Optional[str]]:
    # inverse of canonical_text
    body = rec.address.split(", ", 1)[1]
    street_part, house_part = body.split(", д. ")
    street_type, street = street_part.split(" ", 1)
    house, _, corpus = house_part.partition(" к")
    return {"street_type": street_type, "street": street, "house": house, "corpus": corpus or None}


def listing_variant(rec: AddressRecord, rng: random.Random) -> str:
    p = _parse_canonical(rec)
    street = p["street"] if rng.random() < 0.5 else p["street"].lower()
    stype = rng.choice(STREET_TYPE_STYLES.get(p["street_type"], [p["street_type"]]))
    house = p["house"]
    if p["corpus"]:
        house = rng.choice([f"{house}к{p['corpus']}", f"{house} к {p['corpus']}", f"{house} корп. {p['corpus']}"])
    template = rng.choice([
        "{stype} {street}, {house}",
        "{stype} {street}, д. {house}",
        "{street} {stype}, дом {house}",
        "Москва, {stype} {street}, {house}",
        "г. Москва, {street} {stype} {house}",
    ])
    return template.format(stype=stype, street=street, house=house)


def generate_listings(catalog: List[AddressRecord],
                      per_record: int = 1,
                      jitter_m: float = 15.0,
                      seed: int = 7) -> Tuple[List[Listing], Dict[str, str]]:
    rng = random.Random(seed)
    listings: List[Listing] = []
    truth: Dict[str, str] = {}
    for rec in catalog:
        if rec.coordinates is None:
            continue
        for _ in range(per_record):
            lid = f"lst{len(listings) + 1:04d}"
            coords = offset_coordinates(
                rec.coordinates,
                north_m=rng.uniform(-jitter_m, jitter_m),
                east_m=rng.uniform(-jitter_m, jitter_m),
            )
            listings.append(Listing(id=lid, address=listing_variant(rec, rng), coordinates=coords))
            truth[lid] = rec.id
    return listings, truth


def generate_training_pairs(catalog: List[AddressRecord],
                            n_pairs: int = 120,
                            seed: int = 7) -> List[Tuple[str, str, int]]:
    rng = random.Random(seed)
    if len(catalog) < 2:
        return []
    by_street: Dict[str, List[AddressRecord]] = {}
    for rec in catalog:
        by_street.setdefault(_parse_canonical(rec)["street"], []).append(rec)

    labels: List[Tuple[str, str, int]] = []
    for i in range(n_pairs):
        rec = rng.choice(catalog)
        text = listing_variant(rec, rng)
        if i % 2 == 0:
            labels.append((text, rec.address, 1))
            continue
        neighbours = [r for r in by_street[_parse_canonical(rec)["street"]] if r.id != rec.id]
        other = rng.choice(neighbours) if neighbours and rng.random() < 0.6 else rng.choice(catalog)
        if other.id == rec.id:
            other = catalog[(catalog.index(rec) + 1) % len(catalog)]
        labels.append((text, other.address, 0))

    rng.shuffle(labels)
    return labels
