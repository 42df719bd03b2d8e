import pytest

from listing_match.config import Config
from listing_match.models import AddressRecord, Coordinates
from listing_match.pipeline import SmartAddressMatcher
from listing_match.store import MemoryStore
from listing_match.utils import offset_coordinates

CENTER = Coordinates(lat=55.7500, lng=37.6000)


def record_at(rec_id: str, address: str, north_m: float = 0.0, east_m: float = 0.0) -> AddressRecord:
    return AddressRecord(id=rec_id, address=address, coordinates=offset_coordinates(CENTER, north_m, east_m))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def matcher(store):
    return SmartAddressMatcher(Config(), store=store, bootstrap_in_background=False)
