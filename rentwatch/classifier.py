"""
Business rules deciding which listings are worth a notification.

Every rule is a named predicate ``(listing, settings) -> bool`` and a listing
qualifies only when all of them pass. A missing field fails its rule.
"""
from typing import Callable, Optional, Sequence

from .config import Settings
from .models import Listing

Predicate = Callable[[Listing, Settings], bool]


def locality_ok(listing: Listing, settings: Settings) -> bool:
    if not listing.locality:
        return False
    c = listing.locality.lower()
    return any(v.lower() in c for v in settings.locality_variants)


def price_ok(listing: Listing, settings: Settings) -> bool:
    if listing.price is None:
        return False
    return listing.price <= settings.max_price


def rooms_ok(listing: Listing, settings: Settings) -> bool:
    if listing.rooms is None:
        return False
    return listing.rooms in settings.allowed_rooms


# Owner and phone filters are switched off to get more listings through.
# Swap in a real rule here to enable one.
def owner_ok(listing: Listing, settings: Settings) -> bool:
    return True


def phone_ok(listing: Listing, settings: Settings) -> bool:
    return True


DEFAULT_PREDICATES: Sequence[Predicate] = (locality_ok, price_ok, rooms_ok, owner_ok, phone_ok)


class Classifier:
    """ANDs a sequence of predicates over a listing."""

    def __init__(self, settings: Settings, predicates: Sequence[Predicate] = DEFAULT_PREDICATES):
        self.settings = settings
        self.predicates = tuple(predicates)

    def rejection_reason(self, listing: Listing) -> Optional[str]:
        """Name of the first failing predicate, or None if the listing qualifies."""
        for predicate in self.predicates:
            if not predicate(listing, self.settings):
                return predicate.__name__
        return None

    def is_qualifying(self, listing: Listing) -> bool:
        return self.rejection_reason(listing) is None
