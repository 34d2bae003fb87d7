from typing import Iterable, List

from marketplace.config import settings
from marketplace.schemas.property import Property
from marketplace.schemas.session import Filter


def available_properties(properties: Iterable[Property]) -> List[Property]:
    """Everything that is not booked; what the API returns for browsing."""
    return [p for p in properties if p.status != "booked"]


def approved_listings(properties: Iterable[Property]) -> List[Property]:
    return [p for p in properties if p.status == "approved"]


def featured_listings(properties: Iterable[Property], limit: int | None = None) -> List[Property]:
    """First approved listings in input order. Filters never apply here."""
    limit = settings.FEATURED_LIMIT if limit is None else limit
    return approved_listings(properties)[:limit]


def matches(prop: Property, filters: Filter) -> bool:
    term = filters.search_term.lower()
    if term and term not in prop.address.lower() and term not in prop.city.lower():
        return False

    price = prop.effective_price
    if filters.min_price and price < float(filters.min_price):
        return False
    if filters.max_price and price > float(filters.max_price):
        return False

    if filters.type != "all" and prop.type != filters.type:
        return False
    if filters.listing_type != "all" and prop.listing_type != filters.listing_type:
        return False
    return True


def filter_listings(properties: Iterable[Property], filters: Filter) -> List[Property]:
    """Approved properties passing every filter criterion, order preserved."""
    return [p for p in approved_listings(properties) if matches(p, filters)]
