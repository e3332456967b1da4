"""Facet derivation, filtering and ordering of a fetched offer list.

Everything here is a pure function of its inputs. ``FilterState`` is frozen;
the ``with_*`` reducers return a new snapshot.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Union

from flights.services.normalize import (
    itinerary_segments,
    itinerary_stops,
    offer_duration_minutes,
    offer_itineraries,
    offer_price,
)


class SortKey(str, enum.Enum):
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    DURATION_ASC = "duration-asc"
    DURATION_DESC = "duration-desc"


@dataclass(frozen=True)
class EmptyRange:
    def to_dict(self):
        return None


@dataclass(frozen=True)
class Bounded:
    low: float
    high: float

    def to_dict(self):
        return {"min": self.low, "max": self.high}


Range = Union[EmptyRange, Bounded]

EMPTY_RANGE = EmptyRange()


def span(values) -> Range:
    values = list(values)
    if not values:
        return EMPTY_RANGE
    return Bounded(min(values), max(values))


@dataclass(frozen=True)
class Facets:
    airlines: tuple = ()
    stops: tuple = ()
    price: Range = EMPTY_RANGE
    duration: Range = EMPTY_RANGE

    @property
    def is_empty(self) -> bool:
        return not self.airlines and isinstance(self.price, EmptyRange)

    def to_dict(self) -> dict:
        return {
            "airlines": list(self.airlines),
            "stops": list(self.stops),
            "price": self.price.to_dict(),
            "duration": self.duration.to_dict(),
        }


def derive_facets(offers) -> Facets:
    airlines = set()
    stops = set()
    prices = []
    durations = []

    for offer in offers:
        for itinerary in offer_itineraries(offer):
            for segment in itinerary_segments(itinerary):
                code = segment.get("carrierCode")
                if code:
                    airlines.add(code)
            stops.add(itinerary_stops(itinerary))
        prices.append(offer_price(offer))
        durations.append(offer_duration_minutes(offer))

    return Facets(
        airlines=tuple(sorted(airlines)),
        stops=tuple(sorted(stops)),
        price=span(prices),
        duration=span(durations),
    )


def _ceiling(bounds: Range):
    if isinstance(bounds, Bounded):
        return bounds.high
    return None


@dataclass(frozen=True)
class FilterState:
    facets: Facets = field(default_factory=Facets)
    airlines: frozenset = frozenset()
    stops: frozenset = frozenset()
    # None means unbounded.
    price_ceiling: float | None = None
    duration_ceiling: int | None = None
    sort: SortKey = SortKey.PRICE_ASC

    @classmethod
    def from_facets(cls, facets: Facets, sort: SortKey = SortKey.PRICE_ASC) -> FilterState:
        return cls(
            facets=facets,
            airlines=frozenset(facets.airlines),
            stops=frozenset(facets.stops),
            price_ceiling=_ceiling(facets.price),
            duration_ceiling=_ceiling(facets.duration),
            sort=SortKey(sort),
        )

    @classmethod
    def for_offers(cls, offers, sort: SortKey = SortKey.PRICE_ASC) -> FilterState:
        return cls.from_facets(derive_facets(offers), sort)

    def reset(self, offers) -> FilterState:
        """New offer list: recompute facets, select everything, keep the sort key."""
        return FilterState.for_offers(offers, self.sort)

    def with_airline(self, code, included=True) -> FilterState:
        airlines = self.airlines | {code} if included else self.airlines - {code}
        return replace(self, airlines=frozenset(airlines))

    def with_airlines(self, codes) -> FilterState:
        return replace(self, airlines=frozenset(codes))

    def with_stops(self, count, included=True) -> FilterState:
        count = int(count)
        stops = self.stops | {count} if included else self.stops - {count}
        return replace(self, stops=frozenset(stops))

    def with_stop_options(self, counts) -> FilterState:
        return replace(self, stops=frozenset(int(c) for c in counts))

    def with_price_ceiling(self, value) -> FilterState:
        return replace(self, price_ceiling=None if value is None else float(value))

    def with_duration_ceiling(self, value) -> FilterState:
        return replace(self, duration_ceiling=None if value is None else int(value))

    def with_sort(self, sort) -> FilterState:
        return replace(self, sort=SortKey(sort))


def matches(offer, state: FilterState) -> bool:
    if state.price_ceiling is not None and offer_price(offer) > state.price_ceiling:
        return False
    if state.duration_ceiling is not None and offer_duration_minutes(offer) > state.duration_ceiling:
        return False

    # Every itinerary has to pass, not just one of them.
    for itinerary in offer_itineraries(offer):
        if itinerary_stops(itinerary) not in state.stops:
            return False
        for segment in itinerary_segments(itinerary):
            code = segment.get("carrierCode")
            # Segments without a carrier never produce an airline facet.
            if code and code not in state.airlines:
                return False
    return True


def sort_offers(offers, sort) -> list:
    sort = SortKey(sort)
    if sort in (SortKey.PRICE_ASC, SortKey.PRICE_DESC):
        metric = offer_price
    else:
        metric = offer_duration_minutes
    reverse = sort in (SortKey.PRICE_DESC, SortKey.DURATION_DESC)
    # sorted() stays stable with reverse=True, so ties keep input order.
    return sorted(offers, key=metric, reverse=reverse)


def apply_filters(offers, state: FilterState) -> list:
    return sort_offers([offer for offer in offers if matches(offer, state)], state.sort)
