from __future__ import annotations

import enum
import re
from dataclasses import dataclass

DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?")
PRICE_RE = re.compile(r"[^0-9.]")


class PlaceCategory(str, enum.Enum):
    AIRPORT = "AIRPORT"
    CITY = "CITY"

    @classmethod
    def parse_list(cls, value) -> tuple[PlaceCategory, ...]:
        """Parse "AIRPORT,CITY" (or a list) into categories.

        Raises ValueError on an unknown category.
        """
        if not value:
            return (cls.AIRPORT, cls.CITY)
        if isinstance(value, str):
            value = value.split(",")
        categories = []
        for item in value:
            name = str(item).strip().upper()
            if not name:
                continue
            category = cls(name)
            if category not in categories:
                categories.append(category)
        return tuple(categories) or (cls.AIRPORT, cls.CITY)


@dataclass(frozen=True)
class Address:
    city_name: str | None = None
    country_name: str | None = None


@dataclass(frozen=True)
class Place:
    id: str
    name: str
    iata_code: str
    category: PlaceCategory
    address: Address | None = None

    @property
    def display(self) -> str:
        return f"{self.name} ({self.iata_code})"

    @classmethod
    def from_api(cls, item: dict) -> Place | None:
        """Build a Place from an upstream (or serialized) location record."""
        if not isinstance(item, dict):
            return None
        code = item.get("iataCode")
        if not code:
            return None
        try:
            category = PlaceCategory(str(item.get("subType") or "AIRPORT").upper())
        except ValueError:
            return None

        raw_address = item.get("address")
        address = None
        if isinstance(raw_address, dict):
            address = Address(
                city_name=raw_address.get("cityName"),
                country_name=raw_address.get("countryName"),
            )

        return cls(
            id=str(item.get("id") or f"{category.value[0]}{code}"),
            name=item.get("name") or code,
            iata_code=code,
            category=category,
            address=address,
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "iataCode": self.iata_code,
            "subType": self.category.value,
            "address": None,
        }
        if self.address is not None:
            data["address"] = {
                "cityName": self.address.city_name,
                "countryName": self.address.country_name,
            }
        return data


def parse_duration_to_minutes(value):
    if not value or not isinstance(value, str):
        return 0
    match = DURATION_RE.fullmatch(value.strip())
    if not match:
        return 0
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return hours * 60 + minutes


def parse_price(value) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = PRICE_RE.sub("", value)
        try:
            return float(cleaned) if cleaned else 0.0
        except ValueError:
            return 0.0
    return 0.0


def offer_itineraries(offer) -> list[dict]:
    itineraries = offer.get("itineraries") if isinstance(offer, dict) else None
    if not isinstance(itineraries, list):
        return []
    return [itinerary for itinerary in itineraries if isinstance(itinerary, dict)]


def itinerary_segments(itinerary) -> list[dict]:
    segments = itinerary.get("segments")
    if not isinstance(segments, list):
        return []
    return [segment for segment in segments if isinstance(segment, dict)]


def itinerary_stops(itinerary) -> int:
    return max(len(itinerary_segments(itinerary)) - 1, 0)


def offer_price(offer) -> float:
    price = offer.get("price") if isinstance(offer, dict) else None
    if not isinstance(price, dict):
        return 0.0
    return parse_price(price.get("total"))


def offer_duration_minutes(offer) -> int:
    """Total duration, summed across itineraries."""
    return sum(parse_duration_to_minutes(itinerary.get("duration")) for itinerary in offer_itineraries(offer))


def carrier_name(dictionaries, code):
    carriers = dictionaries.get("carriers") if isinstance(dictionaries, dict) else None
    if isinstance(carriers, dict) and carriers.get(code):
        return carriers[code]
    return code


def aircraft_name(dictionaries, code):
    aircraft = dictionaries.get("aircraft") if isinstance(dictionaries, dict) else None
    if isinstance(aircraft, dict) and aircraft.get(code):
        return aircraft[code]
    return code
