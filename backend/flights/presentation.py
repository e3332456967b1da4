from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, fields, replace
from datetime import datetime

from rest_framework.exceptions import ValidationError

from flights.providers.base import NoOffersFound, ProviderError
from flights.services.filtering import FilterState, SortKey, apply_filters
from flights.services.normalize import (
    DURATION_RE,
    aircraft_name,
    carrier_name,
    itinerary_segments,
    offer_itineraries,
    offer_price,
)

logger = logging.getLogger(__name__)

REQUIRED_PARAMS = ("originLocationCode", "destinationLocationCode", "departureDate")

SORT_LABELS = {
    SortKey.PRICE_ASC: "Price: Low to High",
    SortKey.PRICE_DESC: "Price: High to Low",
    SortKey.DURATION_ASC: "Duration: Shortest",
    SortKey.DURATION_DESC: "Duration: Longest",
}

TRAVEL_CLASS_LABELS = {
    "ECONOMY": "Economy",
    "PREMIUM_ECONOMY": "Premium Economy",
    "BUSINESS": "Business",
    "FIRST": "First Class",
}

AIRLINE_WEBSITES = {
    "AI": "https://www.airindia.com",
    "UK": "https://www.airindiaexpress.in",
    "SG": "https://www.spicejet.com",
    "IX": "https://www.goindigo.in",
    "G8": "https://www.goair.in",
    "I5": "https://www.airasiago.com",
    "QP": "https://www.akasaair.com",
    "EK": "https://www.emirates.com",
    "LH": "https://www.lufthansa.com",
    "BA": "https://www.britishairways.com",
    "QR": "https://www.qatarairways.com",
    "EY": "https://www.etihad.com",
    "TG": "https://www.thaiairways.com",
    "SQ": "https://www.singaporeair.com",
}

PRICE_VERIFICATION_ERROR = "Could not verify price. Please try again."


class TripType(str, enum.Enum):
    ONE_WAY = "oneWay"
    ROUND_TRIP = "roundTrip"


class ResultsStatus(enum.Enum):
    PENDING = "pending"
    ERROR = "error"
    NO_OFFERS = "no_offers"
    NO_MATCHES = "no_matches"
    OK = "ok"


@dataclass(frozen=True)
class SearchFormState:
    originLocationCode: str = ""
    destinationLocationCode: str = ""
    departureDate: str = ""
    returnDate: str = ""
    adults: int = 1
    children: int = 0
    infants: int = 0
    travelClass: str = "ECONOMY"
    currencyCode: str = "INR"
    trip_type: TripType = TripType.ONE_WAY

    def with_field(self, name, value) -> SearchFormState:
        if name == "trip_type" or name not in {f.name for f in fields(self)}:
            raise KeyError(name)
        return replace(self, **{name: value})

    def with_trip_type(self, trip_type) -> SearchFormState:
        trip_type = TripType(trip_type)
        if trip_type is TripType.ONE_WAY:
            return replace(self, trip_type=trip_type, returnDate="")
        return replace(self, trip_type=trip_type)

    def to_query(self) -> dict:
        query = {}
        for f in fields(self):
            if f.name == "trip_type":
                continue
            if f.name == "returnDate" and self.trip_type is TripType.ONE_WAY:
                continue
            value = getattr(self, f.name)
            if value:
                query[f.name] = value
        return query


def format_duration(token):
    """PT2H30M -> 2h 30m; anything else is returned unchanged."""
    if not isinstance(token, str):
        return token
    match = DURATION_RE.fullmatch(token)
    if not match or not (match.group(1) or match.group(2)):
        return token
    return f"{int(match.group(1) or 0)}h {int(match.group(2) or 0)}m"


def format_date_time(value):
    try:
        moment = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return {"time": value or "", "date": ""}
    return {"time": moment.strftime("%I:%M %p"), "date": f"{moment.strftime('%b')} {moment.day}"}


def stop_label(count):
    if count == 0:
        return "Non-stop"
    if count == 1:
        return "1 Stop"
    return f"{count} Stops"


def travel_class_label(code):
    return TRAVEL_CLASS_LABELS.get(code, code)


def total_passengers(params):
    total = 0
    for name in ("adults", "children", "infants"):
        try:
            total += int(params.get(name) or 0)
        except (TypeError, ValueError):
            continue
    return total


def booking_url(offer, dictionaries):
    itineraries = offer_itineraries(offer)
    segments = itinerary_segments(itineraries[0]) if itineraries else []
    if not segments:
        return None
    code = segments[0].get("carrierCode")
    if code in AIRLINE_WEBSITES:
        return AIRLINE_WEBSITES[code]
    name = "".join(str(carrier_name(dictionaries, code)).lower().split())
    return f"https://www.{name}.com"


def offer_lines(offer, dictionaries):
    """Plain-text rendering of one offer card."""
    lines = []
    for index, itinerary in enumerate(offer_itineraries(offer)):
        direction = "Outbound" if index == 0 else "Return"
        lines.append(f"{direction} · {format_duration(itinerary.get('duration'))}")
        for segment in itinerary_segments(itinerary):
            departure = segment.get("departure") or {}
            arrival = segment.get("arrival") or {}
            depart_at = format_date_time(departure.get("at"))
            arrive_at = format_date_time(arrival.get("at"))
            aircraft = (segment.get("aircraft") or {}).get("code")
            stops = segment.get("numberOfStops") or 0
            lines.append(
                "  {dep} {dep_time} {dep_date} -> {arr} {arr_time} {arr_date}  {carrier} {number} ({aircraft})  "
                "{duration}  {stops}".format(
                    dep=departure.get("iataCode"),
                    dep_time=depart_at["time"],
                    dep_date=depart_at["date"],
                    arr=arrival.get("iataCode"),
                    arr_time=arrive_at["time"],
                    arr_date=arrive_at["date"],
                    carrier=carrier_name(dictionaries, segment.get("carrierCode")),
                    number=segment.get("number") or "",
                    aircraft=aircraft_name(dictionaries, aircraft) if aircraft else "N/A",
                    duration=format_duration(segment.get("duration")) if segment.get("duration") else "N/A",
                    stops="Direct" if stops == 0 else f"{stops} Stop(s)",
                )
            )

    currency = (offer.get("price") or {}).get("currency") or ""
    seats = offer.get("numberOfBookableSeats")
    price_line = f"{currency} {offer_price(offer):,.2f}".strip()
    if seats is not None:
        price_line += f"  {seats} seats left"
    lines.append(price_line)
    return lines


def _validation_message(exc: ValidationError) -> str:
    detail = exc.detail
    if isinstance(detail, dict):
        parts = []
        for field_name, messages in detail.items():
            if not isinstance(messages, list):
                messages = [messages]
            parts.append(f"{field_name}: {' '.join(str(m) for m in messages)}")
        return "; ".join(parts)
    if isinstance(detail, list):
        return " ".join(str(m) for m in detail)
    return str(detail)


class ResultsPage:
    """Search results view model.

    ``client`` is anything exposing ``search_flights(criteria)`` and
    ``verify_price(offer)``: the HTTP ``BackendClient`` or the in-process
    ``FlightSearchService``.
    """

    def __init__(self, client, sort=SortKey.PRICE_ASC):
        self.client = client
        self.offers = []
        self.dictionaries = {}
        self.filters = FilterState(sort=SortKey(sort))
        self.error = None
        self.loaded = False

    def search(self, params) -> bool:
        self.error = None
        missing = [name for name in REQUIRED_PARAMS if not params.get(name)]
        if missing:
            self.error = "Missing required search parameters"
            return False

        try:
            response = self.client.search_flights(params)
        except ValidationError as exc:
            self.error = _validation_message(exc)
            return False
        except NoOffersFound:
            response = {"offers": [], "dictionaries": {}}
        except ProviderError as exc:
            logger.warning("Flight search failed: %s", exc, extra={"details": exc.details})
            self.error = f"Error searching flights: {exc}"
            return False

        self.offers = list(response.get("offers") or [])
        self.dictionaries = response.get("dictionaries") or {}
        self.filters = self.filters.reset(self.offers)
        self.loaded = True
        return True

    @property
    def visible_offers(self) -> list:
        return apply_filters(self.offers, self.filters)

    @property
    def status(self) -> ResultsStatus:
        if self.error:
            return ResultsStatus.ERROR
        if not self.loaded:
            return ResultsStatus.PENDING
        if not self.offers:
            return ResultsStatus.NO_OFFERS
        if not self.visible_offers:
            return ResultsStatus.NO_MATCHES
        return ResultsStatus.OK

    @property
    def airline_options(self):
        return [(code, carrier_name(self.dictionaries, code)) for code in self.filters.facets.airlines]

    @property
    def stop_options(self):
        return [(count, stop_label(count)) for count in self.filters.facets.stops]

    def toggle_airline(self, code, included):
        self.filters = self.filters.with_airline(code, included)

    def select_airlines(self, codes):
        self.filters = self.filters.with_airlines(codes)

    def toggle_stops(self, count, included):
        self.filters = self.filters.with_stops(count, included)

    def limit_stops(self, max_stops):
        self.filters = self.filters.with_stop_options(
            count for count in self.filters.facets.stops if count <= max_stops
        )

    def set_price_ceiling(self, value):
        self.filters = self.filters.with_price_ceiling(value)

    def set_duration_ceiling(self, value):
        self.filters = self.filters.with_duration_ceiling(value)

    def set_sort(self, sort):
        self.filters = self.filters.with_sort(sort)

    def book(self, offer):
        """Verify the offer's price, then return the airline's booking URL."""
        self.error = None
        try:
            self.client.verify_price(offer)
        except ProviderError as exc:
            logger.warning("Price verification failed: %s", exc, extra={"details": exc.details})
            self.error = PRICE_VERIFICATION_ERROR
            return None
        return booking_url(offer, self.dictionaries)
