from datetime import timedelta
from unittest.mock import Mock

from django.utils import timezone

DICTIONARIES = {
    "carriers": {"AI": "AIR INDIA", "6E": "INDIGO", "UK": "VISTARA"},
    "aircraft": {"320": "AIRBUS A320", "788": "BOEING 787-8"},
}


def mock_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = payload
    return response


def make_segment(carrier, origin, destination, duration="PT1H0M", number="101", aircraft="320"):
    return {
        "departure": {"iataCode": origin, "at": "2025-05-01T10:00:00"},
        "arrival": {"iataCode": destination, "at": "2025-05-01T12:30:00"},
        "carrierCode": carrier,
        "number": number,
        "aircraft": {"code": aircraft},
        "duration": duration,
        "numberOfStops": 0,
    }


def make_itinerary(duration, carriers, origin="DEL", destination="BOM"):
    stops = ["X%02d" % i for i in range(len(carriers) - 1)]
    points = [origin] + stops + [destination]
    segments = [
        make_segment(carrier, points[i], points[i + 1])
        for i, carrier in enumerate(carriers)
    ]
    return {"duration": duration, "segments": segments}


def make_offer(offer_id, price, *itineraries, currency="INR"):
    """Build an upstream-shaped offer; each itinerary is (duration, [carriers])."""
    return {
        "type": "flight-offer",
        "id": str(offer_id),
        "numberOfBookableSeats": 4,
        "itineraries": [make_itinerary(duration, carriers) for duration, carriers in itineraries],
        "price": {"currency": currency, "total": f"{price:.2f}", "grandTotal": f"{price:.2f}"},
        "travelerPricings": [],
    }


def offer_ids(offers):
    return [offer["id"] for offer in offers]


LOCMEM_CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

TOKEN_PAYLOAD = {"access_token": "token-123", "token_type": "Bearer", "expires_in": 1799}

LOCATIONS_PAYLOAD = {
    "meta": {"count": 2},
    "data": [
        {
            "type": "location",
            "subType": "AIRPORT",
            "name": "INDIRA GANDHI INTL",
            "id": "ADEL",
            "iataCode": "DEL",
            "address": {"cityName": "DELHI", "countryName": "INDIA"},
        },
        {
            "type": "location",
            "subType": "CITY",
            "name": "DELHI",
            "id": "CDEL",
            "iataCode": "DEL",
            "address": {"cityName": "DELHI", "countryName": "INDIA"},
        },
    ],
}


def future_date(days=30):
    return (timezone.localdate() + timedelta(days=days)).isoformat()
