import logging

from django.db import DatabaseError

from flights.models import SearchRecord

logger = logging.getLogger(__name__)

RECENT_SEARCHES_LIMIT = 10

RECORD_FIELDS = (
    "originLocationCode",
    "destinationLocationCode",
    "departureDate",
    "returnDate",
    "adults",
    "children",
    "infants",
    "travelClass",
    "currencyCode",
    "max",
)


def record_search(criteria):
    """Persist a completed search. Best effort: failures are logged, never raised."""
    values = {name: criteria[name] for name in RECORD_FIELDS if criteria.get(name) is not None}
    try:
        return SearchRecord.objects.create(**values)
    except DatabaseError:
        logger.exception(
            "Could not save search history.",
            extra={
                "origin": criteria.get("originLocationCode"),
                "destination": criteria.get("destinationLocationCode"),
            },
        )
        return None


def list_recent(limit=RECENT_SEARCHES_LIMIT):
    return list(SearchRecord.objects.order_by("-created_at", "-id")[:limit])
