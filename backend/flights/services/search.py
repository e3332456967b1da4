from __future__ import annotations

import logging

from flights.providers import get_flight_provider
from flights.serializers import FlightSearchSerializer
from flights.services import history
from flights.services.normalize import Place

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 2


def upstream_criteria(criteria) -> dict:
    """Validated search criteria in the shape the upstream query expects."""
    query = dict(criteria)
    query["departureDate"] = criteria["departureDate"].isoformat()
    return_date = criteria.get("returnDate")
    query["returnDate"] = return_date.isoformat() if return_date else None
    return query


class FlightSearchService:
    """In-process search facade used by the API views and the CLI.

    Exposes the same methods as ``flights.client.BackendClient`` so the
    presentation layer can run against either.
    """

    def __init__(self, provider=None):
        self.provider = provider or get_flight_provider()

    def search_locations(self, keyword, categories=None) -> list[Place]:
        keyword = (keyword or "").strip()
        if len(keyword) < MIN_KEYWORD_LENGTH:
            return []
        return self.provider.search_locations(keyword, categories)

    def search_flights(self, data) -> dict:
        """Validate, search upstream, then record the search.

        Raises ``serializers.ValidationError`` before any upstream call when
        the criteria are malformed, ``NoOffersFound`` when nothing matched.
        """
        serializer = FlightSearchSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        criteria = serializer.validated_data

        result = self.provider.search_flight_offers(upstream_criteria(criteria))
        logger.info(
            "Flight search %s-%s returned %d offers",
            criteria["originLocationCode"],
            criteria["destinationLocationCode"],
            len(result["offers"]),
        )

        history.record_search(criteria)
        return result

    def verify_price(self, offer) -> dict:
        return self.provider.confirm_price(offer)

    def recent_searches(self, limit=history.RECENT_SEARCHES_LIMIT):
        return history.list_recent(limit)
