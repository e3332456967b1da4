"""HTTP client for the flights API, used by the search UI."""
import logging

import requests
from django.conf import settings

from flights.providers.base import NO_OFFERS_MESSAGE, NoOffersFound, ProviderError
from flights.serializers import FlightSearchSerializer
from flights.services.normalize import Place, PlaceCategory

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"


class ApiClientError(ProviderError):
    pass


class BackendClient:
    def __init__(self, base_url=None, session=None, timeout=None):
        self.base_url = (base_url or getattr(settings, "FLIGHTS_API_URL", None) or DEFAULT_API_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or getattr(settings, "UPSTREAM_TIMEOUT", 25)

    def _request(self, method, path, fallback_message, **kwargs):
        try:
            response = self.session.request(method, self.base_url + path, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.exception("Flights API request failed.", extra={"path": path})
            raise ApiClientError(fallback_message, status_code=502, details={"error": str(exc)})

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            details = payload if isinstance(payload, dict) else {"error": response.text}
            message = details.get("message") or details.get("error") or fallback_message
            raise ApiClientError(message, status_code=response.status_code, details=details)

        if payload is None:
            raise ApiClientError("Flights API response was not valid JSON.")
        return payload

    def search_locations(self, keyword, categories=None):
        params = {"keyword": keyword}
        if categories:
            params["subType"] = ",".join(PlaceCategory(c).value for c in categories)
        payload = self._request("GET", "/locations/search", "Error searching airports", params=params)
        if not isinstance(payload, list):
            return []
        return [place for place in (Place.from_api(item) for item in payload) if place is not None]

    def search_flights(self, criteria):
        # Reject malformed criteria locally, without a round-trip.
        FlightSearchSerializer(data=criteria).is_valid(raise_exception=True)
        try:
            return self._request("POST", "/flights/search", "Error searching flights", json=dict(criteria))
        except ApiClientError as exc:
            # Any other 404 means the API itself was not reached.
            if exc.status_code == 404 and str(exc) == NO_OFFERS_MESSAGE:
                raise NoOffersFound(details=exc.details) from exc
            raise

    def verify_price(self, offer):
        return self._request("POST", "/flights/verify-price", "Error verifying flight price", json={"offer": offer})

    def recent_searches(self):
        return self._request("GET", "/flights/recent-searches", "Error getting recent searches")
