import logging

import requests
from django.conf import settings
from django.core.cache import cache

from flights.providers.base import FlightProvider, NoOffersFound, ProviderError
from flights.services.normalize import Place, PlaceCategory

logger = logging.getLogger(__name__)

# Amadeus Self-Service APIs

DEFAULT_BASE_URL = "https://test.api.amadeus.com"

TOKEN_PATH = "/v1/security/oauth2/token"
LOCATIONS_PATH = "/v1/reference-data/locations"
FLIGHT_OFFERS_PATH = "/v2/shopping/flight-offers"
FLIGHT_PRICING_PATH = "/v1/shopping/flight-offers/pricing"

LOCATIONS_PAGE_LIMIT = 10

TOKEN_CACHE_KEY = "amadeus:access_token"
# Refresh the token a little before the upstream expiry.
TOKEN_EXPIRY_MARGIN = 60

OPTIONAL_SEARCH_PARAMS = ("returnDate", "children", "infants", "travelClass", "max")


def _base_url() -> str:
    return (getattr(settings, "AMADEUS_BASE_URL", None) or DEFAULT_BASE_URL).rstrip("/")


def _timeout() -> int:
    return int(getattr(settings, "UPSTREAM_TIMEOUT", 25) or 25)


def _error_details(response) -> dict:
    try:
        details = response.json()
    except ValueError:
        details = {"error": response.text}
    return details if isinstance(details, dict) else {"errors": details}


def _error_message(details: dict, fallback: str) -> str:
    """Amadeus reports failures as {"errors": [{"title", "detail"}]}."""
    errors = details.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        first = errors[0]
        return first.get("detail") or first.get("title") or fallback
    return details.get("error_description") or fallback


class AmadeusProvider(FlightProvider):
    def __init__(self, api_key=None, api_secret=None):
        self.api_key = api_key or getattr(settings, "AMADEUS_API_KEY", None)
        self.api_secret = api_secret or getattr(settings, "AMADEUS_API_SECRET", None)

    # ---- auth ----

    def _access_token(self) -> str:
        if not self.api_key or not self.api_secret:
            raise ProviderError("Amadeus API credentials are not configured.", status_code=500)

        cached = cache.get(TOKEN_CACHE_KEY)
        if isinstance(cached, str) and cached:
            return cached

        try:
            response = requests.post(
                _base_url() + TOKEN_PATH,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.api_key,
                    "client_secret": self.api_secret,
                },
                timeout=_timeout(),
            )
        except requests.RequestException as exc:
            logger.exception("Amadeus token request failed.")
            raise ProviderError(
                "Amadeus authentication failed.",
                status_code=502,
                details={"error": str(exc)},
            )

        if response.status_code >= 400:
            details = _error_details(response)
            logger.warning(
                "Amadeus token error response",
                extra={"status_code": response.status_code, "details": details},
            )
            raise ProviderError(
                "Amadeus authentication failed.",
                status_code=502,
                details=details,
            )

        try:
            payload = response.json()
        except ValueError:
            raise ProviderError("Amadeus token response was not valid JSON.")

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise ProviderError("Amadeus token response did not include an access token.")

        try:
            expires_in = int(payload.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0
        ttl = expires_in - TOKEN_EXPIRY_MARGIN
        if ttl > 0:
            cache.set(TOKEN_CACHE_KEY, token, timeout=ttl)
        return token

    # ---- transport ----

    def _request_json(self, method: str, path: str, *, query=None, body=None, error_message: str) -> dict:
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._access_token()}",
        }
        if body is not None:
            headers["Content-Type"] = "application/vnd.amadeus+json"

        try:
            response = requests.request(
                method,
                _base_url() + path,
                params=query,
                json=body,
                headers=headers,
                timeout=_timeout(),
            )
        except requests.RequestException as exc:
            logger.exception("Amadeus request failed.", extra={"path": path})
            raise ProviderError(
                error_message,
                status_code=502,
                details={"error": str(exc)},
            )

        if response.status_code == 401:
            # Token revoked or expired early; the next call fetches a new one.
            cache.delete(TOKEN_CACHE_KEY)

        if response.status_code >= 400:
            details = _error_details(response)
            logger.warning(
                "Amadeus error response",
                extra={"path": path, "status_code": response.status_code, "details": details},
            )
            raise ProviderError(
                _error_message(details, error_message),
                status_code=response.status_code,
                details=details,
            )

        try:
            payload = response.json()
        except ValueError:
            raise ProviderError("Amadeus response was not valid JSON.")
        if not isinstance(payload, dict):
            raise ProviderError("Amadeus response had an unexpected shape.")
        return payload

    # ---- operations ----

    def search_locations(self, keyword, categories=None):
        categories = categories or (PlaceCategory.AIRPORT, PlaceCategory.CITY)
        payload = self._request_json(
            "GET",
            LOCATIONS_PATH,
            query={
                "keyword": keyword,
                "subType": ",".join(PlaceCategory(c).value for c in categories),
                "page[limit]": LOCATIONS_PAGE_LIMIT,
            },
            error_message="Error searching locations",
        )
        data = payload.get("data")
        if not isinstance(data, list):
            return []

        places = []
        for item in data:
            place = Place.from_api(item)
            if place is not None:
                places.append(place)
        return places[:LOCATIONS_PAGE_LIMIT]

    def search_flight_offers(self, criteria):
        query = {
            "originLocationCode": criteria["originLocationCode"],
            "destinationLocationCode": criteria["destinationLocationCode"],
            "departureDate": criteria["departureDate"],
            "adults": criteria.get("adults") or 1,
            "currencyCode": criteria.get("currencyCode") or getattr(settings, "DEFAULT_CURRENCY", "INR"),
        }
        for name in OPTIONAL_SEARCH_PARAMS:
            if criteria.get(name):
                query[name] = criteria[name]

        payload = self._request_json(
            "GET",
            FLIGHT_OFFERS_PATH,
            query=query,
            error_message="Error searching flights",
        )

        offers = payload.get("data")
        if not isinstance(offers, list) or not offers:
            raise NoOffersFound()

        dictionaries = payload.get("dictionaries")
        return {
            "offers": offers,
            "dictionaries": dictionaries if isinstance(dictionaries, dict) else {},
        }

    def confirm_price(self, offer):
        if not isinstance(offer, dict) or not offer:
            raise ProviderError("Flight offer data is required.", status_code=400)

        payload = self._request_json(
            "POST",
            FLIGHT_PRICING_PATH,
            body={
                "data": {
                    "type": "flight-offers-pricing",
                    "flightOffers": [offer],
                }
            },
            error_message="Error verifying flight price",
        )
        confirmed = payload.get("data")
        if not isinstance(confirmed, dict):
            raise ProviderError("Amadeus pricing response did not include a confirmation.")
        return confirmed
