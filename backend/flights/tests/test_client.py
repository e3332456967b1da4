from unittest.mock import Mock

import requests
from django.test import SimpleTestCase
from rest_framework.exceptions import ValidationError

from flights.client import ApiClientError, BackendClient
from flights.providers.base import NO_OFFERS_MESSAGE, NoOffersFound
from flights.services.normalize import PlaceCategory
from flights.tests.helpers import LOCATIONS_PAYLOAD, future_date, mock_response


class BackendClientTests(SimpleTestCase):
    def setUp(self):
        self.session = Mock()
        self.client = BackendClient("http://api.test/api/", session=self.session, timeout=5)

    def test_malformed_origin_is_rejected_without_a_request(self):
        criteria = {
            "originLocationCode": "DL",
            "destinationLocationCode": "BOM",
            "departureDate": future_date(),
        }

        with self.assertRaises(ValidationError) as ctx:
            self.client.search_flights(criteria)

        self.assertIn("originLocationCode", ctx.exception.detail)
        self.session.request.assert_not_called()

    def test_search_flights_posts_criteria(self):
        payload = {"offers": [], "dictionaries": {}, "meta": {}}
        self.session.request.return_value = mock_response(200, payload)
        criteria = {
            "originLocationCode": "DEL",
            "destinationLocationCode": "BOM",
            "departureDate": future_date(),
            "adults": 2,
        }

        self.assertEqual(self.client.search_flights(criteria), payload)
        self.session.request.assert_called_once_with(
            "POST", "http://api.test/api/flights/search", timeout=5, json=criteria
        )

    def test_search_locations_parses_places(self):
        self.session.request.return_value = mock_response(
            200, [dict(item) for item in LOCATIONS_PAYLOAD["data"]]
        )

        places = self.client.search_locations("del", [PlaceCategory.CITY])

        self.assertEqual([p.category for p in places], [PlaceCategory.AIRPORT, PlaceCategory.CITY])
        self.assertEqual(self.session.request.call_args.kwargs["params"], {"keyword": "del", "subType": "CITY"})

    def test_error_response_carries_server_message(self):
        self.session.request.return_value = mock_response(
            404, {"message": "No flight offers found for the given criteria.", "details": {}}
        )

        with self.assertRaises(ApiClientError) as ctx:
            self.client.verify_price({"id": "1"})

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(str(ctx.exception), "No flight offers found for the given criteria.")

    def test_transport_failure(self):
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(ApiClientError) as ctx:
            self.client.recent_searches()

        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(str(ctx.exception), "Error getting recent searches")

    def test_past_departure_is_rejected_without_a_request(self):
        criteria = {
            "originLocationCode": "DEL",
            "destinationLocationCode": "BOM",
            "departureDate": future_date(-3),
        }

        with self.assertRaises(ValidationError) as ctx:
            self.client.search_flights(criteria)

        self.assertIn("departureDate", ctx.exception.detail)
        self.session.request.assert_not_called()

    def test_no_offers_response_becomes_no_offers_found(self):
        self.session.request.return_value = mock_response(404, {"message": NO_OFFERS_MESSAGE, "details": {}})
        criteria = {
            "originLocationCode": "DEL",
            "destinationLocationCode": "BOM",
            "departureDate": future_date(),
        }

        with self.assertRaises(NoOffersFound):
            self.client.search_flights(criteria)

    def test_missing_endpoint_is_not_mistaken_for_no_offers(self):
        self.session.request.return_value = mock_response(
            404, {"message": "Endpoint not found.", "path": "/v2/flights/search", "endpoints": []}
        )
        criteria = {
            "originLocationCode": "DEL",
            "destinationLocationCode": "BOM",
            "departureDate": future_date(),
        }

        with self.assertRaises(ApiClientError) as ctx:
            self.client.search_flights(criteria)

        self.assertNotIsInstance(ctx.exception, NoOffersFound)
        self.assertEqual(str(ctx.exception), "Endpoint not found.")
