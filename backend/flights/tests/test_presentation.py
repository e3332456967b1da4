from django.test import SimpleTestCase
from rest_framework.exceptions import ValidationError

from flights.presentation import (
    PRICE_VERIFICATION_ERROR,
    ResultsPage,
    ResultsStatus,
    SearchFormState,
    TripType,
    booking_url,
    format_date_time,
    format_duration,
    offer_lines,
    stop_label,
    total_passengers,
    travel_class_label,
)
from flights.providers.base import NoOffersFound, ProviderError
from flights.services.filtering import SortKey
from flights.tests.helpers import DICTIONARIES, future_date, make_offer, offer_ids

QUERY = {"originLocationCode": "DEL", "destinationLocationCode": "BOM", "departureDate": future_date()}


class FakeClient:
    def __init__(self, response=None, error=None, verify_error=None):
        self.response = response
        self.error = error
        self.verify_error = verify_error
        self.searches = []
        self.verified = []

    def search_flights(self, criteria):
        self.searches.append(criteria)
        if self.error is not None:
            raise self.error
        return self.response

    def verify_price(self, offer):
        self.verified.append(offer)
        if self.verify_error is not None:
            raise self.verify_error
        return {"flightOffers": [offer]}


def results():
    return {
        "offers": [
            make_offer("A", 5000, ("PT2H30M", ["AI"])),
            make_offer("B", 7000, ("PT1H0M", ["6E", "6E"])),
        ],
        "dictionaries": DICTIONARIES,
    }


class SearchFormStateTests(SimpleTestCase):
    def test_one_way_drops_return_date(self):
        form = (
            SearchFormState()
            .with_trip_type(TripType.ROUND_TRIP)
            .with_field("originLocationCode", "DEL")
            .with_field("destinationLocationCode", "BOM")
            .with_field("departureDate", future_date(7))
            .with_field("returnDate", future_date(14))
        )
        self.assertEqual(form.to_query()["returnDate"], future_date(14))

        one_way = form.with_trip_type("oneWay")
        self.assertEqual(one_way.returnDate, "")
        self.assertNotIn("returnDate", one_way.to_query())

    def test_empty_values_are_omitted(self):
        query = SearchFormState(originLocationCode="DEL").to_query()
        self.assertEqual(
            query,
            {"originLocationCode": "DEL", "adults": 1, "travelClass": "ECONOMY", "currencyCode": "INR"},
        )

    def test_unknown_field(self):
        with self.assertRaises(KeyError):
            SearchFormState().with_field("cabin", "FIRST")


class FormattingTests(SimpleTestCase):
    def test_format_duration(self):
        self.assertEqual(format_duration("PT2H30M"), "2h 30m")
        self.assertEqual(format_duration("PT45M"), "0h 45m")
        self.assertEqual(format_duration("garbage"), "garbage")

    def test_format_date_time(self):
        self.assertEqual(format_date_time("2025-05-01T14:05:00"), {"time": "02:05 PM", "date": "May 1"})
        self.assertEqual(format_date_time(None), {"time": "", "date": ""})

    def test_labels(self):
        self.assertEqual([stop_label(n) for n in (0, 1, 2)], ["Non-stop", "1 Stop", "2 Stops"])
        self.assertEqual(travel_class_label("PREMIUM_ECONOMY"), "Premium Economy")
        self.assertEqual(travel_class_label("ODD"), "ODD")
        self.assertEqual(total_passengers({"adults": "2", "children": "1", "infants": "x"}), 3)

    def test_booking_url(self):
        known = make_offer("A", 1, ("PT1H0M", ["AI"]))
        self.assertEqual(booking_url(known, DICTIONARIES), "https://www.airindia.com")

        unknown = make_offer("B", 1, ("PT1H0M", ["ZZ"]))
        dictionaries = {"carriers": {"ZZ": "Zed Air Lines"}}
        self.assertEqual(booking_url(unknown, dictionaries), "https://www.zedairlines.com")
        self.assertEqual(booking_url(unknown, {}), "https://www.zz.com")

    def test_offer_lines_fall_back_to_codes(self):
        offer = make_offer("A", 5000, ("PT2H30M", ["XX"]))
        lines = offer_lines(offer, {})
        self.assertEqual(lines[0], "Outbound · 2h 30m")
        self.assertIn("XX 101 (320)", lines[1])
        self.assertEqual(lines[-1], "INR 5,000.00  4 seats left")


class ResultsPageTests(SimpleTestCase):
    def test_missing_parameters_skip_the_client(self):
        client = FakeClient(results())
        page = ResultsPage(client)

        self.assertFalse(page.search({"originLocationCode": "DEL"}))
        self.assertEqual(page.error, "Missing required search parameters")
        self.assertEqual(page.status, ResultsStatus.ERROR)
        self.assertEqual(client.searches, [])

    def test_search_populates_facets_and_results(self):
        page = ResultsPage(FakeClient(results()))

        self.assertTrue(page.search(QUERY))

        self.assertEqual(page.status, ResultsStatus.OK)
        self.assertEqual(offer_ids(page.visible_offers), ["A", "B"])
        self.assertEqual(page.airline_options, [("6E", "INDIGO"), ("AI", "AIR INDIA")])
        self.assertEqual(page.stop_options, [(0, "Non-stop"), (1, "1 Stop")])

    def test_filters_and_sort(self):
        page = ResultsPage(FakeClient(results()))
        page.search(QUERY)

        page.set_sort(SortKey.PRICE_DESC)
        self.assertEqual(offer_ids(page.visible_offers), ["B", "A"])
        page.set_sort(SortKey.PRICE_ASC)
        self.assertEqual(offer_ids(page.visible_offers), ["A", "B"])

        page.toggle_airline("AI", False)
        self.assertEqual(offer_ids(page.visible_offers), ["B"])
        page.toggle_stops(1, False)
        self.assertEqual(page.visible_offers, [])
        self.assertEqual(page.status, ResultsStatus.NO_MATCHES)

    def test_new_search_resets_filters_but_keeps_sort(self):
        page = ResultsPage(FakeClient(results()), sort=SortKey.DURATION_ASC)
        page.search(QUERY)
        page.toggle_airline("AI", False)
        page.set_price_ceiling(1)

        page.search(QUERY)

        self.assertEqual(page.filters.sort, SortKey.DURATION_ASC)
        self.assertEqual(offer_ids(page.visible_offers), ["B", "A"])

    def test_no_offers_is_distinct_from_no_matches(self):
        page = ResultsPage(FakeClient(error=NoOffersFound()))

        self.assertTrue(page.search(QUERY))
        self.assertEqual(page.status, ResultsStatus.NO_OFFERS)
        self.assertIsNone(page.error)

    def test_upstream_failure(self):
        page = ResultsPage(FakeClient(error=ProviderError("Sky fell", status_code=502)))

        self.assertFalse(page.search(QUERY))
        self.assertEqual(page.error, "Error searching flights: Sky fell")

    def test_other_not_found_errors_are_reported(self):
        page = ResultsPage(FakeClient(error=ProviderError("Endpoint not found.", status_code=404)))

        self.assertFalse(page.search(QUERY))
        self.assertEqual(page.status, ResultsStatus.ERROR)
        self.assertEqual(page.error, "Error searching flights: Endpoint not found.")

    def test_validation_failure(self):
        error = ValidationError({"originLocationCode": ["Invalid airport code."]})
        page = ResultsPage(FakeClient(error=error))

        self.assertFalse(page.search(QUERY))
        self.assertEqual(page.error, "originLocationCode: Invalid airport code.")

    def test_book_verifies_then_links(self):
        client = FakeClient(results())
        page = ResultsPage(client)
        page.search(QUERY)
        offer = page.visible_offers[0]

        self.assertEqual(page.book(offer), "https://www.airindia.com")
        self.assertEqual(client.verified, [offer])

    def test_book_reports_verification_failure(self):
        client = FakeClient(results(), verify_error=ProviderError("expired", status_code=400))
        page = ResultsPage(client)
        page.search(QUERY)

        self.assertIsNone(page.book(page.visible_offers[0]))
        self.assertEqual(page.error, PRICE_VERIFICATION_ERROR)
