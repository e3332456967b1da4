from django.core.management.base import BaseCommand, CommandError

from flights.models import TRAVEL_CLASSES
from flights.presentation import (
    SORT_LABELS,
    ResultsPage,
    ResultsStatus,
    SearchFormState,
    TripType,
    offer_lines,
    travel_class_label,
)
from flights.providers.base import NO_OFFERS_MESSAGE, ProviderError
from flights.services.filtering import SortKey
from flights.services.search import FlightSearchService


class Command(BaseCommand):
    help = "Search flight offers and print them filtered and sorted."

    def add_arguments(self, parser):
        parser.add_argument("origin", help="Origin IATA code, e.g. DEL")
        parser.add_argument("destination", help="Destination IATA code, e.g. BOM")
        parser.add_argument("departure_date", help="YYYY-MM-DD")
        parser.add_argument("--return-date", dest="return_date", default="")
        parser.add_argument("--adults", type=int, default=1)
        parser.add_argument("--children", type=int, default=0)
        parser.add_argument("--infants", type=int, default=0)
        parser.add_argument("--travel-class", dest="travel_class", choices=TRAVEL_CLASSES, default="ECONOMY")
        parser.add_argument("--currency", default="INR")
        parser.add_argument("--max", type=int, default=20)
        parser.add_argument("--sort", choices=[key.value for key in SortKey], default=SortKey.PRICE_ASC.value)
        parser.add_argument("--airline", action="append", default=[], help="Only show these carriers (repeatable)")
        parser.add_argument("--max-stops", dest="max_stops", type=int)
        parser.add_argument("--max-price", dest="max_price", type=float)
        parser.add_argument("--max-duration", dest="max_duration", type=int, help="Minutes")

    def handle(self, *args, **options):
        form = SearchFormState(
            originLocationCode=options["origin"].strip().upper(),
            destinationLocationCode=options["destination"].strip().upper(),
            departureDate=options["departure_date"],
            adults=options["adults"],
            children=options["children"],
            infants=options["infants"],
            travelClass=options["travel_class"],
            currencyCode=options["currency"].strip().upper(),
        )
        if options["return_date"]:
            form = form.with_trip_type(TripType.ROUND_TRIP).with_field("returnDate", options["return_date"])
        query = form.to_query()
        query["max"] = options["max"]

        try:
            page = ResultsPage(FlightSearchService(), sort=options["sort"])
        except ProviderError as exc:
            raise CommandError(str(exc))

        page.search(query)
        if page.status is ResultsStatus.ERROR:
            raise CommandError(page.error)

        for code in options["airline"]:
            if code.upper() not in page.filters.facets.airlines:
                self.stderr.write(f"Carrier {code.upper()} is not in these results.")
        if options["airline"]:
            page.select_airlines(code.upper() for code in options["airline"])
        if options["max_stops"] is not None:
            page.limit_stops(options["max_stops"])
        if options["max_price"] is not None:
            page.set_price_ceiling(options["max_price"])
        if options["max_duration"] is not None:
            page.set_duration_ceiling(options["max_duration"])

        self.stdout.write(
            f"{form.originLocationCode} -> {form.destinationLocationCode}  {form.departureDate}"
            f"{'  return ' + form.returnDate if form.returnDate else ''}  "
            f"{travel_class_label(form.travelClass)}  "
            f"sorted by {SORT_LABELS[page.filters.sort]}"
        )

        if page.status is ResultsStatus.NO_OFFERS:
            self.stdout.write(NO_OFFERS_MESSAGE)
            return
        if page.status is ResultsStatus.NO_MATCHES:
            self.stdout.write("No flights match your filters. Please try different filter options.")
            return

        visible = page.visible_offers
        self.stdout.write(f"{len(visible)} of {len(page.offers)} offers")
        for index, offer in enumerate(visible, start=1):
            self.stdout.write("")
            self.stdout.write(f"#{index}")
            for line in offer_lines(offer, page.dictionaries):
                self.stdout.write(line)
