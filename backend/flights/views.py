from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from flights.providers.base import ProviderError
from flights.serializers import (
    OfferFilterSerializer,
    PriceVerificationSerializer,
    SearchRecordSerializer,
)
from flights.services import history
from flights.services.filtering import FilterState, apply_filters
from flights.services.search import FlightSearchService

API_ENDPOINTS = [
    "GET /api/health",
    "GET /api/locations/search?keyword=&subType=",
    "POST /api/flights/search",
    "POST /api/flights/verify-price",
    "GET /api/flights/recent-searches",
]


def provider_error_response(exc):
    payload = {"message": str(exc), "details": exc.details}
    return Response(payload, status=exc.status_code or status.HTTP_502_BAD_GATEWAY)


def build_filter_state(offers, controls):
    state = FilterState.for_offers(offers)
    if controls.get("sort"):
        state = state.with_sort(controls["sort"])
    if controls.get("airlines"):
        state = state.with_airlines(controls["airlines"])
    if controls.get("stops"):
        state = state.with_stop_options(controls["stops"])
    if controls.get("maxPrice") is not None:
        state = state.with_price_ceiling(controls["maxPrice"])
    if controls.get("maxDuration") is not None:
        state = state.with_duration_ceiling(controls["maxDuration"])
    return state


class HealthView(APIView):
    def get(self, request):
        return Response({"status": "ok"})


class FlightSearchView(APIView):
    def post(self, request):
        # Optional result controls; they never reach the upstream query.
        controls = OfferFilterSerializer(data=request.data)
        controls.is_valid(raise_exception=True)

        try:
            result = FlightSearchService().search_flights(request.data)
        except ProviderError as exc:
            return provider_error_response(exc)

        offers = result["offers"]
        state = build_filter_state(offers, controls.validated_data)
        visible = apply_filters(offers, state)

        return Response(
            {
                "offers": visible,
                "dictionaries": result["dictionaries"],
                "meta": {
                    "total": len(offers),
                    "count": len(visible),
                    "sort": state.sort.value,
                    "facets": state.facets.to_dict(),
                },
            }
        )


class PriceVerificationView(APIView):
    def post(self, request):
        serializer = PriceVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            confirmed = FlightSearchService().verify_price(serializer.validated_data["offer"])
        except ProviderError as exc:
            return provider_error_response(exc)
        return Response(confirmed)


class RecentSearchesView(APIView):
    def get(self, request):
        records = history.list_recent()
        return Response(SearchRecordSerializer(records, many=True).data)


def api_not_found(request, *args, **kwargs):
    return JsonResponse(
        {
            "message": "Endpoint not found.",
            "path": request.path,
            "endpoints": API_ENDPOINTS,
        },
        status=404,
    )
