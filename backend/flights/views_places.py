from __future__ import annotations

import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET

from flights.providers.base import ProviderError
from flights.serializers import LocationSearchSerializer
from flights.services.search import MIN_KEYWORD_LENGTH, FlightSearchService

logger = logging.getLogger(__name__)


@require_GET
def location_search(request):
    serializer = LocationSearchSerializer(data=request.GET.dict())
    if not serializer.is_valid():
        errors = serializer.errors
        message = errors["keyword"][0] if "keyword" in errors else "Invalid location search."
        return JsonResponse({"message": str(message), "details": errors}, status=400)

    keyword = serializer.validated_data["keyword"]
    if len(keyword) < MIN_KEYWORD_LENGTH:
        return JsonResponse([], safe=False)

    try:
        places = FlightSearchService().search_locations(keyword, serializer.validated_data["subType"])
    except ProviderError as exc:
        logger.warning("Location search failed for %r: %s", keyword, exc)
        return JsonResponse(
            {"message": str(exc), "details": exc.details},
            status=exc.status_code or 502,
        )

    return JsonResponse([place.to_dict() for place in places], safe=False)
