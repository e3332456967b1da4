from django.urls import path, re_path

from flights.views import (
    FlightSearchView,
    HealthView,
    PriceVerificationView,
    RecentSearchesView,
    api_not_found,
)
from flights.views_places import location_search

urlpatterns = [
    path("health", HealthView.as_view(), name="health"),
    path("locations/search", location_search, name="location-search"),
    path("flights/search", FlightSearchView.as_view(), name="flight-search"),
    path("flights/verify-price", PriceVerificationView.as_view(), name="flight-verify-price"),
    path("flights/recent-searches", RecentSearchesView.as_view(), name="flight-recent-searches"),
    re_path(r"^.*$", api_not_found, name="api-not-found"),
]
