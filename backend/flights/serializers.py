from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from flights.models import TRAVEL_CLASSES, SearchRecord
from flights.services.filtering import SortKey
from flights.services.normalize import PlaceCategory

AIRPORT_CODE_RE = r"^[A-Z]{3}$"
AIRPORT_CODE_ERROR = "Invalid airport code. It must be a 3-letter IATA code (e.g., DEL, BOM)."

OPTIONAL_CRITERIA = ("returnDate", "children", "infants", "travelClass", "currencyCode", "max")


class CommaSeparatedListField(serializers.ListField):
    """Accept ["AI","6E"] or "AI,6E" or "AI"."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [part.strip() for part in data.split(",") if part.strip()]
        return super().to_internal_value(data)


class FlightSearchSerializer(serializers.Serializer):
    originLocationCode = serializers.RegexField(
        AIRPORT_CODE_RE, error_messages={"invalid": AIRPORT_CODE_ERROR}
    )
    destinationLocationCode = serializers.RegexField(
        AIRPORT_CODE_RE, error_messages={"invalid": AIRPORT_CODE_ERROR}
    )
    departureDate = serializers.DateField()
    returnDate = serializers.DateField(required=False, allow_null=True)
    adults = serializers.IntegerField(min_value=1, max_value=9, default=1)
    children = serializers.IntegerField(min_value=0, max_value=9, default=0)
    infants = serializers.IntegerField(min_value=0, max_value=9, default=0)
    travelClass = serializers.ChoiceField(choices=TRAVEL_CLASSES, default="ECONOMY")
    currencyCode = serializers.CharField(required=False, allow_null=True, min_length=3, max_length=3)
    max = serializers.IntegerField(min_value=1, max_value=250, default=20)

    def validate_departureDate(self, value):
        if value < timezone.localdate():
            raise serializers.ValidationError("Departure date cannot be in the past.")
        return value

    def to_internal_value(self, data):
        # Query strings and HTML forms send "" for fields left empty.
        if hasattr(data, "items"):
            data = {
                key: value
                for key, value in data.items()
                if not (key in OPTIONAL_CRITERIA and value in ("", None))
            }
        return super().to_internal_value(data)

    def validate(self, attrs):
        origin = attrs["originLocationCode"]
        destination = attrs["destinationLocationCode"]
        if origin == destination:
            raise serializers.ValidationError(
                {"destinationLocationCode": "Destination must be different from origin."}
            )

        currency = attrs.get("currencyCode")
        currency = currency.strip().upper() if isinstance(currency, str) else None
        attrs["currencyCode"] = currency or getattr(settings, "DEFAULT_CURRENCY", "INR")

        return_date = attrs.get("returnDate")
        if return_date and return_date < attrs["departureDate"]:
            raise serializers.ValidationError({"returnDate": "Return date must be on or after departure date."})

        if attrs["adults"] + attrs["children"] > 9:
            raise serializers.ValidationError({"children": "At most 9 seated travelers are allowed."})
        if attrs["infants"] > attrs["adults"]:
            raise serializers.ValidationError({"infants": "Each infant must travel with an adult."})

        return attrs


class OfferFilterSerializer(serializers.Serializer):
    sort = serializers.ChoiceField(choices=[key.value for key in SortKey], required=False)
    airlines = CommaSeparatedListField(child=serializers.CharField(max_length=3), required=False)
    stops = CommaSeparatedListField(child=serializers.IntegerField(min_value=0), required=False)
    maxPrice = serializers.FloatField(min_value=0, required=False, allow_null=True)
    maxDuration = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    def validate_airlines(self, value):
        return [code.strip().upper() for code in value if code.strip()]


class PriceVerificationSerializer(serializers.Serializer):
    offer = serializers.DictField(required=False)
    # Older clients post the offer as "flightOffer".
    flightOffer = serializers.DictField(required=False)

    def validate(self, attrs):
        offer = attrs.get("offer") or attrs.get("flightOffer")
        if not offer:
            raise serializers.ValidationError({"offer": "Flight offer data is required."})
        return {"offer": offer}


class LocationSearchSerializer(serializers.Serializer):
    keyword = serializers.CharField(error_messages={"required": "Keyword is required.", "blank": "Keyword is required."})
    subType = serializers.CharField(required=False, allow_blank=True)

    def validate_subType(self, value):
        try:
            return PlaceCategory.parse_list(value)
        except ValueError:
            choices = ", ".join(c.value for c in PlaceCategory)
            raise serializers.ValidationError(f"subType must be a comma-separated list of: {choices}.")

    def validate(self, attrs):
        attrs.setdefault("subType", PlaceCategory.parse_list(None))
        return attrs


class SearchRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = SearchRecord
        fields = [
            "id",
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
            "created_at",
        ]
