from django.db import models

TRAVEL_CLASSES = ["ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"]


class SearchRecord(models.Model):
    """A completed flight search. Rows are only ever inserted."""

    originLocationCode = models.CharField(max_length=3)
    destinationLocationCode = models.CharField(max_length=3)
    departureDate = models.DateField()
    returnDate = models.DateField(null=True, blank=True)
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)
    infants = models.PositiveSmallIntegerField(default=0)
    travelClass = models.CharField(
        max_length=16,
        choices=[(c, c) for c in TRAVEL_CLASSES],
        default="ECONOMY",
    )
    currencyCode = models.CharField(max_length=3, default="INR")
    max = models.PositiveSmallIntegerField(default=20)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.originLocationCode}-{self.destinationLocationCode} {self.departureDate}"
