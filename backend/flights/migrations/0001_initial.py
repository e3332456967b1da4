from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SearchRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("originLocationCode", models.CharField(max_length=3)),
                ("destinationLocationCode", models.CharField(max_length=3)),
                ("departureDate", models.DateField()),
                ("returnDate", models.DateField(blank=True, null=True)),
                ("adults", models.PositiveSmallIntegerField(default=1)),
                ("children", models.PositiveSmallIntegerField(default=0)),
                ("infants", models.PositiveSmallIntegerField(default=0)),
                (
                    "travelClass",
                    models.CharField(
                        choices=[
                            ("ECONOMY", "ECONOMY"),
                            ("PREMIUM_ECONOMY", "PREMIUM_ECONOMY"),
                            ("BUSINESS", "BUSINESS"),
                            ("FIRST", "FIRST"),
                        ],
                        default="ECONOMY",
                        max_length=16,
                    ),
                ),
                ("currencyCode", models.CharField(default="INR", max_length=3)),
                ("max", models.PositiveSmallIntegerField(default=20)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
