import django.core.validators
import django.db.models.deletion
import django.db.models.functions.text
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("city", models.CharField(max_length=120)),
                ("area", models.CharField(max_length=160)),
                ("pincode", models.CharField(max_length=12)),
                (
                    "delivery_charge_paise",
                    models.IntegerField(default=4900, validators=[django.core.validators.MinValueValidator(0)]),
                ),
                ("latitude", models.FloatField(blank=True, null=True)),
                ("longitude", models.FloatField(blank=True, null=True)),
                (
                    "delivery_radius_km",
                    models.FloatField(default=5, validators=[django.core.validators.MinValueValidator(0.1)]),
                ),
                ("use_geo_delivery", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["city", "area"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(delivery_charge_paise__gte=0), name="location_delivery_charge_gte_0"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Hostel",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=160)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="hostels",
                        to="locations.location",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "indexes": [models.Index(fields=["location", "is_active"], name="locations_hostel_location_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("name"),
                        models.F("location"),
                        name="locations_hostel_name_location_uniq",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="DeliveryLocationMapping",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("delivery_location", models.CharField(max_length=255, unique=True)),
                ("hostel_name", models.CharField(max_length=160)),
                (
                    "mapping_type",
                    models.CharField(
                        choices=[("exact", "Exact"), ("partial", "Partial"), ("manual", "Manual")],
                        default="manual",
                        max_length=10,
                    ),
                ),
                ("created_by", models.CharField(default="system", max_length=60)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "hostel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delivery_mappings",
                        to="locations.hostel",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["hostel"], name="locations_mapping_hostel_idx")],
            },
        ),
    ]
