from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import UniqueConstraint
from django.db.models.functions import Lower

from apps.common.models import BaseModel

from .geo import is_valid_coordinates


class Location(BaseModel):
    city = models.CharField(max_length=120)
    area = models.CharField(max_length=160)
    pincode = models.CharField(max_length=12)
    delivery_charge_paise = models.IntegerField(default=4900, validators=[MinValueValidator(0)])
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)
    delivery_radius_km = models.FloatField(default=5, validators=[MinValueValidator(0.1)])
    use_geo_delivery = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["city", "area"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(delivery_charge_paise__gte=0), name="location_delivery_charge_gte_0"
            ),
        ]

    def __str__(self) -> str:
        return self.full_address

    @property
    def full_address(self) -> str:
        return f"{self.area}, {self.city} - {self.pincode}"

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def clean(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValidationError("Latitude and longitude must be set together.")
        if self.has_coordinates and not is_valid_coordinates(self.latitude, self.longitude):
            raise ValidationError("Invalid coordinates.")
        if self.use_geo_delivery and not self.has_coordinates:
            raise ValidationError("Geo delivery requires coordinates.")


class Hostel(BaseModel):
    name = models.CharField(max_length=160)
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name="hostels")
    address = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        indexes = [models.Index(fields=["location", "is_active"], name="locations_hostel_location_idx")]
        constraints = [
            UniqueConstraint(Lower("name"), "location", name="locations_hostel_name_location_uniq"),
        ]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.address = (self.address or "").strip()
        super().save(*args, **kwargs)


class DeliveryLocationMapping(BaseModel):
    TYPE_EXACT = "exact"
    TYPE_PARTIAL = "partial"
    TYPE_MANUAL = "manual"
    TYPE_CHOICES = [(TYPE_EXACT, "Exact"), (TYPE_PARTIAL, "Partial"), (TYPE_MANUAL, "Manual")]

    delivery_location = models.CharField(max_length=255, unique=True)
    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name="delivery_mappings")
    hostel_name = models.CharField(max_length=160)
    mapping_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_MANUAL)
    created_by = models.CharField(max_length=60, default="system")
    is_active = models.BooleanField(default=True)

    class Meta:
        indexes = [models.Index(fields=["hostel"], name="locations_mapping_hostel_idx")]

    def __str__(self) -> str:
        return f"{self.delivery_location} → {self.hostel_name}"

    def save(self, *args, **kwargs):
        self.delivery_location = (self.delivery_location or "").strip()
        if self.hostel_id:
            self.hostel_name = self.hostel.name
        super().save(*args, **kwargs)
