from django.contrib import admin

from .models import DeliveryLocationMapping, Hostel, Location


class HostelInline(admin.TabularInline):
    model = Hostel
    extra = 0
    fields = ("name", "address", "is_active")


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("area", "city", "pincode", "delivery_charge_paise", "use_geo_delivery", "is_active")
    list_filter = ("is_active", "use_geo_delivery", "city")
    search_fields = ("area", "city", "pincode")
    inlines = [HostelInline]


@admin.register(Hostel)
class HostelAdmin(admin.ModelAdmin):
    list_display = ("name", "location", "address", "is_active", "created_at")
    list_filter = ("is_active", "location")
    search_fields = ("name", "address", "location__area", "location__city")
    list_select_related = ("location",)


@admin.register(DeliveryLocationMapping)
class DeliveryLocationMappingAdmin(admin.ModelAdmin):
    list_display = ("delivery_location", "hostel_name", "mapping_type", "created_by", "is_active")
    list_filter = ("mapping_type", "is_active")
    search_fields = ("delivery_location", "hostel_name")
    readonly_fields = ("hostel_name",)
    list_select_related = ("hostel",)
