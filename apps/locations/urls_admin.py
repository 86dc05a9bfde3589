from django.urls import path

from . import views

app_name = "locations_admin"

urlpatterns = [
    path("locations", views.locations_admin, name="locations"),
    path("locations/<uuid:location_id>", views.location_update, name="location_update"),
    path("locations/<uuid:location_id>/toggle", views.location_toggle, name="location_toggle"),
    path("hostels", views.hostels_admin, name="hostels"),
    path("hostels/location/<uuid:location_id>", views.hostels_by_location_admin, name="hostels_by_location"),
    path("hostels/<uuid:hostel_id>", views.hostel_detail, name="hostel_detail"),
    path("hostels/<uuid:hostel_id>/toggle", views.hostel_toggle, name="hostel_toggle"),
    path("delivery-mappings", views.mappings_admin, name="mappings"),
    path("delivery-mappings/<uuid:mapping_id>", views.mapping_delete, name="mapping_delete"),
]
