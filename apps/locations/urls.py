from django.urls import path

from . import views

app_name = "locations"

urlpatterns = [
    path("locations", views.locations_public, name="list"),
    path("locations/check-delivery", views.check_delivery, name="check_delivery"),
    path("hostels/<uuid:location_id>", views.hostels_by_location, name="hostels_by_location"),
]
