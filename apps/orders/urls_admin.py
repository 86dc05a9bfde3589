from django.urls import path

from . import views

app_name = "orders_admin"

urlpatterns = [
    path("orders/grouped", views.orders_grouped, name="grouped"),
    path("orders/individual", views.orders_individual, name="individual"),
    path("orders/stats", views.orders_stats, name="stats"),
    path("orders/migrate-hostel-ids", views.migrate_hostel_ids, name="migrate_hostel_ids"),
    path("orders/analyze-hostel-data", views.analyze_hostel_data_view, name="analyze_hostel_data"),
    path("dispatch", views.orders_dispatch, name="dispatch"),
    path("dispatch-item", views.item_dispatch, name="dispatch_item"),
    path("deliver-item", views.item_deliver, name="deliver_item"),
]
