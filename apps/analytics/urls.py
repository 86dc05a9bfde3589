from django.urls import path

from . import views

app_name = "analytics"

urlpatterns = [
    path("overview", views.overview, name="overview"),
    path("orders-trend", views.orders_trend, name="orders_trend"),
    path("orders-by-location", views.orders_by_location, name="orders_by_location"),
    path("top-products", views.top_products, name="top_products"),
    path("category-performance", views.category_performance, name="category_performance"),
    path("payment-methods", views.payment_methods, name="payment_methods"),
    path("recent-orders", views.recent_orders, name="recent_orders"),
    path("hostel-performance", views.hostel_performance, name="hostel_performance"),
]
