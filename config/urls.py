from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("apps.locations.urls")),
    path("api/admin/", include("apps.locations.urls_admin")),
    path("api/admin/", include("apps.orders.urls_admin")),
    path("api/analytics/", include("apps.analytics.urls")),
    path("api/notifications/", include("apps.notifications.urls")),
    # Healthcheck endpoint
    path("healthz", lambda _request: HttpResponse("ok")),
]
