from django.contrib import admin

from .models import Notification, NotificationAttempt, Template


class NotificationAttemptInline(admin.TabularInline):
    model = NotificationAttempt
    extra = 0
    readonly_fields = ("started_at", "finished_at", "result", "error_message")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("template_code", "type", "to", "status", "attempts", "created_at")
    list_filter = ("type", "status", "provider")
    search_fields = ("to", "idempotency_key", "order__order_number")
    raw_id_fields = ("user", "order")
    inlines = [NotificationAttemptInline]


@admin.register(Template)
class TemplateAdmin(admin.ModelAdmin):
    list_display = ("code", "channel", "updated_at")
    list_filter = ("channel",)
