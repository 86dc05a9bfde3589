from django.contrib import admin

from .models import Order, OrderItem, OrderStatusChange


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ("product",)
    readonly_fields = ("dispatched_at", "delivered_at")


class OrderStatusChangeInline(admin.TabularInline):
    model = OrderStatusChange
    extra = 0
    can_delete = False
    readonly_fields = ("status", "source", "note", "created_at")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "order_status",
        "payment_status",
        "amount_paise",
        "hostel",
        "hostel_name",
        "created_at",
    )
    list_filter = ("order_status", "payment_status", "payment_method", "hostel")
    search_fields = ("order_number", "hostel_name", "delivery_location", "razorpay_order_id")
    ordering = ("-created_at",)
    list_select_related = ("hostel", "user")
    raw_id_fields = ("user",)
    inlines = [OrderItemInline, OrderStatusChangeInline]
