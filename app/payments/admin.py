from django.contrib import admin

from .models import PaymentSession


@admin.register(PaymentSession)
class PaymentSessionAdmin(admin.ModelAdmin):
    list_display = ['session_ref', 'appointment', 'provider', 'amount', 'currency', 'status', 'created_at']
    list_filter = ['provider', 'status', 'currency']
    search_fields = ['session_ref', 'appointment__id']
    readonly_fields = ['id', 'session_ref', 'payment_url', 'paid_at', 'created_at', 'updated_at']
