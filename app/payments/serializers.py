# payments/serializers.py
from rest_framework import serializers
from django.conf import settings
from django.utils.translation import gettext_lazy as _

from .models import PaymentSession


class PaymentSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentSession
        fields = [
            'id', 'appointment', 'provider', 'session_ref', 'payment_url',
            'amount', 'currency', 'status', 'paid_at', 'created_at'
        ]
        read_only_fields = fields


class CreateCheckoutSerializer(serializers.Serializer):
    appointment_id = serializers.UUIDField()
    currency = serializers.CharField(max_length=3, required=False)

    def validate_currency(self, value):
        value = value.upper()
        if value not in settings.PAYMENT_SETTINGS.get('SUPPORTED_CURRENCIES', ['USD']):
            raise serializers.ValidationError(_("Currency not supported"))
        return value


class VerifyCheckoutSerializer(serializers.Serializer):
    session_ref = serializers.CharField(max_length=255)
