# doctors/serializers.py
from decimal import Decimal
from rest_framework import serializers
from django.utils.translation import gettext_lazy as _

from users.serializers import parse_address
from .models import Doctor


class DoctorSerializer(serializers.ModelSerializer):
    """
    Public doctor profile. The ledger is exposed read-only so clients can
    render which slots are still free.
    """
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Doctor
        fields = [
            'id', 'name', 'name_extension', 'display_name', 'email', 'image',
            'speciality', 'degree', 'experience', 'about', 'available', 'fees',
            'address', 'slots_booked', 'created_at'
        ]
        read_only_fields = fields


class AdminDoctorSerializer(DoctorSerializer):
    class Meta(DoctorSerializer.Meta):
        fields = DoctorSerializer.Meta.fields + ['license_id', 'updated_at']
        read_only_fields = fields


class DoctorWriteSerializer(serializers.Serializer):
    """
    Multipart payload for adding or editing a doctor
    """
    name = serializers.CharField(max_length=200)
    name_extension = serializers.CharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField()
    speciality = serializers.CharField(max_length=100)
    degree = serializers.CharField(max_length=100)
    experience = serializers.CharField(max_length=50)
    about = serializers.CharField(required=False, allow_blank=True)
    fees = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))
    address = serializers.JSONField(required=False)
    license_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    available = serializers.BooleanField(required=False, default=True)
    image = serializers.FileField(required=False)

    def validate_address(self, value):
        return parse_address(value)

    def validate(self, attrs):
        if not self.partial and not attrs.get('image'):
            raise serializers.ValidationError({'image': _("Doctor image is required")})
        return attrs
