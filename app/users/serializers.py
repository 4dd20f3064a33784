# users/serializers.py
import json

from rest_framework import serializers
from django.utils.translation import gettext_lazy as _

from .models import User


def parse_address(value):
    """Accept an address object or its JSON encoding (multipart forms send strings)"""
    if value in (None, ''):
        return {'line1': '', 'line2': ''}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise serializers.ValidationError(_("Address must be a JSON object"))
    if not isinstance(value, dict):
        raise serializers.ValidationError(_("Address must be a JSON object"))
    return {
        'line1': str(value.get('line1', '')),
        'line2': str(value.get('line2', '')),
    }


class UserSerializer(serializers.ModelSerializer):
    """
    Basic serializer for User model - returns user data
    """
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'user_type', 'approval_status', 'is_active',
            'first_name', 'middle_name', 'last_name', 'full_name', 'phone',
            'address', 'gender', 'dob', 'image', 'registration_date',
            'last_login_date'
        ]
        read_only_fields = fields


class AdminUserSerializer(UserSerializer):
    """
    User data for the admin panel, including the uploaded ID document
    """
    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['valid_id', 'created_at']
        read_only_fields = fields


class UserRegistrationSerializer(serializers.Serializer):
    """
    Multipart registration payload; the ID document is required
    """
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8, style={'input_type': 'password'})
    first_name = serializers.CharField(max_length=100)
    middle_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=100)
    dob = serializers.DateField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=User.GENDER_CHOICES, required=False)
    address = serializers.JSONField(required=False)
    valid_id = serializers.FileField()

    def validate_address(self, value):
        return parse_address(value)


class LoginSerializer(serializers.Serializer):
    """
    Serializer for user login
    """
    email = serializers.EmailField(
        help_text=_("Your email address")
    )
    password = serializers.CharField(
        style={'input_type': 'password'},
        help_text=_("Your password")
    )


class ProfileUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100, required=False)
    middle_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=100, required=False)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    dob = serializers.DateField(required=False)
    gender = serializers.ChoiceField(choices=User.GENDER_CHOICES, required=False)
    address = serializers.JSONField(required=False)
    image = serializers.FileField(required=False)

    def validate_address(self, value):
        return parse_address(value)


class ApprovalStatusSerializer(serializers.Serializer):
    approval_status = serializers.ChoiceField(
        choices=[
            (User.APPROVAL_APPROVED, _('Approved')),
            (User.APPROVAL_DECLINED, _('Declined')),
            (User.APPROVAL_BLOCKED, _('Blocked')),
        ]
    )
