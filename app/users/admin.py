from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _
from rest_framework.authtoken.admin import TokenAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin for User model
    """
    ordering = ['email']
    list_display = ['email', 'first_name', 'last_name', 'user_type', 'approval_status', 'is_active', 'created_at']
    list_filter = ['user_type', 'approval_status', 'is_active', 'created_at']
    search_fields = ['email', 'first_name', 'last_name']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        (_('Personal info'), {
            'fields': ('user_type', 'first_name', 'middle_name', 'last_name', 'dob',
                       'gender', 'phone', 'address', 'image', 'valid_id')
        }),
        (_('Review'), {'fields': ('approval_status',)}),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser',
                      'groups', 'user_permissions')
        }),
        (_('Important dates'), {
            'fields': ('last_login_date', 'registration_date')
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'user_type', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['registration_date', 'created_at', 'updated_at']


# Fix TokenAdmin to work with our custom User model
TokenAdmin.autocomplete_fields = ['user']
