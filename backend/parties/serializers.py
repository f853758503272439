from rest_framework import serializers
from .models import Tenant


class TenantSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    active_contracts_count = serializers.SerializerMethodField()

    class Meta:
        model = Tenant
        fields = [
            'id', 'company_name', 'contact_name', 'display_name', 'email', 'phone', 'address',
            'tax_id', 'registration_number', 'business_type', 'notes', 'active',
            'active_contracts_count', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_active_contracts_count(self, obj):
        if hasattr(obj, 'active_contracts_count'):
            return obj.active_contracts_count
        return obj.contracts.filter(status='active').count()

    def _required(self, value, message):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError(message)
        return value

    def validate_company_name(self, value):
        return self._required(value, 'Company name is required.')

    def validate_contact_name(self, value):
        return self._required(value, 'Contact name is required.')

    def validate_phone(self, value):
        return self._required(value, 'Phone is required.')

    def validate_email(self, value):
        return self._required(value, 'Email is required.').lower()


class TenantOptionSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Tenant
        fields = ['id', 'company_name', 'contact_name', 'display_name', 'active']
