from rest_framework import serializers
from decimal import Decimal
from backend.parties.models import Tenant
from .models import Shop


class ShopSerializer(serializers.ModelSerializer):
    label = serializers.CharField(read_only=True)
    current_contract = serializers.SerializerMethodField()
    current_tenant = serializers.SerializerMethodField()
    # Only used when the shop is marked occupied: creates the lease automatically
    tenant = serializers.PrimaryKeyRelatedField(
        queryset=Tenant.objects.all(), write_only=True, required=False, allow_null=True
    )

    class Meta:
        model = Shop
        fields = ['id', 'shop_number', 'name', 'label', 'status', 'surface_area', 'floor', 'location',
                  'activity_category', 'monthly_rent', 'description', 'current_contract',
                  'current_tenant', 'tenant', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def _active_contract(self, obj):
        # Prefetched by the list view as `active_contracts`
        if hasattr(obj, 'active_contracts'):
            return obj.active_contracts[0] if obj.active_contracts else None
        return obj.active_contract

    def get_current_contract(self, obj):
        contract = self._active_contract(obj)
        if not contract:
            return None
        return {
            'id': contract.id,
            'start_date': contract.start_date,
            'end_date': contract.end_date,
            'rent_amount': str(contract.rent_amount),
            'currency': contract.currency,
        }

    def get_current_tenant(self, obj):
        contract = self._active_contract(obj)
        if not contract:
            return None
        return {
            'id': contract.tenant_id,
            'company_name': contract.tenant.company_name,
            'contact_name': contract.tenant.contact_name,
        }

    def validate_shop_number(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError('Shop number is required.')
        return value

    def validate_floor(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError('Floor is required.')
        return value

    def validate_location(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError('Location is required.')
        return value

    def validate_surface_area(self, value):
        if value is None or value < Decimal('0'):
            raise serializers.ValidationError('Surface area must be zero or greater.')
        return value

    def validate_monthly_rent(self, value):
        if value is not None and value < Decimal('0'):
            raise serializers.ValidationError('Monthly rent must be zero or greater.')
        return value

    def validate(self, attrs):
        status_value = attrs.get('status', self.instance.status if self.instance else 'vacant')
        tenant = attrs.get('tenant')
        active = self.instance.active_contract if self.instance else None

        if status_value == 'occupied':
            if not tenant and not active:
                raise serializers.ValidationError({'tenant': 'A tenant is required for an occupied shop.'})
            if tenant and active and active.tenant_id != tenant.id:
                raise serializers.ValidationError({
                    'tenant': 'This shop is already occupied by another tenant. Terminate the active contract first.'
                })
            if tenant and not tenant.active:
                raise serializers.ValidationError({'tenant': 'Tenant is inactive.'})
        elif active:
            raise serializers.ValidationError({
                'status': 'This shop has an active contract. Terminate the contract before changing its status.'
            })
        return attrs


class ShopOptionSerializer(serializers.ModelSerializer):
    """Compact shop representation for select lists"""
    label = serializers.CharField(read_only=True)

    class Meta:
        model = Shop
        fields = ['id', 'shop_number', 'name', 'label', 'status', 'monthly_rent']
