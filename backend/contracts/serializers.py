from rest_framework import serializers
from decimal import Decimal
from .models import Contract


class ContractSerializer(serializers.ModelSerializer):
    label = serializers.CharField(read_only=True)
    monthly_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    tenant_detail = serializers.SerializerMethodField()
    shop_detail = serializers.SerializerMethodField()

    class Meta:
        model = Contract
        fields = ['id', 'shop', 'shop_detail', 'tenant', 'tenant_detail', 'label', 'title',
                  'start_date', 'end_date', 'rent_amount', 'currency', 'deposit', 'charges',
                  'monthly_amount', 'payment_day', 'status', 'auto_renewal', 'contract_type',
                  'notes', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_tenant_detail(self, obj):
        return {
            'id': obj.tenant_id,
            'company_name': obj.tenant.company_name,
            'contact_name': obj.tenant.contact_name,
            'email': obj.tenant.email,
        }

    def get_shop_detail(self, obj):
        return {
            'id': obj.shop_id,
            'shop_number': obj.shop.shop_number,
            'name': obj.shop.name,
            'label': obj.shop.label,
        }

    def validate_title(self, value):
        return (value or '').strip()

    def _validate_non_negative(self, value, label):
        if value is not None and value < Decimal('0'):
            raise serializers.ValidationError(f'{label} must be zero or greater.')
        return value

    def validate_rent_amount(self, value):
        return self._validate_non_negative(value, 'Rent amount')

    def validate_deposit(self, value):
        return self._validate_non_negative(value, 'Deposit')

    def validate_charges(self, value):
        return self._validate_non_negative(value, 'Charges')

    def validate(self, attrs):
        def current(field):
            if field in attrs:
                return attrs[field]
            return getattr(self.instance, field) if self.instance else None

        start_date = current('start_date')
        end_date = current('end_date')
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date must be on or after the start date.'})

        tenant = attrs.get('tenant')
        if tenant and not tenant.active and (not self.instance or self.instance.tenant_id != tenant.id):
            raise serializers.ValidationError({'tenant': 'Tenant is inactive.'})

        shop = current('shop')
        status_value = current('status') or 'active'
        if shop and status_value == 'active':
            others = Contract.objects.filter(shop=shop, status='active')
            if self.instance:
                others = others.exclude(pk=self.instance.pk)
            if others.exists():
                raise serializers.ValidationError({
                    'shop': 'This shop already has an active contract. Terminate it before creating a new one.'
                })
            if shop.status == 'under_renovation':
                raise serializers.ValidationError({'shop': 'This shop is under renovation.'})
        return attrs


class ContractRenewSerializer(serializers.Serializer):
    months = serializers.IntegerField(min_value=1, max_value=120, default=12)


class ContractTerminateSerializer(serializers.Serializer):
    end_date = serializers.DateField(required=False, allow_null=True)
