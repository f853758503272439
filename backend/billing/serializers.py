from rest_framework import serializers
from decimal import Decimal
from django.utils import timezone
from backend.contracts.services import add_months
from .models import Invoice, Payment
from .services import generate_invoice_number


class InvoiceSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)
    amount_total = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    currency = serializers.ChoiceField(choices=Invoice._meta.get_field('currency').choices, required=False)
    amount_paid = serializers.SerializerMethodField()
    balance_due = serializers.SerializerMethodField()
    tenant_detail = serializers.SerializerMethodField()
    shop_detail = serializers.SerializerMethodField()
    contract_detail = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            'id', 'invoice_number', 'contract', 'contract_detail', 'tenant', 'tenant_detail',
            'shop', 'shop_detail', 'issue_date', 'due_date', 'amount_total', 'amount_paid',
            'balance_due', 'currency', 'status', 'description', 'period_start', 'period_end',
            'last_reminder_on', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['tenant', 'shop', 'period_start', 'period_end', 'last_reminder_on',
                            'created_by', 'created_at', 'updated_at']

    def _paid(self, obj):
        # Annotated by list views as `paid_total`
        paid = getattr(obj, 'paid_total', None)
        return paid if paid is not None else obj.amount_paid

    def get_amount_paid(self, obj):
        return str(self._paid(obj) or Decimal('0.00'))

    def get_balance_due(self, obj):
        return str(obj.amount_total - (self._paid(obj) or Decimal('0.00')))

    def get_tenant_detail(self, obj):
        return {
            'id': obj.tenant_id,
            'company_name': obj.tenant.company_name,
            'contact_name': obj.tenant.contact_name,
            'email': obj.tenant.email,
        }

    def get_shop_detail(self, obj):
        return {'id': obj.shop_id, 'shop_number': obj.shop.shop_number, 'name': obj.shop.name}

    def get_contract_detail(self, obj):
        return {'id': obj.contract_id, 'label': obj.contract.label, 'status': obj.contract.status}

    def validate_invoice_number(self, value):
        value = (value or '').strip()
        if value:
            queryset = Invoice.objects.filter(invoice_number=value)
            if self.instance:
                queryset = queryset.exclude(pk=self.instance.pk)
            if queryset.exists():
                raise serializers.ValidationError('An invoice with this number already exists.')
        return value

    def validate_amount_total(self, value):
        if value is not None and value < Decimal('0'):
            raise serializers.ValidationError('Amount must be zero or greater.')
        return value

    def validate(self, attrs):
        contract = attrs.get('contract') or (self.instance.contract if self.instance else None)
        contract_changed = 'contract' in attrs and (not self.instance or self.instance.contract_id != contract.id)
        if contract_changed and contract.status != 'active':
            raise serializers.ValidationError({'contract': 'Invoices can only be issued on active contracts.'})

        if not self.instance:
            today = timezone.localdate()
            attrs.setdefault('issue_date', today)
            attrs.setdefault('due_date', add_months(attrs['issue_date'], 1))
            if attrs.get('amount_total') is None:
                attrs['amount_total'] = contract.rent_amount
            attrs.setdefault('currency', contract.currency)
            if not (attrs.get('description') or '').strip():
                attrs['description'] = f"Rent - {contract.label}"
            if not attrs.get('invoice_number'):
                attrs['invoice_number'] = generate_invoice_number(today)
        elif 'invoice_number' in attrs and not attrs['invoice_number']:
            attrs.pop('invoice_number')

        if contract_changed:
            attrs['tenant'] = contract.tenant
            attrs['shop'] = contract.shop

        issue_date = attrs.get('issue_date', self.instance.issue_date if self.instance else None)
        due_date = attrs.get('due_date', self.instance.due_date if self.instance else None)
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({'due_date': 'Due date must be on or after the issue date.'})
        return attrs


class InvoiceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Invoice.STATUS_CHOICES)


class PaymentSerializer(serializers.ModelSerializer):
    paid_at = serializers.DateField(required=False)
    method_label = serializers.CharField(source='get_method_display', read_only=True)
    invoice_detail = serializers.SerializerMethodField()
    tenant_detail = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = ['id', 'invoice', 'invoice_detail', 'tenant_detail', 'amount', 'currency', 'method',
                  'method_label', 'paid_at', 'reference', 'notes', 'created_by', 'created_at']
        read_only_fields = ['currency', 'created_by', 'created_at']

    def get_invoice_detail(self, obj):
        return {
            'id': obj.invoice_id,
            'invoice_number': obj.invoice.invoice_number,
            'status': obj.invoice.status,
            'amount_total': str(obj.invoice.amount_total),
        }

    def get_tenant_detail(self, obj):
        tenant = obj.invoice.tenant
        return {'id': tenant.id, 'company_name': tenant.company_name, 'contact_name': tenant.contact_name}

    def validate_amount(self, value):
        if value is None or value <= Decimal('0'):
            raise serializers.ValidationError('Payment amount must be greater than zero.')
        return value


class InvoicePaymentSerializer(PaymentSerializer):
    """Payment posted on /invoices/<id>/payments/, the invoice comes from the URL"""

    class Meta(PaymentSerializer.Meta):
        read_only_fields = ['invoice', 'currency', 'created_by', 'created_at']
