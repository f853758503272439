import django_filters
from decimal import Decimal, InvalidOperation
from django.db.models import Q

from .models import Invoice, Payment


class InvoiceFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Invoice.STATUS_CHOICES)
    date_from = django_filters.DateFilter(field_name='issue_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='issue_date', lookup_expr='lte')
    outstanding = django_filters.BooleanFilter(method='filter_outstanding')

    class Meta:
        model = Invoice
        fields = ['status', 'tenant', 'shop', 'contract', 'currency']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(invoice_number__icontains=value) |
            Q(tenant__company_name__icontains=value) |
            Q(tenant__contact_name__icontains=value) |
            Q(shop__shop_number__icontains=value) |
            Q(shop__name__icontains=value)
        )

    def filter_outstanding(self, queryset, name, value):
        if value:
            return queryset.filter(status__in=Invoice.OUTSTANDING_STATUSES)
        return queryset


class PaymentFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    method = django_filters.ChoiceFilter(choices=Payment.METHOD_CHOICES)
    date_from = django_filters.DateFilter(field_name='paid_at', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='paid_at', lookup_expr='lte')

    class Meta:
        model = Payment
        fields = ['method', 'invoice', 'currency']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset

        query = (
            Q(invoice__invoice_number__icontains=value) |
            Q(invoice__tenant__company_name__icontains=value) |
            Q(invoice__tenant__contact_name__icontains=value) |
            Q(reference__icontains=value)
        )
        # Method labels ("bank", "cash") match their stored codes
        methods = [code for code, label in Payment.METHOD_CHOICES if value.lower() in label.lower()]
        if methods:
            query |= Q(method__in=methods)
        try:
            amount = Decimal(value.replace(',', '.').replace(' ', ''))
        except InvalidOperation:
            amount = None
        if amount is not None and amount.is_finite():
            query |= Q(amount=amount)
        return queryset.filter(query)
