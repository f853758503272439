import django_filters
from datetime import timedelta
from django.db.models import Q
from django.utils import timezone

from .models import Contract


class ContractFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Contract.STATUS_CHOICES)
    expiring_within = django_filters.NumberFilter(
        method='filter_expiring_within', min_value=0, max_value=3650
    )

    class Meta:
        model = Contract
        fields = ['status', 'tenant', 'shop', 'contract_type', 'currency']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) |
            Q(tenant__company_name__icontains=value) |
            Q(tenant__contact_name__icontains=value) |
            Q(shop__shop_number__icontains=value) |
            Q(shop__name__icontains=value)
        )

    def filter_expiring_within(self, queryset, name, value):
        """Active contracts ending in the next `value` days"""
        if value is None:
            return queryset
        today = timezone.localdate()
        return queryset.filter(
            status='active',
            end_date__gte=today,
            end_date__lte=today + timedelta(days=int(value)),
        )
