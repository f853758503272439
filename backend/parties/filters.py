import django_filters
from django.db.models import Q

from .models import Tenant


class TenantFilter(django_filters.FilterSet):
    """Search tenants by company, contact, email or phone; filter by status"""
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(
        method='filter_status',
        choices=[('all', 'All'), ('active', 'Active'), ('inactive', 'Inactive')],
    )

    class Meta:
        model = Tenant
        fields = ['business_type']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(company_name__icontains=value) |
            Q(contact_name__icontains=value) |
            Q(email__icontains=value) |
            Q(phone__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        if value == 'active':
            return queryset.filter(active=True)
        if value == 'inactive':
            return queryset.filter(active=False)
        return queryset
