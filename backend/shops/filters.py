import django_filters
from django.db.models import Q

from .models import Shop


class ShopFilter(django_filters.FilterSet):
    """Search shops by number or name; filter by status"""
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Shop.STATUS_CHOICES)
    floor = django_filters.CharFilter(field_name='floor', lookup_expr='iexact')

    class Meta:
        model = Shop
        fields = ['status', 'floor']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(shop_number__icontains=value) |
            Q(name__icontains=value) |
            Q(location__icontains=value) |
            Q(activity_category__icontains=value)
        )
