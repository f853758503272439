import django_filters
from django.db.models import Q

from .models import User, ActivityLog


class UserFilter(django_filters.FilterSet):
    """Search users by name, email or role; filter by account status"""
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(
        method='filter_status',
        choices=[('all', 'All'), ('active', 'Active'), ('inactive', 'Inactive')],
    )

    class Meta:
        model = User
        fields = ['role']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(full_name__icontains=value) |
            Q(email__icontains=value) |
            Q(role__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        if value == 'active':
            return queryset.filter(is_active=True)
        if value == 'inactive':
            return queryset.filter(is_active=False)
        return queryset


class ActivityLogFilter(django_filters.FilterSet):
    """Search activity by action, actor or entity"""
    search = django_filters.CharFilter(method='filter_search')
    entity = django_filters.CharFilter(method='filter_entity')
    action = django_filters.CharFilter(field_name='action')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = ActivityLog
        fields = ['actor']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(action__icontains=value) |
            Q(entity__icontains=value) |
            Q(entity_label__icontains=value) |
            Q(actor__full_name__icontains=value) |
            Q(actor__email__icontains=value)
        )

    def filter_entity(self, queryset, name, value):
        if not value or value == 'all':
            return queryset
        return queryset.filter(entity=value)
