import logging
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.db.models import Sum, Count
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal

from backend.billing.models import Invoice
from backend.contracts.models import Contract
from backend.core.model_cache import get_cached_dashboard, cache_dashboard
from backend.parties.models import Tenant
from backend.shops.models import Shop

logger = logging.getLogger('backend.reports')


def _contract_row(contract):
    return {
        'id': contract.id,
        'label': contract.label,
        'tenant': contract.tenant.company_name,
        'shop': contract.shop.shop_number,
        'start_date': contract.start_date.isoformat(),
        'end_date': contract.end_date.isoformat() if contract.end_date else None,
        'rent_amount': str(contract.rent_amount),
        'currency': contract.currency,
        'status': contract.status,
    }


def build_dashboard(today=None):
    """Occupancy, revenue and follow-up lists shown on the console home page"""
    today = today or timezone.localdate()

    status_counts = {key: 0 for key, _ in Shop.STATUS_CHOICES}
    for row in Shop.objects.order_by().values('status').annotate(count=Count('id')):
        status_counts[row['status']] = row['count']
    total_shops = sum(status_counts.values())
    occupancy_rate = round(status_counts['occupied'] * 100 / total_shops, 1) if total_shops else 0

    active_contracts = Contract.objects.filter(status='active')
    revenue_by_currency = {
        row['currency']: str(row['total'] or Decimal('0.00'))
        for row in active_contracts.order_by().values('currency').annotate(total=Sum('rent_amount')).order_by('currency')
    }
    monthly_revenue = active_contracts.aggregate(total=Sum('rent_amount'))['total'] or Decimal('0.00')

    expiring = active_contracts.filter(
        end_date__gte=today,
        end_date__lte=today + timedelta(days=settings.EXPIRING_CONTRACT_DAYS),
    ).select_related('tenant', 'shop').order_by('end_date')[:5]

    overdue = Invoice.objects.filter(status='overdue').select_related('tenant', 'shop').order_by('due_date')
    recent = Contract.objects.select_related('tenant', 'shop').order_by('-created_at', '-id')[:5]

    return {
        'shops': {
            'total': total_shops,
            'vacant': status_counts['vacant'],
            'occupied': status_counts['occupied'],
            'under_renovation': status_counts['under_renovation'],
            'occupancy_rate': occupancy_rate,
        },
        'active_tenants': Tenant.objects.filter(active=True).count(),
        'active_contracts': active_contracts.count(),
        'monthly_revenue': str(monthly_revenue),
        'monthly_revenue_by_currency': revenue_by_currency,
        'overdue_invoices_count': overdue.count(),
        'expiring_contracts': [_contract_row(c) for c in expiring],
        'overdue_invoices': [
            {
                'id': invoice.id,
                'invoice_number': invoice.invoice_number,
                'tenant': invoice.tenant.company_name,
                'shop': invoice.shop.shop_number,
                'due_date': invoice.due_date.isoformat(),
                'amount_total': str(invoice.amount_total),
                'currency': invoice.currency,
            }
            for invoice in overdue[:5]
        ],
        'recent_contracts': [_contract_row(c) for c in recent],
        'generated_at': timezone.now().isoformat(),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard statistics (cached, refreshed when lease data changes)"""
    cached_data = get_cached_dashboard()
    if cached_data is not None:
        return Response(cached_data)

    data = build_dashboard()
    cache_dashboard(data)
    logger.debug(f"Dashboard built for {request.user.username}")
    return Response(data)
