"""Utility functions for activity logging, pagination and money formatting"""
import logging
from decimal import Decimal, InvalidOperation

from django.core.paginator import Paginator
from rest_framework.response import Response

from .models import ActivityLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def log_activity(request=None, action=None, entity=None, entity_id=None,
                 details=None, actor=None, entity_label=None):
    """
    Create an activity log entry

    Args:
        request: Django request object (for actor and IP) - optional if actor is provided
        action: Action type (create, update, delete, payment_add, ...)
        entity: Entity type (shop, tenant, contract, invoice, payment, user, system)
        entity_id: ID of the object (as string)
        details: Dictionary describing the change
        actor: Optional user override (defaults to request.user if request provided)
        entity_label: Human-readable label of the object (e.g., shop number, invoice number)
    """
    try:
        log_actor = None
        if actor:
            log_actor = actor
        elif request and hasattr(request, 'user'):
            log_actor = request.user

        if not action or not entity:
            logger.warning(f"Activity log skipped: missing required fields (action={action}, entity={entity})")
            return None

        return ActivityLog.objects.create(
            actor=log_actor if log_actor and log_actor.is_authenticated else None,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else '',
            entity_label=entity_label,
            details=details or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Don't fail the main operation if activity logging fails
        logger.error(f"Failed to create activity log: {str(e)}")
        return None


def paginated_response(request, queryset, serializer_class, default_limit=50, context=None):
    """Serialize one page of a queryset using page/limit query params"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(request.query_params.get('limit', default_limit)), 1), 500)
    except (TypeError, ValueError):
        limit = default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def format_money(amount, currency='EUR'):
    """
    Format an amount for display in notifications and e-mails.

    XAF amounts are shown without decimals as FCFA; other currencies
    use two decimals followed by the currency code.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        return '-'

    currency = currency or 'EUR'
    if currency == 'XAF':
        return f"{value.quantize(Decimal('1')):,} FCFA".replace(',', ' ')
    return f"{value.quantize(Decimal('0.01')):,} {currency}".replace(',', ' ')


def error_message(exc):
    """First message of a DRF ValidationError, for `{'error': ...}` responses"""
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, dict):
        detail = next(iter(detail.values()), '')
    if isinstance(detail, list):
        detail = detail[0] if detail else ''
    return str(detail if detail is not None else exc)
