import logging
from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Sum
from django.shortcuts import get_object_or_404

from backend.core.permissions import can_manage
from backend.core.utils import log_activity, paginated_response, error_message
from .filters import InvoiceFilter, PaymentFilter
from .models import Invoice, Payment
from .serializers import InvoiceSerializer, InvoiceStatusSerializer, PaymentSerializer, InvoicePaymentSerializer
from .services import record_payment, delete_payment

logger = logging.getLogger('backend.billing')


def invoice_queryset():
    return Invoice.objects.select_related('tenant', 'shop', 'contract', 'contract__tenant', 'contract__shop').annotate(
        paid_total=Sum('payments__amount')
    )


def payment_queryset():
    return Payment.objects.select_related('invoice', 'invoice__tenant')


def _forbidden(request, what):
    logger.warning(f"User {request.user.username} attempted to {what} without a managing role")
    return Response({'error': 'You do not have permission to manage billing'}, status=status.HTTP_403_FORBIDDEN)


def _create_payment(request, invoice, serializer):
    """Shared by POST /payments/ and POST /invoices/<id>/payments/"""
    data = serializer.validated_data
    old_status = invoice.status
    try:
        payment = record_payment(
            invoice,
            amount=data['amount'],
            method=data.get('method', 'bank_transfer'),
            paid_at=data.get('paid_at'),
            reference=data.get('reference', ''),
            notes=data.get('notes', ''),
            user=request.user,
        )
    except serializers.ValidationError as e:
        logger.warning(f"Payment refused on invoice {invoice.invoice_number}: {e.detail}")
        return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)

    payment.invoice.refresh_from_db()
    log_activity(
        request=request,
        action='payment_add',
        entity='payment',
        entity_id=payment.id,
        entity_label=payment.invoice.invoice_number,
        details={
            'invoice_id': payment.invoice_id,
            'amount': str(payment.amount),
            'currency': payment.currency,
            'method': payment.method,
            'invoice_status': {'old': old_status, 'new': payment.invoice.status},
        }
    )
    return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


# Invoice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_list_create(request):
    """List invoices (paginated) or create an invoice"""
    if request.method == 'GET':
        invoice_filter = InvoiceFilter(request.query_params, queryset=invoice_queryset())
        if not invoice_filter.is_valid():
            return Response(invoice_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = invoice_filter.qs.order_by('-issue_date', '-id')
        return paginated_response(request, queryset, InvoiceSerializer)

    if not can_manage(request.user):
        return _forbidden(request, 'create an invoice')

    serializer = InvoiceSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Invoice creation validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    invoice = serializer.save(created_by=request.user)
    log_activity(
        request=request,
        action='create',
        entity='invoice',
        entity_id=invoice.id,
        entity_label=invoice.invoice_number,
        details={
            'invoice_number': invoice.invoice_number,
            'contract_id': invoice.contract_id,
            'amount_total': str(invoice.amount_total),
            'currency': invoice.currency,
            'due_date': str(invoice.due_date),
        }
    )
    logger.info(f"Invoice {invoice.invoice_number} created by {request.user.username}")
    return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def invoice_detail(request, pk):
    """Retrieve, update or delete an invoice"""
    invoice = get_object_or_404(invoice_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(InvoiceSerializer(invoice).data)

    if not can_manage(request.user):
        return _forbidden(request, f'modify invoice {pk}')

    if request.method == 'DELETE':
        number = invoice.invoice_number
        invoice.delete()
        log_activity(request=request, action='delete', entity='invoice', entity_id=pk, entity_label=number)
        logger.info(f"Invoice {number} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_status = invoice.status
    serializer = InvoiceSerializer(invoice, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        logger.warning(f"Invoice update validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    invoice = serializer.save()
    log_activity(
        request=request,
        action='status_change' if old_status != invoice.status else 'update',
        entity='invoice',
        entity_id=invoice.id,
        entity_label=invoice.invoice_number,
        details={'fields': sorted(request.data.keys()), 'status': {'old': old_status, 'new': invoice.status}}
    )
    return Response(InvoiceSerializer(invoice_queryset().get(pk=invoice.pk)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def invoice_status_update(request, pk):
    """Change an invoice status (e.g. cancel it)"""
    invoice = get_object_or_404(invoice_queryset(), pk=pk)
    if not can_manage(request.user):
        return _forbidden(request, f'change status of invoice {pk}')

    serializer = InvoiceStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = invoice.status
    invoice.status = serializer.validated_data['status']
    invoice.save(update_fields=['status', 'updated_at'])
    log_activity(
        request=request,
        action='status_change',
        entity='invoice',
        entity_id=invoice.id,
        entity_label=invoice.invoice_number,
        details={'status': {'old': old_status, 'new': invoice.status}}
    )
    logger.info(f"Invoice {invoice.invoice_number} status {old_status} -> {invoice.status}")
    return Response(InvoiceSerializer(invoice).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_payments(request, pk):
    """List the payments of an invoice or add a payment to it"""
    invoice = get_object_or_404(Invoice, pk=pk)

    if request.method == 'GET':
        payments = payment_queryset().filter(invoice=invoice)
        return Response(PaymentSerializer(payments, many=True).data)

    if not can_manage(request.user):
        return _forbidden(request, f'add a payment to invoice {pk}')

    serializer = InvoicePaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return _create_payment(request, invoice, serializer)


# Payment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_list_create(request):
    """List payments (paginated) or record a payment"""
    if request.method == 'GET':
        payment_filter = PaymentFilter(request.query_params, queryset=payment_queryset())
        if not payment_filter.is_valid():
            return Response(payment_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = payment_filter.qs.order_by('-paid_at', '-id')
        return paginated_response(request, queryset, PaymentSerializer)

    if not can_manage(request.user):
        return _forbidden(request, 'record a payment')

    serializer = PaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return _create_payment(request, serializer.validated_data['invoice'], serializer)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def payment_detail(request, pk):
    """Retrieve or delete a payment; deleting recomputes the invoice status"""
    payment = get_object_or_404(payment_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(PaymentSerializer(payment).data)

    if not can_manage(request.user):
        return _forbidden(request, f'delete payment {pk}')

    old_status = payment.invoice.status
    details = {
        'invoice_id': payment.invoice_id,
        'amount': str(payment.amount),
        'currency': payment.currency,
    }
    with transaction.atomic():
        invoice = delete_payment(payment)
    details['invoice_status'] = {'old': old_status, 'new': invoice.status}
    log_activity(
        request=request,
        action='delete',
        entity='payment',
        entity_id=pk,
        entity_label=invoice.invoice_number,
        details=details
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_summary(request):
    """Totals of the filtered payments grouped by currency"""
    payment_filter = PaymentFilter(request.query_params, queryset=Payment.objects.all())
    if not payment_filter.is_valid():
        return Response(payment_filter.errors, status=status.HTTP_400_BAD_REQUEST)

    queryset = payment_filter.qs
    totals = (
        queryset.order_by()
        .values('currency')
        .annotate(total=Sum('amount'), count=Count('id'))
        .order_by('currency')
    )
    return Response({
        'totals': [
            {'currency': row['currency'], 'total': str(row['total']), 'count': row['count']}
            for row in totals
        ],
        'transactions': queryset.count(),
    })
