"""
Billing rules: invoice numbering, payment status, overdue marking,
payment reminders and monthly rent invoices.
"""
import calendar
import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal
from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework import serializers

from backend.contracts.models import Contract
from backend.core.models import User, Notification
from backend.core.utils import format_money
from .models import Invoice, Payment

logger = logging.getLogger('backend.billing')


def generate_invoice_number(today=None):
    """Invoice number in the form FAC-YYYYMMDD-XXXXXXXX"""
    today = today or timezone.localdate()
    while True:
        number = f"FAC-{today.strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"
        if not Invoice.objects.filter(invoice_number=number).exists():
            return number


def payment_status(invoice, paid_total, today=None):
    """Status after recording a payment: paid once the total is covered, overdue while still past due"""
    if paid_total >= invoice.amount_total:
        return 'paid'
    today = today or timezone.localdate()
    if invoice.due_date < today:
        return 'overdue'
    return 'partial'


def refresh_invoice_status(invoice, today=None):
    """
    Recompute an invoice status from its payments (after a payment is removed).

    Cancelled invoices keep their status. An invoice that is not fully
    paid and past its due date is overdue.
    """
    if invoice.status == 'cancelled':
        return invoice.status

    today = today or timezone.localdate()
    paid_total = invoice.amount_paid
    if paid_total > Decimal('0.00') and paid_total >= invoice.amount_total:
        new_status = 'paid'
    elif invoice.due_date < today:
        new_status = 'overdue'
    elif paid_total > Decimal('0.00'):
        new_status = 'partial'
    else:
        new_status = 'unpaid'

    if new_status != invoice.status:
        logger.info(f"Invoice {invoice.invoice_number} status {invoice.status} -> {new_status}")
        invoice.status = new_status
        invoice.save(update_fields=['status', 'updated_at'])
    return invoice.status


def record_payment(invoice, amount, method='bank_transfer', paid_at=None, reference='', notes='', user=None, today=None):
    """Record a payment against an open invoice and update the invoice status"""
    if amount is None or amount <= Decimal('0.00'):
        raise serializers.ValidationError('Payment amount must be greater than zero.')

    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.status in Invoice.CLOSED_STATUSES:
            raise serializers.ValidationError(f'Invoice {invoice.invoice_number} is {invoice.status} and cannot receive payments.')

        payment = Payment.objects.create(
            invoice=invoice,
            amount=amount,
            currency=invoice.currency,
            method=method,
            paid_at=paid_at or timezone.localdate(),
            reference=reference or '',
            notes=notes or '',
            created_by=user,
        )
        old_status = invoice.status
        invoice.status = payment_status(invoice, invoice.amount_paid, today=today)
        invoice.save(update_fields=['status', 'updated_at'])

    logger.info(f"Payment {payment.id} of {amount} recorded on {invoice.invoice_number} ({old_status} -> {invoice.status})")
    return payment


def delete_payment(payment, today=None):
    invoice = payment.invoice
    with transaction.atomic():
        payment.delete()
        refresh_invoice_status(invoice, today=today)
    return invoice


def mark_overdue_invoices(today=None):
    """Unpaid and partially paid invoices past their due date become overdue"""
    today = today or timezone.localdate()
    count = Invoice.objects.filter(
        status__in=['unpaid', 'partial'],
        due_date__lt=today,
    ).update(status='overdue', updated_at=timezone.now())
    logger.info(f"Marked {count} invoices overdue")
    return count


def reminder_recipients():
    """Active users who follow collections: admins and accountants"""
    return User.objects.filter(is_active=True).filter(
        Q(role__in=[User.ROLE_ADMIN, User.ROLE_ACCOUNTANT]) |
        (Q(role__isnull=True) | Q(role='')) & (Q(is_staff=True) | Q(is_superuser=True))
    )


def _reminder_text(invoice, today):
    amount = format_money(invoice.balance_due, invoice.currency)
    tenant = invoice.tenant.display_name
    if invoice.due_date < today:
        return f"Invoice {invoice.invoice_number} for {tenant} ({amount}) is overdue since {invoice.due_date:%d/%m/%Y}."
    return f"Invoice {invoice.invoice_number} for {tenant} ({amount}) is due on {invoice.due_date:%d/%m/%Y}."


def send_payment_reminders(today=None):
    """
    Remind collections staff and tenants of invoices that are due soon or overdue.

    Each invoice is reminded at most once per day. Returns the number of
    invoices reminded.
    """
    today = today or timezone.localdate()
    horizon = today + timedelta(days=settings.PAYMENT_REMINDER_DAYS)
    invoices = Invoice.objects.filter(
        status__in=Invoice.OUTSTANDING_STATUSES,
        due_date__lte=horizon,
    ).exclude(last_reminder_on=today).select_related('tenant', 'shop')

    recipients = list(reminder_recipients())
    reminded = 0
    for invoice in invoices:
        message = _reminder_text(invoice, today)
        Notification.objects.bulk_create([
            Notification(
                user=user,
                title=f"Payment reminder: {invoice.invoice_number}",
                message=message,
                type='reminder',
                action_url=f"/invoices/{invoice.id}",
            )
            for user in recipients
        ])

        if invoice.tenant.email:
            try:
                send_mail(
                    subject=f"Payment reminder - {invoice.invoice_number}",
                    message=f"Dear {invoice.tenant.contact_name},\n\n{message}\n\nThank you for settling it at your earliest convenience.",
                    from_email=settings.DEFAULT_FROM_EMAIL,
                    recipient_list=[invoice.tenant.email],
                )
            except Exception as e:
                logger.error(f"Failed to e-mail reminder for {invoice.invoice_number}: {str(e)}", exc_info=True)

        invoice.last_reminder_on = today
        invoice.save(update_fields=['last_reminder_on', 'updated_at'])
        reminded += 1

    logger.info(f"Sent payment reminders for {reminded} invoices to {len(recipients)} users")
    return reminded


def month_bounds(today):
    last_day = calendar.monthrange(today.year, today.month)[1]
    return date(today.year, today.month, 1), date(today.year, today.month, last_day)


def generate_monthly_invoices(today=None):
    """
    Issue this month's rent invoice for every active contract.

    Runs at most once per contract and month (keyed on period_start).
    The amount is rent plus charges, due on the contract's payment day
    and never before the issue date. Returns the number of invoices created.
    """
    today = today or timezone.localdate()
    period_start, period_end = month_bounds(today)

    contracts = Contract.objects.filter(
        status='active',
        start_date__lte=period_end,
    ).filter(
        Q(end_date__isnull=True) | Q(end_date__gte=period_start)
    ).select_related('tenant', 'shop')

    created = 0
    for contract in contracts:
        if Invoice.objects.filter(contract=contract, period_start=period_start).exists():
            continue
        due_date = max(date(today.year, today.month, contract.payment_day), today)
        Invoice.objects.create(
            invoice_number=generate_invoice_number(today),
            contract=contract,
            tenant=contract.tenant,
            shop=contract.shop,
            issue_date=today,
            due_date=due_date,
            amount_total=contract.monthly_amount,
            currency=contract.currency,
            status='unpaid',
            description=f"Rent {period_start.strftime('%m/%Y')} - {contract.label}",
            period_start=period_start,
            period_end=period_end,
        )
        created += 1

    logger.info(f"Generated {created} monthly invoices for {period_start.strftime('%m/%Y')}")
    return created
