"""
Test suite for Billing module
Tests: Invoice CRUD, payments and invoice status, reminders, monthly invoices
"""
from datetime import date, timedelta
from decimal import Decimal
from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import serializers, status

from backend.core.models import ActivityLog, Notification
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Invoice, Payment
from .services import (
    delete_payment, generate_monthly_invoices, mark_overdue_invoices, record_payment,
    refresh_invoice_status, send_payment_reminders
)


class PaymentServiceTests(TestCase):
    def setUp(self):
        self.invoice = TestDataFactory.create_invoice(
            amount_total=Decimal('1000.00'), issue_date=date(2026, 3, 1), due_date=date(2026, 3, 31)
        )

    def test_partial_then_paid(self):
        record_payment(self.invoice, Decimal('400.00'), paid_at=date(2026, 3, 10), today=date(2026, 3, 10))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, 'partial')
        self.assertEqual(self.invoice.balance_due, Decimal('600.00'))

        record_payment(self.invoice, Decimal('600.00'), paid_at=date(2026, 3, 20), today=date(2026, 3, 20))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, 'paid')
        self.assertEqual(self.invoice.balance_due, Decimal('0.00'))

    def test_payment_takes_invoice_currency(self):
        invoice = TestDataFactory.create_invoice(currency='XAF')
        payment = record_payment(invoice, Decimal('5000'))
        self.assertEqual(payment.currency, 'XAF')

    def test_partial_payment_keeps_invoice_overdue(self):
        self.invoice.status = 'overdue'
        self.invoice.save()
        record_payment(self.invoice, Decimal('100.00'), today=date(2026, 4, 10))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, 'overdue')
        self.assertEqual(self.invoice.balance_due, Decimal('900.00'))

    def test_partial_payment_before_due_date(self):
        record_payment(self.invoice, Decimal('100.00'), today=date(2026, 3, 31))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, 'partial')

    def test_full_payment_closes_overdue_invoice(self):
        self.invoice.status = 'overdue'
        self.invoice.save()
        record_payment(self.invoice, Decimal('1000.00'), today=date(2026, 4, 10))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, 'paid')

    def test_closed_invoice_refuses_payment(self):
        for closed in ['paid', 'cancelled']:
            self.invoice.status = closed
            self.invoice.save()
            with self.assertRaises(serializers.ValidationError):
                record_payment(self.invoice, Decimal('10.00'))
        self.assertEqual(Payment.objects.count(), 0)

    def test_non_positive_amount_refused(self):
        with self.assertRaises(serializers.ValidationError):
            record_payment(self.invoice, Decimal('0.00'))

    def test_delete_payment_recomputes_status(self):
        payment = record_payment(self.invoice, Decimal('1000.00'))
        invoice = delete_payment(payment, today=date(2026, 3, 15))
        self.assertEqual(invoice.status, 'unpaid')

        payment = record_payment(self.invoice, Decimal('1000.00'))
        invoice = delete_payment(payment, today=date(2026, 4, 15))
        self.assertEqual(invoice.status, 'overdue')

    def test_refresh_keeps_cancelled(self):
        self.invoice.status = 'cancelled'
        self.invoice.save()
        self.assertEqual(refresh_invoice_status(self.invoice, today=date(2026, 5, 1)), 'cancelled')


class ScheduledBillingTests(TestCase):
    """Overdue marking, reminders and monthly invoice generation"""

    def test_mark_overdue(self):
        today = date(2026, 4, 10)
        late = TestDataFactory.create_invoice(issue_date=date(2026, 3, 1), due_date=date(2026, 3, 31))
        late_partial = TestDataFactory.create_invoice(
            status='partial', issue_date=date(2026, 3, 1), due_date=date(2026, 4, 9)
        )
        on_time = TestDataFactory.create_invoice(issue_date=date(2026, 4, 1), due_date=date(2026, 4, 30))
        paid = TestDataFactory.create_invoice(status='paid', issue_date=date(2026, 2, 1), due_date=date(2026, 2, 28))

        self.assertEqual(mark_overdue_invoices(today), 2)
        for invoice, expected in [(late, 'overdue'), (late_partial, 'overdue'), (on_time, 'unpaid'), (paid, 'paid')]:
            invoice.refresh_from_db()
            self.assertEqual(invoice.status, expected)

    def test_payment_reminders(self):
        today = date(2026, 4, 10)
        admin = TestDataFactory.create_user(role='admin')
        accountant = TestDataFactory.create_user(role='accountant')
        TestDataFactory.create_user(role='manager')
        TestDataFactory.create_user(role='admin', is_active=False)

        due_soon = TestDataFactory.create_invoice(issue_date=date(2026, 4, 1), due_date=date(2026, 4, 12))
        TestDataFactory.create_invoice(issue_date=date(2026, 4, 1), due_date=date(2026, 4, 30))
        TestDataFactory.create_invoice(status='paid', issue_date=date(2026, 4, 1), due_date=date(2026, 4, 11))

        self.assertEqual(send_payment_reminders(today), 1)

        notifications = Notification.objects.filter(type='reminder')
        self.assertEqual(set(notifications.values_list('user_id', flat=True)), {admin.id, accountant.id})
        self.assertEqual(notifications.first().action_url, f'/invoices/{due_soon.id}')
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [due_soon.tenant.email])

        due_soon.refresh_from_db()
        self.assertEqual(due_soon.last_reminder_on, today)

        # Once per day
        self.assertEqual(send_payment_reminders(today), 0)
        self.assertEqual(send_payment_reminders(date(2026, 4, 11)), 1)

    def test_generate_monthly_invoices(self):
        today = date(2026, 3, 1)
        contract = TestDataFactory.create_contract(
            start_date=date(2026, 1, 1), end_date=date(2026, 12, 31),
            rent_amount=Decimal('900.00'), charges=Decimal('100.00'), payment_day=5,
        )
        TestDataFactory.create_contract(status='terminated', start_date=date(2026, 1, 1))
        TestDataFactory.create_contract(start_date=date(2026, 4, 1), end_date=date(2027, 3, 31))
        TestDataFactory.create_contract(start_date=date(2025, 1, 1), end_date=date(2026, 2, 28))

        self.assertEqual(generate_monthly_invoices(today), 1)
        invoice = Invoice.objects.get()
        self.assertEqual(invoice.contract, contract)
        self.assertEqual(invoice.amount_total, Decimal('1000.00'))
        self.assertEqual(invoice.issue_date, today)
        self.assertEqual(invoice.due_date, date(2026, 3, 5))
        self.assertEqual(invoice.period_start, date(2026, 3, 1))
        self.assertEqual(invoice.period_end, date(2026, 3, 31))
        self.assertTrue(invoice.description.startswith('Rent 03/2026 - '))
        self.assertTrue(invoice.invoice_number.startswith('FAC-20260301-'))

        # Already billed this month
        self.assertEqual(generate_monthly_invoices(date(2026, 3, 15)), 0)

    def test_due_date_not_before_issue(self):
        TestDataFactory.create_contract(start_date=date(2026, 1, 1), end_date=date(2026, 12, 31), payment_day=5)
        generate_monthly_invoices(date(2026, 3, 20))
        self.assertEqual(Invoice.objects.get().due_date, date(2026, 3, 20))


class InvoiceTests(TestCase):
    """Test invoice endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='accountant')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.contract = TestDataFactory.create_contract(rent_amount=Decimal('750.00'), currency='USD')

    def test_create_invoice_with_defaults(self):
        response = self.client.post('/api/v1/invoices/', {'contract': self.contract.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        invoice = Invoice.objects.get()
        self.assertEqual(invoice.amount_total, Decimal('750.00'))
        self.assertEqual(invoice.currency, 'USD')
        self.assertEqual(invoice.tenant, self.contract.tenant)
        self.assertEqual(invoice.shop, self.contract.shop)
        self.assertEqual(invoice.status, 'unpaid')
        self.assertTrue(invoice.invoice_number.startswith('FAC-'))
        self.assertGreater(invoice.due_date, invoice.issue_date)
        self.assertEqual(response.data['balance_due'], '750.00')
        self.assertTrue(ActivityLog.objects.filter(action='create', entity='invoice').exists())

    def test_create_invoice_explicit_values(self):
        response = self.client.post('/api/v1/invoices/', {
            'contract': self.contract.id,
            'invoice_number': 'INV-001',
            'issue_date': '2026-05-01',
            'due_date': '2026-05-15',
            'amount_total': '300.00',
            'description': 'Repairs',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['invoice_number'], 'INV-001')
        self.assertEqual(response.data['description'], 'Repairs')

    def test_duplicate_invoice_number(self):
        TestDataFactory.create_invoice(contract=self.contract, invoice_number='INV-001')
        response = self.client.post('/api/v1/invoices/', {
            'contract': self.contract.id,
            'invoice_number': 'INV-001',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('invoice_number', response.data)

    def test_due_before_issue_rejected(self):
        response = self.client.post('/api/v1/invoices/', {
            'contract': self.contract.id,
            'issue_date': '2026-05-10',
            'due_date': '2026-05-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_date', response.data)

    def test_inactive_contract_rejected(self):
        contract = TestDataFactory.create_contract(status='terminated')
        response = self.client.post('/api/v1/invoices/', {'contract': contract.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('contract', response.data)

    def test_list_is_paginated_and_filtered(self):
        TestDataFactory.create_invoice(contract=self.contract, issue_date=date(2026, 1, 1), due_date=date(2026, 1, 31))
        TestDataFactory.create_invoice(contract=self.contract, status='paid', issue_date=date(2026, 2, 1), due_date=date(2026, 2, 28))
        TestDataFactory.create_invoice(contract=self.contract, status='cancelled', issue_date=date(2026, 3, 1), due_date=date(2026, 3, 31))

        response = self.client.get('/api/v1/invoices/?limit=2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['next'], 2)

        response = self.client.get('/api/v1/invoices/?outstanding=true')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/invoices/?date_from=2026-02-01&date_to=2026-02-28')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['status'], 'paid')

    def test_amount_paid_in_list(self):
        invoice = TestDataFactory.create_invoice(contract=self.contract, amount_total=Decimal('750.00'))
        TestDataFactory.create_payment(invoice, amount=Decimal('250.00'))
        response = self.client.get('/api/v1/invoices/')
        row = response.data['results'][0]
        self.assertEqual(Decimal(row['amount_paid']), Decimal('250.00'))
        self.assertEqual(Decimal(row['balance_due']), Decimal('500.00'))

    def test_cancel_invoice(self):
        invoice = TestDataFactory.create_invoice(contract=self.contract)
        response = self.client.patch(f'/api/v1/invoices/{invoice.id}/status/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, 'cancelled')

    def test_invalid_status(self):
        invoice = TestDataFactory.create_invoice(contract=self.contract)
        response = self.client.patch(f'/api/v1/invoices/{invoice.id}/status/', {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_invoice_removes_payments(self):
        invoice = TestDataFactory.create_invoice(contract=self.contract)
        TestDataFactory.create_payment(invoice)
        response = self.client.delete(f'/api/v1/invoices/{invoice.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(Payment.objects.count(), 0)

    def test_user_without_role_cannot_write(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=None))
        response = self.client.post('/api/v1/invoices/', {'contract': self.contract.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PaymentTests(TestCase):
    """Test payment endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='accountant')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.invoice = TestDataFactory.create_invoice(amount_total=Decimal('1000.00'))

    def test_add_payment_on_invoice(self):
        response = self.client.post(f'/api/v1/invoices/{self.invoice.id}/payments/', {
            'amount': '400.00',
            'method': 'cash',
            'reference': 'R-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['invoice'], self.invoice.id)
        self.assertEqual(response.data['invoice_detail']['status'], 'partial')
        self.assertEqual(response.data['method_label'], 'Cash')
        self.assertTrue(ActivityLog.objects.filter(action='payment_add', entity='payment').exists())

        response = self.client.get(f'/api/v1/invoices/{self.invoice.id}/payments/')
        self.assertEqual(len(response.data), 1)

    def test_record_payment_full_amount(self):
        response = self.client.post('/api/v1/payments/', {
            'invoice': self.invoice.id,
            'amount': '1000.00',
            'paid_at': '2026-03-05',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, 'paid')

    def test_partial_payment_on_past_due_invoice(self):
        today = timezone.localdate()
        invoice = TestDataFactory.create_invoice(
            status='overdue', issue_date=today - timedelta(days=40), due_date=today - timedelta(days=10)
        )
        response = self.client.post('/api/v1/payments/', {'invoice': invoice.id, 'amount': '100.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['invoice_detail']['status'], 'overdue')

    def test_payment_on_paid_invoice_refused(self):
        self.invoice.status = 'paid'
        self.invoice.save()
        response = self.client.post('/api/v1/payments/', {'invoice': self.invoice.id, 'amount': '10.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_zero_amount_refused(self):
        response = self.client.post('/api/v1/payments/', {'invoice': self.invoice.id, 'amount': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)

    def test_search_payments(self):
        TestDataFactory.create_payment(self.invoice, amount=Decimal('123.45'), method='bank_transfer', reference='WIRE-9')
        TestDataFactory.create_payment(self.invoice, amount=Decimal('50.00'), method='cash')

        response = self.client.get('/api/v1/payments/?search=wire-9')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/payments/?search=bank')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/payments/?search=123,45')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/payments/?method=cash')
        self.assertEqual(response.data['results'][0]['amount'], '50.00')

    def test_delete_payment(self):
        payment = record_payment(self.invoice, Decimal('1000.00'))
        response = self.client.delete(f'/api/v1/payments/{payment.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.invoice.refresh_from_db()
        self.assertIn(self.invoice.status, ['unpaid', 'overdue'])
        self.assertTrue(ActivityLog.objects.filter(action='delete', entity='payment').exists())

    def test_summary_by_currency(self):
        xaf_invoice = TestDataFactory.create_invoice(currency='XAF', amount_total=Decimal('100000'))
        TestDataFactory.create_payment(self.invoice, amount=Decimal('100.00'))
        TestDataFactory.create_payment(self.invoice, amount=Decimal('50.00'))
        TestDataFactory.create_payment(xaf_invoice, amount=Decimal('25000.00'))

        response = self.client.get('/api/v1/payments/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['transactions'], 3)
        self.assertEqual(response.data['totals'], [
            {'currency': 'EUR', 'total': '150.00', 'count': 2},
            {'currency': 'XAF', 'total': '25000.00', 'count': 1},
        ])
