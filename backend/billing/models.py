from django.db import models
from django.db.models import Sum
from decimal import Decimal
from backend.contracts.models import Contract, CURRENCY_CHOICES
from backend.core.models import User
from backend.parties.models import Tenant
from backend.shops.models import Shop


class Invoice(models.Model):
    """Rent invoices issued against a contract"""
    STATUS_CHOICES = [
        ('unpaid', 'Unpaid'),
        ('partial', 'Partially Paid'),
        ('paid', 'Paid'),
        ('overdue', 'Overdue'),
        ('cancelled', 'Cancelled'),
    ]
    OUTSTANDING_STATUSES = ['unpaid', 'partial', 'overdue']
    CLOSED_STATUSES = ['paid', 'cancelled']

    invoice_number = models.CharField(max_length=100, unique=True)
    contract = models.ForeignKey(Contract, on_delete=models.PROTECT, related_name='invoices')
    # Copied from the contract so lists can filter and join without it
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name='invoices')
    shop = models.ForeignKey(Shop, on_delete=models.PROTECT, related_name='invoices')
    issue_date = models.DateField()
    due_date = models.DateField()
    amount_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='EUR')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='unpaid')
    description = models.TextField(blank=True)
    period_start = models.DateField(null=True, blank=True, help_text='First day of the billed month (monthly generation)')
    period_end = models.DateField(null=True, blank=True)
    last_reminder_on = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='invoices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.invoice_number

    @property
    def amount_paid(self):
        return self.payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    @property
    def balance_due(self):
        return self.amount_total - self.amount_paid

    class Meta:
        db_table = 'invoices'
        ordering = ['-issue_date', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_invoice_status'),
            models.Index(fields=['due_date'], name='idx_invoice_due_date'),
            models.Index(fields=['contract', 'period_start'], name='idx_invoice_contract_period'),
        ]


class Payment(models.Model):
    """Payments recorded against invoices"""
    METHOD_CHOICES = [
        ('bank_transfer', 'Bank Transfer'),
        ('cash', 'Cash'),
        ('check', 'Check'),
        ('card', 'Card'),
        ('other', 'Other'),
    ]

    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='EUR')
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='bank_transfer')
    paid_at = models.DateField()
    reference = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.invoice.invoice_number} - {self.amount} {self.currency}"

    class Meta:
        db_table = 'payments'
        ordering = ['-paid_at', '-id']
