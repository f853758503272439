from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from decimal import Decimal
from backend.core.models import User
from backend.parties.models import Tenant
from backend.shops.models import Shop


CURRENCY_CHOICES = [
    ('EUR', 'EUR'),
    ('USD', 'USD'),
    ('XAF', 'XAF'),
    ('MAD', 'MAD'),
]


class Contract(models.Model):
    """Leases binding a tenant to a shop"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('active', 'Active'),
        ('terminated', 'Terminated'),
        ('expired', 'Expired'),
    ]

    CONTRACT_TYPE_CHOICES = [
        ('commercial', 'Commercial'),
        ('residential', 'Residential'),
        ('other', 'Other'),
    ]

    shop = models.ForeignKey(Shop, on_delete=models.PROTECT, related_name='contracts')
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name='contracts')
    title = models.CharField(max_length=200, blank=True)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    rent_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='EUR')
    deposit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    charges = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_day = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1), MaxValueValidator(28)])
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    auto_renewal = models.BooleanField(default=False)
    contract_type = models.CharField(max_length=20, choices=CONTRACT_TYPE_CHOICES, default='commercial')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='contracts')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.label

    @property
    def label(self):
        """Contract label used in invoice descriptions and select lists"""
        shop_label = self.shop.shop_number or self.shop.name or 'Shop'
        base = f"{self.tenant.display_name} - {shop_label}"
        title = (self.title or '').strip()
        return f"{title} - {base}" if title else base

    @property
    def monthly_amount(self):
        """Amount billed every month: rent plus service charges"""
        return (self.rent_amount or Decimal('0.00')) + (self.charges or Decimal('0.00'))

    class Meta:
        db_table = 'contracts'
        ordering = ['-start_date', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_contract_status'),
            models.Index(fields=['end_date'], name='idx_contract_end_date'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['shop'],
                condition=models.Q(status='active'),
                name='unique_active_contract_per_shop',
            ),
        ]
