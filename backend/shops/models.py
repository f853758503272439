from django.db import models
from decimal import Decimal
from backend.core.models import User


class Shop(models.Model):
    """Rentable units of the managed property"""
    STATUS_CHOICES = [
        ('vacant', 'Vacant'),
        ('occupied', 'Occupied'),
        ('under_renovation', 'Under Renovation'),
    ]

    shop_number = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='vacant')
    surface_area = models.DecimalField(max_digits=10, decimal_places=2, help_text='Surface in square meters')
    floor = models.CharField(max_length=50)
    location = models.CharField(max_length=200)
    activity_category = models.CharField(max_length=200, blank=True)
    monthly_rent = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='shops')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.label

    @property
    def label(self):
        """Shop label, e.g. 'A-12 - Bakery (Floor 1, North wing)'"""
        number = (self.shop_number or '').strip()
        name = (self.name or '').strip()
        place_parts = []
        if self.floor not in (None, ''):
            place_parts.append(f"Floor {self.floor}")
        if self.location:
            place_parts.append(self.location.strip())
        place = f" ({', '.join(place_parts)})" if place_parts else ''

        if number and name:
            return f"{number} - {name}{place}"
        if number:
            return f"{number}{place}"
        if name:
            return f"{name}{place}"
        return f"Shop {self.pk}"

    @property
    def active_contract(self):
        return self.contracts.filter(status='active').select_related('tenant').first()

    @property
    def rent_or_zero(self):
        return self.monthly_rent or Decimal('0.00')

    class Meta:
        db_table = 'shops'
        ordering = ['shop_number']
        indexes = [
            models.Index(fields=['status'], name='idx_shop_status'),
        ]
