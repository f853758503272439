from django.db import models
from backend.core.models import User


class Tenant(models.Model):
    """Companies renting one or more shops"""
    company_name = models.CharField(max_length=200)
    contact_name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30)
    address = models.TextField(blank=True)
    tax_id = models.CharField(max_length=100, blank=True)
    registration_number = models.CharField(max_length=100, blank=True)
    business_type = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    active = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='tenants')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        """Company name followed by the contact, e.g. 'Acme SARL (Jane Doe)'"""
        company = (self.company_name or '').strip() or 'Tenant'
        contact = (self.contact_name or '').strip()
        return f"{company} ({contact})" if contact else company

    class Meta:
        db_table = 'tenants'
        ordering = ['company_name']
