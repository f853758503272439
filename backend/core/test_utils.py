"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.shops.models import Shop
from backend.parties.models import Tenant
from backend.contracts.models import Contract
from backend.contracts.services import add_months
from backend.billing.models import Invoice, Payment
from backend.billing.services import generate_invoice_number
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', role='admin', full_name=None,
                    is_staff=False, is_superuser=False, is_active=True):
        """Create a test user (admin role by default, pass role=None for a bare account)"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            full_name=full_name or email.split('@')[0],
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser,
            is_active=is_active,
        )

    @staticmethod
    def create_shop(shop_number=None, status='vacant', monthly_rent=Decimal('1000.00'), **kwargs):
        """Create a test shop"""
        if not shop_number:
            shop_number = f'S-{TestDataFactory.random_string(5).upper()}'
        defaults = {
            'name': f'Shop {shop_number}',
            'surface_area': Decimal('42.50'),
            'floor': '1',
            'location': 'North wing',
        }
        defaults.update(kwargs)
        return Shop.objects.create(shop_number=shop_number, status=status, monthly_rent=monthly_rent, **defaults)

    @staticmethod
    def create_tenant(company_name=None, active=True, **kwargs):
        """Create a test tenant"""
        if not company_name:
            company_name = f'Company {TestDataFactory.random_string(6)}'
        defaults = {
            'contact_name': 'Jane Doe',
            'email': f'{TestDataFactory.random_string(6).lower()}@tenant.com',
            'phone': '0600000000',
        }
        defaults.update(kwargs)
        return Tenant.objects.create(company_name=company_name, active=active, **defaults)

    @staticmethod
    def create_contract(shop=None, tenant=None, status='active', start_date=None, end_date=None,
                        rent_amount=Decimal('1000.00'), **kwargs):
        """Create a test contract; an active contract marks its shop occupied"""
        shop = shop or TestDataFactory.create_shop()
        tenant = tenant or TestDataFactory.create_tenant()
        start_date = start_date or timezone.localdate()
        if end_date is None:
            end_date = add_months(start_date, 12)
        contract = Contract.objects.create(
            shop=shop,
            tenant=tenant,
            status=status,
            start_date=start_date,
            end_date=end_date,
            rent_amount=rent_amount,
            **kwargs
        )
        if status == 'active' and shop.status != 'occupied':
            shop.status = 'occupied'
            shop.save()
        return contract

    @staticmethod
    def create_invoice(contract=None, amount_total=Decimal('1000.00'), status='unpaid',
                       issue_date=None, due_date=None, **kwargs):
        """Create a test invoice for a contract"""
        contract = contract or TestDataFactory.create_contract()
        issue_date = issue_date or timezone.localdate()
        return Invoice.objects.create(
            invoice_number=kwargs.pop('invoice_number', None) or generate_invoice_number(issue_date),
            contract=contract,
            tenant=contract.tenant,
            shop=contract.shop,
            issue_date=issue_date,
            due_date=due_date or add_months(issue_date, 1),
            amount_total=amount_total,
            currency=kwargs.pop('currency', contract.currency),
            status=status,
            **kwargs
        )

    @staticmethod
    def create_payment(invoice, amount=Decimal('100.00'), method='cash', paid_at=None, **kwargs):
        """Create a payment row directly (no status update)"""
        return Payment.objects.create(
            invoice=invoice,
            amount=amount,
            currency=invoice.currency,
            method=method,
            paid_at=paid_at or timezone.localdate(),
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
