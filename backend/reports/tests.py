"""
Test suite for Reports module
Tests: Dashboard statistics and caching
"""
from datetime import date
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from backend.core.model_cache import get_cached_dashboard
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .views import build_dashboard


class DashboardTests(TestCase):
    """Test dashboard endpoint"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(role=None)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_dashboard_empty(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['shops']['total'], 0)
        self.assertEqual(response.data['shops']['occupancy_rate'], 0)
        self.assertEqual(response.data['monthly_revenue'], '0.00')
        self.assertEqual(response.data['expiring_contracts'], [])

    def test_occupancy_and_revenue(self):
        today = date(2026, 6, 1)
        TestDataFactory.create_shop(status='vacant')
        TestDataFactory.create_shop(status='under_renovation')
        TestDataFactory.create_contract(start_date=date(2026, 1, 1), end_date=date(2026, 7, 15),
                                        rent_amount=Decimal('1000.00'))
        TestDataFactory.create_contract(start_date=date(2026, 1, 1), end_date=date(2027, 12, 31),
                                        rent_amount=Decimal('50000.00'), currency='XAF')
        TestDataFactory.create_contract(status='terminated', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
        TestDataFactory.create_tenant(active=False)

        data = build_dashboard(today)
        self.assertEqual(data['shops']['total'], 5)
        self.assertEqual(data['shops']['occupied'], 2)
        self.assertEqual(data['shops']['vacant'], 2)
        self.assertEqual(data['shops']['under_renovation'], 1)
        self.assertEqual(data['shops']['occupancy_rate'], 40.0)
        self.assertEqual(data['active_tenants'], 3)
        self.assertEqual(data['active_contracts'], 2)
        self.assertEqual(data['monthly_revenue_by_currency'], {'EUR': '1000.00', 'XAF': '50000.00'})
        self.assertEqual(len(data['expiring_contracts']), 1)
        self.assertEqual(data['expiring_contracts'][0]['end_date'], '2026-07-15')
        self.assertEqual(len(data['recent_contracts']), 3)

    def test_overdue_invoices(self):
        TestDataFactory.create_invoice(status='overdue', issue_date=date(2026, 2, 1), due_date=date(2026, 2, 28))
        oldest = TestDataFactory.create_invoice(status='overdue', issue_date=date(2026, 1, 1), due_date=date(2026, 1, 31))
        TestDataFactory.create_invoice(status='unpaid')

        data = build_dashboard(date(2026, 4, 1))
        self.assertEqual(data['overdue_invoices_count'], 2)
        self.assertEqual(data['overdue_invoices'][0]['id'], oldest.id)

    def test_dashboard_cached_until_data_changes(self):
        self.client.get('/api/v1/reports/dashboard/')
        self.assertIsNotNone(get_cached_dashboard())

        TestDataFactory.create_shop()
        self.assertIsNone(get_cached_dashboard())
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['shops']['total'], 1)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
