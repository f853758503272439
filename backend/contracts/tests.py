"""
Test suite for Contracts module
Tests: Contract CRUD, occupancy sync, termination, renewal, expiry pass
"""
from datetime import date, timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import serializers, status

from backend.core.models import ActivityLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Contract
from .services import add_months, auto_renew_contracts, renew_contract, terminate_contract


class AddMonthsTests(TestCase):
    def test_simple_shift(self):
        self.assertEqual(add_months(date(2026, 3, 15), 12), date(2027, 3, 15))
        self.assertEqual(add_months(date(2026, 11, 1), 3), date(2027, 2, 1))

    def test_clamps_to_month_end(self):
        self.assertEqual(add_months(date(2026, 1, 31), 1), date(2026, 2, 28))
        self.assertEqual(add_months(date(2024, 2, 29), 12), date(2025, 2, 28))


class ContractServiceTests(TestCase):
    """Lifecycle rules applied outside the API"""

    def test_terminate_frees_shop(self):
        contract = TestDataFactory.create_contract(start_date=date(2026, 1, 1))
        terminate_contract(contract, end_date=date(2026, 6, 30))
        contract.refresh_from_db()
        contract.shop.refresh_from_db()
        self.assertEqual(contract.status, 'terminated')
        self.assertEqual(contract.end_date, date(2026, 6, 30))
        self.assertEqual(contract.shop.status, 'vacant')

    def test_terminate_rejects_end_before_start(self):
        contract = TestDataFactory.create_contract(start_date=date(2026, 1, 1))
        with self.assertRaises(serializers.ValidationError):
            terminate_contract(contract, end_date=date(2025, 12, 31))
        contract.refresh_from_db()
        self.assertEqual(contract.status, 'active')

    def test_renew_expired_contract_reoccupies_shop(self):
        shop = TestDataFactory.create_shop()
        contract = TestDataFactory.create_contract(
            shop=shop, status='expired', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31)
        )
        renew_contract(contract, months=6, today=date(2026, 1, 10))
        contract.refresh_from_db()
        shop.refresh_from_db()
        self.assertEqual(contract.status, 'active')
        self.assertEqual(contract.end_date, date(2026, 6, 30))
        self.assertEqual(shop.status, 'occupied')

    def test_renew_expired_refused_when_shop_taken(self):
        shop = TestDataFactory.create_shop()
        expired = TestDataFactory.create_contract(
            shop=shop, status='expired', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31)
        )
        TestDataFactory.create_contract(shop=shop, start_date=date(2026, 1, 1))
        with self.assertRaises(serializers.ValidationError):
            renew_contract(expired)

    def test_auto_renew_and_expire(self):
        today = date(2026, 7, 1)
        renewing = TestDataFactory.create_contract(
            start_date=date(2025, 7, 1), end_date=date(2026, 6, 30), auto_renewal=True
        )
        expiring = TestDataFactory.create_contract(
            start_date=date(2025, 7, 1), end_date=date(2026, 6, 30)
        )
        current = TestDataFactory.create_contract(start_date=date(2026, 1, 1), end_date=date(2026, 12, 31))

        self.assertEqual(auto_renew_contracts(today), 2)

        renewing.refresh_from_db()
        expiring.refresh_from_db()
        current.refresh_from_db()
        self.assertEqual(renewing.status, 'active')
        self.assertEqual(renewing.end_date, date(2027, 6, 30))
        self.assertEqual(expiring.status, 'expired')
        expiring.shop.refresh_from_db()
        self.assertEqual(expiring.shop.status, 'vacant')
        self.assertEqual(current.end_date, date(2026, 12, 31))

        # Nothing left to process the same day
        self.assertEqual(auto_renew_contracts(today), 0)


class ContractTests(TestCase):
    """Test contract endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.shop = TestDataFactory.create_shop(shop_number='A-1', name='Bakery')
        self.tenant = TestDataFactory.create_tenant(company_name='Acme', contact_name='Jane')

    def contract_payload(self, **overrides):
        data = {
            'shop': self.shop.id,
            'tenant': self.tenant.id,
            'start_date': '2026-01-01',
            'end_date': '2026-12-31',
            'rent_amount': '1200.00',
            'charges': '80.00',
            'deposit': '2400.00',
            'currency': 'EUR',
            'payment_day': 5,
            'status': 'active',
        }
        data.update(overrides)
        return data

    def test_create_contract_occupies_shop(self):
        response = self.client.post('/api/v1/contracts/', self.contract_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['monthly_amount'], '1280.00')
        self.assertEqual(response.data['label'], 'Acme (Jane) - A-1')
        self.assertEqual(response.data['shop_detail']['shop_number'], 'A-1')
        self.shop.refresh_from_db()
        self.assertEqual(self.shop.status, 'occupied')
        self.assertTrue(ActivityLog.objects.filter(action='create', entity='contract').exists())

    def test_create_pending_contract_leaves_shop_vacant(self):
        response = self.client.post('/api/v1/contracts/', self.contract_payload(status='pending'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.shop.refresh_from_db()
        self.assertEqual(self.shop.status, 'vacant')

    def test_second_active_contract_rejected(self):
        TestDataFactory.create_contract(shop=self.shop)
        response = self.client.post('/api/v1/contracts/', self.contract_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('shop', response.data)

    def test_shop_under_renovation_rejected(self):
        self.shop.status = 'under_renovation'
        self.shop.save()
        response = self.client.post('/api/v1/contracts/', self.contract_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_end_before_start_rejected(self):
        response = self.client.post('/api/v1/contracts/', self.contract_payload(end_date='2025-12-31'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

    def test_negative_amounts_rejected(self):
        response = self.client.post('/api/v1/contracts/', self.contract_payload(rent_amount='-1', charges='-2'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rent_amount', response.data)
        self.assertIn('charges', response.data)

    def test_inactive_tenant_rejected(self):
        self.tenant.active = False
        self.tenant.save()
        response = self.client.post('/api/v1/contracts/', self.contract_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tenant', response.data)

    def test_list_filters(self):
        TestDataFactory.create_contract(shop=self.shop, tenant=self.tenant)
        TestDataFactory.create_contract(status='terminated')
        response = self.client.get('/api/v1/contracts/?status=active')
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/contracts/?search=acme')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['tenant'], self.tenant.id)

    def test_expiring_within_filter(self):
        today = timezone.localdate()
        TestDataFactory.create_contract(start_date=today - timedelta(days=300), end_date=today + timedelta(days=10))
        TestDataFactory.create_contract(start_date=today, end_date=today + timedelta(days=200))
        response = self.client.get('/api/v1/contracts/?expiring_within=30')
        self.assertEqual(len(response.data), 1)

    def test_expiring_within_out_of_range(self):
        TestDataFactory.create_contract(shop=self.shop, tenant=self.tenant)
        response = self.client.get('/api/v1/contracts/?expiring_within=99999999999')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('expiring_within', response.data)
        response = self.client.get('/api/v1/contracts/?expiring_within=-5')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/contracts/?expiring_within=3650')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_moving_contract_frees_old_shop(self):
        contract = TestDataFactory.create_contract(shop=self.shop, tenant=self.tenant)
        new_shop = TestDataFactory.create_shop(shop_number='B-1')
        response = self.client.patch(f'/api/v1/contracts/{contract.id}/', {'shop': new_shop.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.shop.refresh_from_db()
        new_shop.refresh_from_db()
        self.assertEqual(self.shop.status, 'vacant')
        self.assertEqual(new_shop.status, 'occupied')

    def test_delete_contract_frees_shop(self):
        contract = TestDataFactory.create_contract(shop=self.shop)
        response = self.client.delete(f'/api/v1/contracts/{contract.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.shop.refresh_from_db()
        self.assertEqual(self.shop.status, 'vacant')

    def test_delete_contract_with_invoices_refused(self):
        contract = TestDataFactory.create_contract(shop=self.shop)
        TestDataFactory.create_invoice(contract=contract)
        response = self.client.delete(f'/api/v1/contracts/{contract.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertTrue(Contract.objects.filter(pk=contract.id).exists())

    def test_terminate_endpoint(self):
        contract = TestDataFactory.create_contract(shop=self.shop, start_date=date(2026, 1, 1))
        response = self.client.post(f'/api/v1/contracts/{contract.id}/terminate/', {'end_date': '2026-03-31'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'terminated')
        self.assertEqual(response.data['end_date'], '2026-03-31')
        self.shop.refresh_from_db()
        self.assertEqual(self.shop.status, 'vacant')
        self.assertTrue(ActivityLog.objects.filter(action='terminate', entity_id=str(contract.id)).exists())

    def test_terminate_twice_refused(self):
        contract = TestDataFactory.create_contract(status='terminated')
        response = self.client.post(f'/api/v1/contracts/{contract.id}/terminate/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_renew_endpoint(self):
        contract = TestDataFactory.create_contract(start_date=date(2026, 1, 1), end_date=date(2026, 12, 31))
        response = self.client.post(f'/api/v1/contracts/{contract.id}/renew/', {'months': 24}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['end_date'], '2028-12-31')
        self.assertTrue(ActivityLog.objects.filter(action='renew', entity_id=str(contract.id)).exists())

    def test_renew_default_is_one_year(self):
        contract = TestDataFactory.create_contract(start_date=date(2026, 1, 1), end_date=date(2026, 12, 31))
        response = self.client.post(f'/api/v1/contracts/{contract.id}/renew/', {}, format='json')
        self.assertEqual(response.data['end_date'], '2027-12-31')

    def test_renew_invalid_months(self):
        contract = TestDataFactory.create_contract()
        response = self.client.post(f'/api/v1/contracts/{contract.id}/renew/', {'months': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_renew_terminated_refused(self):
        contract = TestDataFactory.create_contract(status='terminated')
        response = self.client.post(f'/api/v1/contracts/{contract.id}/renew/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_user_without_role_cannot_write(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=None))
        response = self.client.post('/api/v1/contracts/', self.contract_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        contract = TestDataFactory.create_contract()
        response = self.client.post(f'/api/v1/contracts/{contract.id}/terminate/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_monthly_amount_property(self):
        contract = TestDataFactory.create_contract(rent_amount=Decimal('900.00'), charges=Decimal('45.50'))
        self.assertEqual(contract.monthly_amount, Decimal('945.50'))
