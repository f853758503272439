"""
Test suite for Shops module
Tests: Shop CRUD, role checks, occupancy with automatic contract, list caching
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.contracts.models import Contract
from backend.contracts.services import add_months
from backend.core.model_cache import get_cached_shop_list
from backend.core.models import ActivityLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Shop


class ShopTests(TestCase):
    """Test shop endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def shop_payload(self, **overrides):
        data = {
            'shop_number': ' A-12 ',
            'name': 'Bakery',
            'status': 'vacant',
            'surface_area': '35.00',
            'floor': '1',
            'location': 'North wing',
            'monthly_rent': '800.00',
        }
        data.update(overrides)
        return data

    def test_list_shops_ordered_by_number(self):
        TestDataFactory.create_shop(shop_number='B-2')
        TestDataFactory.create_shop(shop_number='A-1')
        response = self.client.get('/api/v1/shops/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['shop_number'] for s in response.data], ['A-1', 'B-2'])

    def test_list_filters(self):
        TestDataFactory.create_shop(shop_number='A-1', name='Pharmacy')
        TestDataFactory.create_shop(shop_number='A-2', status='under_renovation')
        response = self.client.get('/api/v1/shops/?search=pharma')
        self.assertEqual([s['shop_number'] for s in response.data], ['A-1'])
        response = self.client.get('/api/v1/shops/?status=under_renovation')
        self.assertEqual([s['shop_number'] for s in response.data], ['A-2'])

    def test_list_shows_current_tenant(self):
        contract = TestDataFactory.create_contract()
        response = self.client.get('/api/v1/shops/')
        row = response.data[0]
        self.assertEqual(row['status'], 'occupied')
        self.assertEqual(row['current_tenant']['id'], contract.tenant_id)
        self.assertEqual(row['current_contract']['id'], contract.id)

    def test_list_is_cached_and_invalidated(self):
        TestDataFactory.create_shop(shop_number='A-1')
        self.client.get('/api/v1/shops/')
        self.assertEqual(len(get_cached_shop_list('all')), 1)

        TestDataFactory.create_shop(shop_number='A-2')
        self.assertIsNone(get_cached_shop_list('all'))
        response = self.client.get('/api/v1/shops/')
        self.assertEqual(len(response.data), 2)

    def test_list_cache_refreshed_when_tenant_renamed(self):
        contract = TestDataFactory.create_contract()
        response = self.client.get('/api/v1/shops/')
        self.assertEqual(response.data[0]['current_tenant']['company_name'], contract.tenant.company_name)

        response = self.client.patch(f'/api/v1/tenants/{contract.tenant_id}/', {'company_name': 'Renamed Co'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(get_cached_shop_list('all'))

        response = self.client.get('/api/v1/shops/')
        self.assertEqual(response.data[0]['current_tenant']['company_name'], 'Renamed Co')

    def test_create_vacant_shop(self):
        response = self.client.post('/api/v1/shops/', self.shop_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        shop = Shop.objects.get()
        self.assertEqual(shop.shop_number, 'A-12')
        self.assertEqual(shop.created_by, self.user)
        self.assertEqual(Contract.objects.count(), 0)
        self.assertTrue(ActivityLog.objects.filter(action='create', entity='shop', entity_id=str(shop.id)).exists())

    def test_create_requires_fields(self):
        response = self.client.post('/api/v1/shops/', self.shop_payload(floor=' ', location=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('floor', response.data)
        self.assertIn('location', response.data)

    def test_create_rejects_negative_values(self):
        response = self.client.post('/api/v1/shops/', self.shop_payload(surface_area='-1', monthly_rent='-5'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('surface_area', response.data)
        self.assertIn('monthly_rent', response.data)

    def test_duplicate_shop_number(self):
        TestDataFactory.create_shop(shop_number='A-12')
        response = self.client.post('/api/v1/shops/', self.shop_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_occupied_shop_creates_contract(self):
        tenant = TestDataFactory.create_tenant()
        response = self.client.post('/api/v1/shops/', self.shop_payload(status='occupied', tenant=tenant.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        contract = Contract.objects.get()
        today = timezone.localdate()
        self.assertEqual(contract.tenant, tenant)
        self.assertEqual(contract.status, 'active')
        self.assertEqual(contract.start_date, today)
        self.assertEqual(contract.end_date, add_months(today, 12))
        self.assertEqual(contract.rent_amount, Decimal('800.00'))
        self.assertEqual(contract.deposit, Decimal('1600.00'))
        self.assertEqual(contract.payment_day, 1)
        self.assertEqual(contract.contract_type, 'commercial')
        self.assertFalse(contract.auto_renewal)
        self.assertEqual(response.data['current_tenant']['id'], tenant.id)

    def test_occupied_without_rent_creates_zero_rent_contract(self):
        tenant = TestDataFactory.create_tenant()
        payload = self.shop_payload(status='occupied', tenant=tenant.id)
        payload.pop('monthly_rent')
        response = self.client.post('/api/v1/shops/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        contract = Contract.objects.get()
        self.assertEqual(contract.rent_amount, Decimal('0.00'))
        self.assertEqual(contract.deposit, Decimal('0.00'))

    def test_occupied_requires_tenant(self):
        response = self.client.post('/api/v1/shops/', self.shop_payload(status='occupied'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tenant', response.data)
        self.assertEqual(Shop.objects.count(), 0)

    def test_occupied_rejects_inactive_tenant(self):
        tenant = TestDataFactory.create_tenant(active=False)
        response = self.client.post('/api/v1/shops/', self.shop_payload(status='occupied', tenant=tenant.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_occupy_existing_shop(self):
        shop = TestDataFactory.create_shop()
        tenant = TestDataFactory.create_tenant()
        response = self.client.patch(f'/api/v1/shops/{shop.id}/', {'status': 'occupied', 'tenant': tenant.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(shop.contracts.filter(status='active').count(), 1)
        self.assertTrue(ActivityLog.objects.filter(action='status_change', entity='shop').exists())

    def test_double_booking_rejected(self):
        contract = TestDataFactory.create_contract()
        other = TestDataFactory.create_tenant()
        response = self.client.patch(f'/api/v1/shops/{contract.shop_id}/', {
            'status': 'occupied',
            'tenant': other.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tenant', response.data)
        self.assertEqual(Contract.objects.filter(shop=contract.shop).count(), 1)

    def test_same_tenant_keeps_contract(self):
        contract = TestDataFactory.create_contract()
        response = self.client.patch(f'/api/v1/shops/{contract.shop_id}/', {
            'status': 'occupied',
            'tenant': contract.tenant_id,
            'name': 'Renamed',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Contract.objects.count(), 1)

    def test_occupied_shop_cannot_be_marked_vacant(self):
        contract = TestDataFactory.create_contract()
        response = self.client.patch(f'/api/v1/shops/{contract.shop_id}/', {'status': 'vacant'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data)

    def test_delete_shop(self):
        shop = TestDataFactory.create_shop()
        response = self.client.delete(f'/api/v1/shops/{shop.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Shop.objects.filter(pk=shop.id).exists())

    def test_delete_shop_with_contracts_refused(self):
        contract = TestDataFactory.create_contract(status='terminated')
        response = self.client.delete(f'/api/v1/shops/{contract.shop_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_user_without_role_cannot_write(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=None))
        response = self.client.post('/api/v1/shops/', self.shop_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get('/api/v1/shops/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_shop_not_found(self):
        response = self.client.get('/api/v1/shops/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_options_available_only(self):
        TestDataFactory.create_shop(shop_number='A-1')
        TestDataFactory.create_contract(shop=TestDataFactory.create_shop(shop_number='A-2'))
        TestDataFactory.create_shop(shop_number='A-3', status='under_renovation')
        response = self.client.get('/api/v1/shops/options/?available=true')
        self.assertEqual([s['shop_number'] for s in response.data], ['A-1'])

    def test_label(self):
        shop = TestDataFactory.create_shop(shop_number='C-3', name='Florist', floor='2', location='Atrium')
        self.assertEqual(shop.label, 'C-3 - Florist (Floor 2, Atrium)')
        shop.name = ''
        self.assertEqual(shop.label, 'C-3 (Floor 2, Atrium)')
