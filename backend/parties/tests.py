"""
Test suite for Parties module
Tests: Tenant CRUD, filters, protected deletion
"""
from django.test import TestCase
from rest_framework import status

from backend.core.models import ActivityLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Tenant


class TenantTests(TestCase):
    """Test tenant endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='accountant')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_tenant_trims_and_lowercases(self):
        response = self.client.post('/api/v1/tenants/', {
            'company_name': '  Acme SARL ',
            'contact_name': ' Jane Doe ',
            'email': ' Jane@ACME.com ',
            'phone': ' 0601020304 ',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        tenant = Tenant.objects.get()
        self.assertEqual(tenant.company_name, 'Acme SARL')
        self.assertEqual(tenant.email, 'jane@acme.com')
        self.assertTrue(tenant.active)
        self.assertEqual(response.data['display_name'], 'Acme SARL (Jane Doe)')
        self.assertTrue(ActivityLog.objects.filter(action='create', entity='tenant').exists())

    def test_create_requires_contact_fields(self):
        response = self.client.post('/api/v1/tenants/', {
            'company_name': 'Acme',
            'contact_name': '',
            'email': 'a@acme.com',
            'phone': ' ',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('contact_name', response.data)
        self.assertIn('phone', response.data)

    def test_list_ordered_and_filtered(self):
        TestDataFactory.create_tenant(company_name='Zeta')
        TestDataFactory.create_tenant(company_name='Alpha', active=False)
        response = self.client.get('/api/v1/tenants/')
        self.assertEqual([t['company_name'] for t in response.data], ['Alpha', 'Zeta'])

        response = self.client.get('/api/v1/tenants/?status=active')
        self.assertEqual([t['company_name'] for t in response.data], ['Zeta'])

        response = self.client.get('/api/v1/tenants/?search=alp')
        self.assertEqual([t['company_name'] for t in response.data], ['Alpha'])

    def test_active_contracts_count(self):
        tenant = TestDataFactory.create_tenant()
        TestDataFactory.create_contract(tenant=tenant)
        TestDataFactory.create_contract(tenant=tenant, status='terminated')
        response = self.client.get('/api/v1/tenants/')
        self.assertEqual(response.data[0]['active_contracts_count'], 1)

    def test_deactivate_tenant(self):
        tenant = TestDataFactory.create_tenant()
        response = self.client.patch(f'/api/v1/tenants/{tenant.id}/', {'active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tenant.refresh_from_db()
        self.assertFalse(tenant.active)
        self.assertTrue(ActivityLog.objects.filter(action='status_change', entity='tenant').exists())

    def test_delete_tenant(self):
        tenant = TestDataFactory.create_tenant()
        response = self.client.delete(f'/api/v1/tenants/{tenant.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_delete_tenant_with_contracts_refused(self):
        contract = TestDataFactory.create_contract()
        response = self.client.delete(f'/api/v1/tenants/{contract.tenant_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Tenant.objects.filter(pk=contract.tenant_id).exists())

    def test_options_lists_active_tenants(self):
        TestDataFactory.create_tenant(company_name='Open')
        TestDataFactory.create_tenant(company_name='Closed', active=False)
        response = self.client.get('/api/v1/tenants/options/')
        self.assertEqual([t['company_name'] for t in response.data], ['Open'])

    def test_user_without_role_cannot_write(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=None))
        tenant = TestDataFactory.create_tenant()
        response = self.client.patch(f'/api/v1/tenants/{tenant.id}/', {'phone': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
