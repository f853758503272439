"""
Test suite for the core app
Tests: Auth (register/login/refresh/logout/password reset), Users admin,
Activity log, Notifications, Scheduled tasks, Global search
"""
from datetime import date
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from backend.billing.models import Invoice
from backend.core.cache_signals import suspend_cache_signals, is_suspended
from backend.core.models import User, ActivityLog, Notification
from backend.core.scheduled_tasks import run_scheduled_tasks
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import format_money, log_activity


class AuthTests(TestCase):
    """Test registration, login, refresh and logout"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.password = 'Lease-Manager-2026'

    def test_register_creates_user_without_role(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'New.User@Example.com',
            'password': self.password,
            'password_confirm': self.password,
            'full_name': '',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        user = User.objects.get(email='new.user@example.com')
        self.assertIsNone(user.role)
        self.assertEqual(user.username, 'new.user@example.com')
        self.assertEqual(user.full_name, 'new.user')
        self.assertFalse(response.data['user']['can_manage'])

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'someone@example.com',
            'password': self.password,
            'password_confirm': 'different-password-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'TAKEN@example.com',
            'password': self.password,
            'password_confirm': self.password,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_login_token_carries_role(self):
        TestDataFactory.create_user(email='accountant@example.com', role='accountant', full_name='Anna Count')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'accountant@example.com',
            'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], 'accountant')
        self.assertEqual(token['email'], 'accountant@example.com')
        self.assertEqual(token['full_name'], 'Anna Count')
        self.assertTrue(ActivityLog.objects.filter(action='login', entity='user').exists())

    def test_login_refused_for_inactive_user(self):
        TestDataFactory.create_user(email='inactive@example.com', is_active=False)
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'inactive@example.com',
            'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_for_deleted_user(self):
        user = TestDataFactory.create_user(email='gone@example.com')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'gone@example.com',
            'password': 'testpass123',
        }, format='json')
        refresh = response.data['refresh']
        user.delete()

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_blacklists_refresh_token(self):
        user = TestDataFactory.create_user(email='leaving@example.com')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'leaving@example.com',
            'password': 'testpass123',
        }, format='json')
        refresh = response.data['refresh']

        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/auth/logout/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(ActivityLog.objects.filter(action='logout', actor=user).exists())

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_requires_refresh_token(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/auth/logout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me_flags(self):
        manager = TestDataFactory.create_user(role='manager')
        self.client.authenticate_user(manager)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'manager')
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(response.data['is_manager'])
        self.assertTrue(response.data['can_manage'])

    def test_staff_without_role_is_admin(self):
        staff = TestDataFactory.create_user(role=None, is_staff=True)
        self.client.authenticate_user(staff)
        response = self.client.get('/api/v1/auth/me/')
        self.assertTrue(response.data['is_admin'])
        self.assertEqual(response.data['effective_role'], 'admin')

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class PasswordResetTests(TestCase):
    """Test password reset request and confirmation"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(email='reset@example.com')

    def test_request_sends_mail(self):
        response = self.client.post('/api/v1/auth/password-reset/', {'email': 'Reset@Example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('/reset-password?uid=', mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ['reset@example.com'])

    def test_request_unknown_email_still_ok(self):
        response = self.client.post('/api/v1/auth/password-reset/', {'email': 'nobody@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)

    def test_confirm_sets_password(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        token = default_token_generator.make_token(self.user)
        response = self.client.post('/api/v1/auth/password-reset/confirm/', {
            'uid': uid,
            'token': token,
            'password': 'Brand-New-Secret-42',
            'password_confirm': 'Brand-New-Secret-42',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('Brand-New-Secret-42'))

    def test_confirm_with_bad_token(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        response = self.client.post('/api/v1/auth/password-reset/confirm/', {
            'uid': uid,
            'token': 'not-a-token',
            'password': 'Brand-New-Secret-42',
            'password_confirm': 'Brand-New-Secret-42',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)


class UserManagementTests(TestCase):
    """Test admin-only user management"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(email='admin@example.com', role='admin')
        self.member = TestDataFactory.create_user(email='member@example.com', role=None, full_name='Marc Member')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_users(self):
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_list_users_search_and_status(self):
        response = self.client.get('/api/v1/users/?search=marc')
        self.assertEqual([u['email'] for u in response.data], ['member@example.com'])

        self.member.is_active = False
        self.member.save()
        response = self.client.get('/api/v1/users/?status=inactive')
        self.assertEqual([u['email'] for u in response.data], ['member@example.com'])

    def test_non_admin_forbidden(self):
        accountant = TestDataFactory.create_user(role='accountant')
        self.client.authenticate_user(accountant)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_profile_fields_only(self):
        response = self.client.patch(f'/api/v1/users/{self.member.id}/', {
            'full_name': 'Marc M.',
            'role': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.assertEqual(self.member.full_name, 'Marc M.')
        self.assertIsNone(self.member.role)

    def test_change_role(self):
        response = self.client.patch(f'/api/v1/users/{self.member.id}/role/', {'role': 'manager'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.assertEqual(self.member.role, 'manager')
        log = ActivityLog.objects.get(action='role_change')
        self.assertEqual(log.details['role'], {'old': None, 'new': 'manager'})

    def test_invalid_role(self):
        response = self.client.patch(f'/api/v1/users/{self.member.id}/role/', {'role': 'owner'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_cannot_drop_own_admin_role(self):
        response = self.client.patch(f'/api/v1/users/{self.admin.id}/role/', {'role': 'manager'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.role, 'admin')

    def test_toggle_active(self):
        response = self.client.post(f'/api/v1/users/{self.member.id}/toggle-active/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.assertFalse(self.member.is_active)
        self.assertTrue(ActivityLog.objects.filter(action='deactivate').exists())

        self.client.post(f'/api/v1/users/{self.member.id}/toggle-active/')
        self.member.refresh_from_db()
        self.assertTrue(self.member.is_active)

    def test_admin_cannot_deactivate_self(self):
        response = self.client.post(f'/api/v1/users/{self.admin.id}/toggle-active/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ActivityLogTests(TestCase):
    """Test activity logging and the admin log view"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin', full_name='Alice Admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_log_activity_never_raises(self):
        with mock.patch('backend.core.utils.ActivityLog.objects.create', side_effect=Exception('db down')):
            self.assertIsNone(log_activity(actor=self.admin, action='create', entity='shop'))

    def test_log_activity_requires_action_and_entity(self):
        self.assertIsNone(log_activity(actor=self.admin, action='create'))

    def test_list_filters(self):
        log_activity(actor=self.admin, action='create', entity='shop', entity_id=1, entity_label='A-1')
        log_activity(actor=self.admin, action='delete', entity='tenant', entity_id=2, entity_label='Acme')

        response = self.client.get('/api/v1/activity-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['results'][0]['actor_name'], 'Alice Admin')

        response = self.client.get('/api/v1/activity-logs/?entity=shop')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/activity-logs/?entity=all&search=acme')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['entity'], 'tenant')

    def test_list_is_capped(self):
        ActivityLog.objects.bulk_create([
            ActivityLog(actor=self.admin, action='update', entity='shop', entity_id=str(i))
            for i in range(12)
        ])
        with self.settings(ACTIVITY_LOG_LIMIT=10):
            response = self.client.get('/api/v1/activity-logs/?limit=50')
        self.assertEqual(response.data['count'], 10)

    def test_entities(self):
        log_activity(actor=self.admin, action='create', entity='shop')
        log_activity(actor=self.admin, action='create', entity='invoice')
        log_activity(actor=self.admin, action='update', entity='shop')
        response = self.client.get('/api/v1/activity-logs/entities/')
        self.assertEqual(response.data, ['invoice', 'shop'])

    def test_manager_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='manager'))
        response = self.client.get('/api/v1/activity-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class NotificationTests(TestCase):
    """Test the current user's notifications"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='accountant')
        self.other = TestDataFactory.create_user(role='accountant')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.first = Notification.objects.create(user=self.user, title='First')
        self.second = Notification.objects.create(user=self.user, title='Second')
        self.foreign = Notification.objects.create(user=self.other, title='Not mine')

    def test_list_with_unread_count(self):
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['unread_count'], 2)

    def test_mark_read(self):
        response = self.client.post(f'/api/v1/notifications/{self.first.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['read'])
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.data['unread_count'], 1)

    def test_mark_all_read(self):
        response = self.client.post('/api/v1/notifications/read-all/')
        self.assertEqual(response.data['updated'], 2)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.read)

    def test_delete(self):
        response = self.client.delete(f'/api/v1/notifications/{self.second.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(pk=self.second.id).exists())

    def test_other_users_notification_not_found(self):
        response = self.client.post(f'/api/v1/notifications/{self.foreign.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ScheduledTaskTests(TestCase):
    """Test the daily task run and its entry points"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.contract = TestDataFactory.create_contract(
            start_date=date(2026, 1, 1), end_date=date(2026, 12, 31), charges=Decimal('50.00')
        )

    def test_monthly_invoices_only_on_first_day(self):
        summary = run_scheduled_tasks(today=date(2026, 3, 15))
        self.assertTrue(summary['success'])
        self.assertIsNone(summary['results']['invoices_generated'])
        self.assertEqual(Invoice.objects.count(), 0)

        summary = run_scheduled_tasks(today=date(2026, 3, 1))
        self.assertEqual(summary['results']['invoices_generated'], 1)
        self.assertEqual(Invoice.objects.get().amount_total, Decimal('1050.00'))

    def test_force_invoices(self):
        summary = run_scheduled_tasks(today=date(2026, 3, 15), force_invoices=True)
        self.assertEqual(summary['results']['invoices_generated'], 1)

    def test_run_marks_overdue_and_logs(self):
        TestDataFactory.create_invoice(
            contract=self.contract, issue_date=date(2026, 2, 1), due_date=date(2026, 2, 10)
        )
        summary = run_scheduled_tasks(today=date(2026, 3, 15))
        self.assertEqual(summary['results']['overdue_invoices'], 1)
        self.assertEqual(summary['message'], 'Scheduled tasks completed')
        self.assertTrue(ActivityLog.objects.filter(action='scheduled_task', entity='system').exists())

    def test_endpoint(self):
        response = self.client.post('/api/v1/tasks/run/', {'date': '2026-04-01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['results']['invoices_generated'], 1)

    def test_endpoint_invalid_date(self):
        response = self.client.post('/api/v1/tasks/run/', {'date': '01/04/2026'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_endpoint_failure_returns_500(self):
        with mock.patch('backend.core.views.run_scheduled_tasks', side_effect=RuntimeError('boom')):
            response = self.client.post('/api/v1/tasks/run/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'boom')

    def test_endpoint_admin_only(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='accountant'))
        response = self.client.post('/api/v1/tasks/run/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_management_command(self):
        out = StringIO()
        call_command('run_scheduled_tasks', '--date', '2026-05-01', stdout=out)
        self.assertIn('Generated 1 monthly invoices', out.getvalue())
        self.assertIn('Scheduled tasks completed', out.getvalue())

    def test_suspend_cache_signals_restores_state(self):
        self.assertFalse(is_suspended())
        with suspend_cache_signals():
            self.assertTrue(is_suspended())
            with suspend_cache_signals():
                self.assertTrue(is_suspended())
            self.assertTrue(is_suspended())
        self.assertFalse(is_suspended())


class GlobalSearchTests(TestCase):
    """Test search across shops, tenants, contracts and invoices"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/')
        self.assertEqual(response.data, {'shops': [], 'tenants': [], 'contracts': [], 'invoices': []})

    def test_search_matches_entities(self):
        tenant = TestDataFactory.create_tenant(company_name='Boulangerie Zenith')
        shop = TestDataFactory.create_shop(shop_number='B-07')
        contract = TestDataFactory.create_contract(shop=shop, tenant=tenant)
        TestDataFactory.create_invoice(contract=contract)

        response = self.client.get('/api/v1/search/?q=zenith')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['tenants']), 1)
        self.assertEqual(len(response.data['contracts']), 1)
        self.assertEqual(len(response.data['invoices']), 1)
        self.assertEqual(response.data['shops'], [])


class FormatMoneyTests(TestCase):
    def test_xaf_has_no_decimals(self):
        self.assertEqual(format_money(Decimal('150000'), 'XAF'), '150 000 FCFA')

    def test_other_currencies(self):
        self.assertEqual(format_money('1250.5', 'EUR'), '1 250.50 EUR')

    def test_invalid_amount(self):
        self.assertEqual(format_money('abc'), '-')
