from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Console user profile with an application role"""
    ROLE_ADMIN = 'admin'
    ROLE_MANAGER = 'manager'
    ROLE_ACCOUNTANT = 'accountant'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_MANAGER, 'Manager'),
        (ROLE_ACCOUNTANT, 'Accountant'),
    ]
    MANAGING_ROLES = [ROLE_ADMIN, ROLE_MANAGER, ROLE_ACCOUNTANT]

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    # Signed-up accounts have no role until an admin grants one
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        if self.email:
            return self.email.split('@')[0]
        return 'User'

    @property
    def effective_role(self):
        """Role used for access control; staff accounts without a role act as admin"""
        if self.role:
            return self.role
        if self.is_superuser or self.is_staff:
            return self.ROLE_ADMIN
        return None

    class Meta:
        db_table = 'users'


class ActivityLog(models.Model):
    """Activity log of console operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('login', 'Login'),
        ('logout', 'Logout'),
        ('status_change', 'Status Change'),
        ('payment_add', 'Payment Added'),
        ('renew', 'Contract Renewed'),
        ('terminate', 'Contract Terminated'),
        ('role_change', 'Role Changed'),
        ('activate', 'Account Activated'),
        ('deactivate', 'Account Deactivated'),
        ('scheduled_task', 'Scheduled Task'),
    ]

    ENTITY_CHOICES = [
        ('shop', 'Shop'),
        ('tenant', 'Tenant'),
        ('contract', 'Contract'),
        ('invoice', 'Invoice'),
        ('payment', 'Payment'),
        ('user', 'User'),
        ('system', 'System'),
    ]

    actor = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    entity = models.CharField(max_length=50, choices=ENTITY_CHOICES)
    entity_id = models.CharField(max_length=100, blank=True)
    entity_label = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable label (e.g., shop number, invoice number)")
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.entity} {self.entity_id}"

    class Meta:
        db_table = 'activity_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_activity_created'),
            models.Index(fields=['action'], name='idx_activity_action'),
            models.Index(fields=['entity'], name='idx_activity_entity'),
        ]


class Notification(models.Model):
    """In-app notifications (payment reminders, task results)"""
    TYPE_CHOICES = [
        ('success', 'Success'),
        ('error', 'Error'),
        ('warning', 'Warning'),
        ('info', 'Info'),
        ('reminder', 'Reminder'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=200)
    message = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='info')
    action_url = models.CharField(max_length=255, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'read'], name='idx_notification_user_read'),
        ]
