from django.contrib import admin
from .models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'contact_name', 'phone', 'email', 'business_type', 'active', 'created_at']
    list_filter = ['active', 'business_type', 'created_at']
    search_fields = ['company_name', 'contact_name', 'email', 'phone']
    ordering = ['company_name']
