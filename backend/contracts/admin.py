from django.contrib import admin
from .models import Contract


@admin.register(Contract)
class ContractAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'shop', 'tenant', 'start_date', 'end_date', 'rent_amount', 'currency', 'status', 'auto_renewal']
    list_filter = ['status', 'contract_type', 'currency', 'auto_renewal']
    search_fields = ['title', 'tenant__company_name', 'tenant__contact_name', 'shop__shop_number', 'shop__name']
    raw_id_fields = ['shop', 'tenant', 'created_by']
    date_hierarchy = 'start_date'
