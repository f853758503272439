from django.contrib import admin
from .models import Invoice, Payment


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ['amount', 'currency', 'method', 'paid_at', 'reference']
    readonly_fields = ['currency']


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'tenant', 'shop', 'issue_date', 'due_date', 'amount_total', 'currency', 'status']
    list_filter = ['status', 'currency', 'issue_date']
    search_fields = ['invoice_number', 'tenant__company_name', 'shop__shop_number']
    raw_id_fields = ['contract', 'tenant', 'shop', 'created_by']
    date_hierarchy = 'issue_date'
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['invoice', 'amount', 'currency', 'method', 'paid_at', 'reference', 'created_at']
    list_filter = ['method', 'currency', 'paid_at']
    search_fields = ['invoice__invoice_number', 'reference']
    raw_id_fields = ['invoice', 'created_by']
