from django.contrib import admin
from .models import Shop


@admin.register(Shop)
class ShopAdmin(admin.ModelAdmin):
    list_display = ['shop_number', 'name', 'status', 'floor', 'location', 'surface_area', 'monthly_rent', 'created_at']
    list_filter = ['status', 'floor', 'created_at']
    search_fields = ['shop_number', 'name', 'location', 'activity_category']
    ordering = ['shop_number']
