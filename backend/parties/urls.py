from django.urls import path
from .views import tenant_list_create, tenant_detail, tenant_options

urlpatterns = [
    path('tenants/', tenant_list_create, name='tenant-list-create'),
    path('tenants/options/', tenant_options, name='tenant-options'),
    path('tenants/<int:pk>/', tenant_detail, name='tenant-detail'),
]
