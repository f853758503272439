"""
URL configuration for the lease manager backend.

Every app mounts its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Lease Manager Admin Panel"
admin.site.site_title = "Lease Manager Admin Portal"
admin.site.index_title = "Welcome to the Lease Manager Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.shops.urls')),
    path('api/v1/', include('backend.parties.urls')),
    path('api/v1/', include('backend.contracts.urls')),
    path('api/v1/', include('backend.billing.urls')),
    path('api/v1/', include('backend.reports.urls')),
]
