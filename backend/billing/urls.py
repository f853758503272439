from django.urls import path
from .views import (
    invoice_list_create, invoice_detail, invoice_status_update, invoice_payments,
    payment_list_create, payment_detail, payment_summary
)

urlpatterns = [
    # Invoices
    path('invoices/', invoice_list_create, name='invoice-list-create'),
    path('invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('invoices/<int:pk>/status/', invoice_status_update, name='invoice-status-update'),
    path('invoices/<int:pk>/payments/', invoice_payments, name='invoice-payments'),

    # Payments
    path('payments/', payment_list_create, name='payment-list-create'),
    path('payments/summary/', payment_summary, name='payment-summary'),
    path('payments/<int:pk>/', payment_detail, name='payment-detail'),
]
