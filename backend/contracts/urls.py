from django.urls import path
from .views import contract_list_create, contract_detail, contract_terminate, contract_renew

urlpatterns = [
    path('contracts/', contract_list_create, name='contract-list-create'),
    path('contracts/<int:pk>/', contract_detail, name='contract-detail'),
    path('contracts/<int:pk>/terminate/', contract_terminate, name='contract-terminate'),
    path('contracts/<int:pk>/renew/', contract_renew, name='contract-renew'),
]
