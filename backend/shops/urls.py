from django.urls import path
from .views import shop_list_create, shop_detail, shop_options

urlpatterns = [
    path('shops/', shop_list_create, name='shop-list-create'),
    path('shops/options/', shop_options, name='shop-options'),
    path('shops/<int:pk>/', shop_detail, name='shop-detail'),
]
