import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import IntegrityError, transaction
from django.db.models import Prefetch, ProtectedError

from backend.contracts.models import Contract
from backend.core.model_cache import get_cached_shop_list, cache_shop_list, SHOP_LIST_VARIANTS
from backend.core.permissions import can_manage
from backend.core.utils import log_activity
from .filters import ShopFilter
from .models import Shop
from .serializers import ShopSerializer, ShopOptionSerializer
from .services import occupy_shop

logger = logging.getLogger('backend.shops')


def shop_queryset():
    return Shop.objects.prefetch_related(
        Prefetch(
            'contracts',
            queryset=Contract.objects.filter(status='active').select_related('tenant'),
            to_attr='active_contracts',
        )
    )


def _cache_variant(params):
    """Only the unfiltered list and the plain per-status lists are cached"""
    keys = set(params.keys())
    if not keys:
        return 'all'
    if keys == {'status'} and params.get('status') in SHOP_LIST_VARIANTS:
        return params.get('status')
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def shop_list_create(request):
    """List shops or create a new shop (create requires a managing role)"""
    try:
        if request.method == 'GET':
            variant = _cache_variant(request.query_params)
            if variant:
                cached_data = get_cached_shop_list(variant)
                if cached_data is not None:
                    return Response(cached_data)

            shop_filter = ShopFilter(request.query_params, queryset=shop_queryset())
            if not shop_filter.is_valid():
                return Response(shop_filter.errors, status=status.HTTP_400_BAD_REQUEST)
            serializer = ShopSerializer(shop_filter.qs.order_by('shop_number'), many=True)
            response_data = serializer.data

            if variant:
                cache_shop_list(variant, response_data)
            return Response(response_data)

        if not can_manage(request.user):
            logger.warning(f"User {request.user.username} attempted to create a shop without a managing role")
            return Response({'error': 'You do not have permission to create shops'}, status=status.HTTP_403_FORBIDDEN)

        serializer = ShopSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"Shop creation validation failed: {serializer.errors}")
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        tenant = serializer.validated_data.pop('tenant', None)
        try:
            with transaction.atomic():
                shop = serializer.save(created_by=request.user)
                contract = None
                if shop.status == 'occupied' and tenant:
                    contract = occupy_shop(shop, tenant, user=request.user)
        except IntegrityError as e:
            logger.error(f"IntegrityError creating shop: {str(e)}", exc_info=True)
            return Response({'error': 'A shop with this number already exists'}, status=status.HTTP_400_BAD_REQUEST)

        log_activity(
            request=request,
            action='create',
            entity='shop',
            entity_id=shop.id,
            entity_label=shop.shop_number,
            details={
                'shop_number': shop.shop_number,
                'status': shop.status,
                'contract_id': contract.id if contract else None,
            }
        )
        logger.info(f"Shop '{shop.shop_number}' created by {request.user.username}")
        return Response(ShopSerializer(shop_queryset().get(pk=shop.pk)).data, status=status.HTTP_201_CREATED)
    except Exception as e:
        logger.error(f"Unexpected error in shop_list_create: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def shop_detail(request, pk):
    """Retrieve, update or delete a shop (update/delete requires a managing role)"""
    shop = get_object_or_404(Shop, pk=pk)

    if request.method == 'GET':
        return Response(ShopSerializer(shop).data)

    if not can_manage(request.user):
        logger.warning(f"User {request.user.username} attempted to modify shop {pk} without a managing role")
        return Response({'error': 'You do not have permission to modify shops'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        label = shop.shop_number
        try:
            shop.delete()
        except ProtectedError:
            logger.warning(f"Shop {pk} cannot be deleted, contracts reference it")
            return Response(
                {'error': 'This shop has contracts and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        log_activity(request=request, action='delete', entity='shop', entity_id=pk, entity_label=label)
        logger.info(f"Shop {pk} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_status = shop.status
    serializer = ShopSerializer(shop, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        logger.warning(f"Shop update validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    tenant = serializer.validated_data.pop('tenant', None)
    try:
        with transaction.atomic():
            shop = serializer.save()
            contract = None
            if shop.status == 'occupied' and tenant:
                contract = occupy_shop(shop, tenant, user=request.user)
    except IntegrityError as e:
        logger.error(f"IntegrityError updating shop {pk}: {str(e)}", exc_info=True)
        return Response({'error': 'A shop with this number already exists'}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(
        request=request,
        action='status_change' if old_status != shop.status else 'update',
        entity='shop',
        entity_id=shop.id,
        entity_label=shop.shop_number,
        details={
            'fields': sorted(k for k in request.data.keys() if k != 'tenant'),
            'status': {'old': old_status, 'new': shop.status},
            'contract_id': contract.id if contract else None,
        }
    )
    return Response(ShopSerializer(shop).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shop_options(request):
    """Shops for select lists; `available=true` keeps only shops without an active lease"""
    queryset = Shop.objects.all()
    if request.query_params.get('available') == 'true':
        queryset = queryset.exclude(contracts__status='active').exclude(status='under_renovation')
    return Response(ShopOptionSerializer(queryset, many=True).data)
