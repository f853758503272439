import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, ProtectedError, Q
from django.shortcuts import get_object_or_404

from backend.core.permissions import can_manage
from backend.core.utils import log_activity
from .filters import TenantFilter
from .models import Tenant
from .serializers import TenantSerializer, TenantOptionSerializer

logger = logging.getLogger('backend.parties')


# Tenant views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tenant_list_create(request):
    """List all tenants or create a new tenant"""
    if request.method == 'GET':
        queryset = Tenant.objects.annotate(
            active_contracts_count=Count('contracts', filter=Q(contracts__status='active'))
        ).order_by('company_name')
        tenant_filter = TenantFilter(request.query_params, queryset=queryset)
        if not tenant_filter.is_valid():
            return Response(tenant_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer = TenantSerializer(tenant_filter.qs, many=True)
        return Response(serializer.data)

    if not can_manage(request.user):
        logger.warning(f"User {request.user.username} attempted to create a tenant without a managing role")
        return Response({'error': 'You do not have permission to create tenants'}, status=status.HTTP_403_FORBIDDEN)

    serializer = TenantSerializer(data=request.data)
    if serializer.is_valid():
        tenant = serializer.save(created_by=request.user)
        log_activity(
            request=request,
            action='create',
            entity='tenant',
            entity_id=tenant.id,
            entity_label=tenant.company_name,
            details={'company_name': tenant.company_name, 'email': tenant.email}
        )
        logger.info(f"Tenant '{tenant.company_name}' created by {request.user.username}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    logger.warning(f"Tenant creation validation failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def tenant_detail(request, pk):
    """Retrieve, update or delete a tenant"""
    tenant = get_object_or_404(Tenant, pk=pk)

    if request.method == 'GET':
        return Response(TenantSerializer(tenant).data)

    if not can_manage(request.user):
        logger.warning(f"User {request.user.username} attempted to modify tenant {pk} without a managing role")
        return Response({'error': 'You do not have permission to modify tenants'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        label = tenant.company_name
        try:
            tenant.delete()
        except ProtectedError:
            logger.warning(f"Tenant {pk} cannot be deleted, contracts reference it")
            return Response(
                {'error': 'This tenant has contracts and cannot be deleted. Deactivate it instead.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        log_activity(request=request, action='delete', entity='tenant', entity_id=pk, entity_label=label)
        return Response(status=status.HTTP_204_NO_CONTENT)

    was_active = tenant.active
    serializer = TenantSerializer(tenant, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        tenant = serializer.save()
        log_activity(
            request=request,
            action='status_change' if was_active != tenant.active else 'update',
            entity='tenant',
            entity_id=tenant.id,
            entity_label=tenant.company_name,
            details={'fields': sorted(request.data.keys()), 'active': tenant.active}
        )
        return Response(serializer.data)
    logger.warning(f"Tenant update validation failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tenant_options(request):
    """Active tenants for contract and shop forms"""
    queryset = Tenant.objects.filter(active=True).order_by('company_name')
    return Response(TenantOptionSerializer(queryset, many=True).data)
