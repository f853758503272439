import logging
from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from backend.core.permissions import can_manage
from backend.core.utils import log_activity, error_message
from .filters import ContractFilter
from .models import Contract
from .serializers import ContractSerializer, ContractRenewSerializer, ContractTerminateSerializer
from .services import sync_shop_occupancy, terminate_contract, renew_contract

logger = logging.getLogger('backend.contracts')


def _forbidden(request, what):
    logger.warning(f"User {request.user.username} attempted to {what} without a managing role")
    return Response({'error': 'You do not have permission to manage contracts'}, status=status.HTTP_403_FORBIDDEN)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contract_list_create(request):
    """List contracts with tenant and shop summaries or create a contract"""
    if request.method == 'GET':
        queryset = Contract.objects.select_related('tenant', 'shop')
        contract_filter = ContractFilter(request.query_params, queryset=queryset)
        if not contract_filter.is_valid():
            return Response(contract_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer = ContractSerializer(contract_filter.qs, many=True)
        return Response(serializer.data)

    if not can_manage(request.user):
        return _forbidden(request, 'create a contract')

    serializer = ContractSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Contract creation validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        with transaction.atomic():
            contract = serializer.save(created_by=request.user)
            sync_shop_occupancy(contract.shop)
    except IntegrityError as e:
        # Two concurrent requests for the same shop both passed validation
        logger.error(f"IntegrityError creating contract: {str(e)}", exc_info=True)
        return Response({'error': 'This shop already has an active contract'}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(
        request=request,
        action='create',
        entity='contract',
        entity_id=contract.id,
        entity_label=contract.label,
        details={
            'shop': contract.shop.shop_number,
            'tenant': contract.tenant.company_name,
            'status': contract.status,
            'rent_amount': str(contract.rent_amount),
            'currency': contract.currency,
        }
    )
    logger.info(f"Contract {contract.id} created by {request.user.username}")
    return Response(ContractSerializer(contract).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def contract_detail(request, pk):
    """Retrieve, update or delete a contract"""
    contract = get_object_or_404(Contract.objects.select_related('tenant', 'shop'), pk=pk)

    if request.method == 'GET':
        return Response(ContractSerializer(contract).data)

    if not can_manage(request.user):
        return _forbidden(request, f'modify contract {pk}')

    if request.method == 'DELETE':
        shop = contract.shop
        label = contract.label
        try:
            with transaction.atomic():
                contract.delete()
                sync_shop_occupancy(shop)
        except ProtectedError:
            logger.warning(f"Contract {pk} cannot be deleted, invoices reference it")
            return Response(
                {'error': 'This contract has invoices and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        log_activity(request=request, action='delete', entity='contract', entity_id=pk, entity_label=label)
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_shop = contract.shop
    old_status = contract.status
    serializer = ContractSerializer(contract, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        logger.warning(f"Contract update validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        with transaction.atomic():
            contract = serializer.save()
            sync_shop_occupancy(contract.shop)
            if old_shop.pk != contract.shop_id:
                sync_shop_occupancy(old_shop)
    except IntegrityError as e:
        logger.error(f"IntegrityError updating contract {pk}: {str(e)}", exc_info=True)
        return Response({'error': 'This shop already has an active contract'}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(
        request=request,
        action='status_change' if old_status != contract.status else 'update',
        entity='contract',
        entity_id=contract.id,
        entity_label=contract.label,
        details={
            'fields': sorted(request.data.keys()),
            'status': {'old': old_status, 'new': contract.status},
        }
    )
    return Response(ContractSerializer(contract).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_terminate(request, pk):
    """Terminate a contract and free its shop"""
    contract = get_object_or_404(Contract.objects.select_related('tenant', 'shop'), pk=pk)
    if not can_manage(request.user):
        return _forbidden(request, f'terminate contract {pk}')

    params = ContractTerminateSerializer(data=request.data)
    if not params.is_valid():
        return Response(params.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = contract.status
    try:
        terminate_contract(contract, end_date=params.validated_data.get('end_date'))
    except serializers.ValidationError as e:
        logger.warning(f"Contract {pk} termination refused: {e.detail}")
        return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(
        request=request,
        action='terminate',
        entity='contract',
        entity_id=contract.id,
        entity_label=contract.label,
        details={'status': {'old': old_status, 'new': contract.status}, 'end_date': str(contract.end_date)}
    )
    return Response(ContractSerializer(contract).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_renew(request, pk):
    """Extend a contract by a number of months (default 12)"""
    contract = get_object_or_404(Contract.objects.select_related('tenant', 'shop'), pk=pk)
    if not can_manage(request.user):
        return _forbidden(request, f'renew contract {pk}')

    params = ContractRenewSerializer(data=request.data)
    if not params.is_valid():
        return Response(params.errors, status=status.HTTP_400_BAD_REQUEST)

    old_end_date = contract.end_date
    try:
        renew_contract(contract, months=params.validated_data['months'])
    except serializers.ValidationError as e:
        logger.warning(f"Contract {pk} renewal refused: {e.detail}")
        return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(
        request=request,
        action='renew',
        entity='contract',
        entity_id=contract.id,
        entity_label=contract.label,
        details={
            'months': params.validated_data['months'],
            'end_date': {'old': str(old_end_date) if old_end_date else None, 'new': str(contract.end_date)},
        }
    )
    return Response(ContractSerializer(contract).data)
