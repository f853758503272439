"""
Contract lifecycle rules: shop occupancy, termination, renewal and
the daily expiry/auto-renewal pass.
"""
import calendar
import logging
from datetime import date
from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from .models import Contract

logger = logging.getLogger('backend.contracts')


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month length"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def sync_shop_occupancy(shop):
    """
    Keep the shop status in line with its contracts.

    An active contract marks the shop occupied; an occupied shop left
    without an active contract becomes vacant again. Renovation status
    is left alone.
    """
    has_active = shop.contracts.filter(status='active').exists()
    new_status = shop.status
    if has_active:
        new_status = 'occupied'
    elif shop.status == 'occupied':
        new_status = 'vacant'

    if new_status != shop.status:
        logger.info(f"Shop {shop.shop_number} status {shop.status} -> {new_status}")
        shop.status = new_status
        shop.save(update_fields=['status', 'updated_at'])
    return shop.status


def terminate_contract(contract, end_date=None, today=None):
    if contract.status not in ('active', 'pending'):
        raise serializers.ValidationError(f'Only active or pending contracts can be terminated (status: {contract.status}).')

    today = today or timezone.localdate()
    end_date = end_date or today
    if end_date < contract.start_date:
        raise serializers.ValidationError('End date cannot be before the contract start date.')

    with transaction.atomic():
        contract.status = 'terminated'
        contract.end_date = end_date
        contract.save(update_fields=['status', 'end_date', 'updated_at'])
        sync_shop_occupancy(contract.shop)
    logger.info(f"Contract {contract.id} terminated on {end_date}")
    return contract


def renew_contract(contract, months=12, today=None):
    """Extend a contract by `months`; an expired contract becomes active again"""
    if contract.status == 'terminated':
        raise serializers.ValidationError('Terminated contracts cannot be renewed.')
    if months < 1:
        raise serializers.ValidationError('Renewal must extend the contract by at least one month.')

    today = today or timezone.localdate()
    with transaction.atomic():
        if contract.status == 'expired':
            if Contract.objects.filter(shop=contract.shop, status='active').exclude(pk=contract.pk).exists():
                raise serializers.ValidationError('This shop already has another active contract.')
            contract.status = 'active'
        contract.end_date = add_months(contract.end_date or today, months)
        contract.save(update_fields=['status', 'end_date', 'updated_at'])
        sync_shop_occupancy(contract.shop)
    logger.info(f"Contract {contract.id} renewed until {contract.end_date}")
    return contract


def auto_renew_contracts(today=None):
    """
    Process active contracts whose end date has passed.

    Contracts with auto renewal are extended by one year, the others
    expire and free their shop. Returns the number of contracts changed.
    """
    today = today or timezone.localdate()
    due = Contract.objects.filter(status='active', end_date__lt=today).select_related('shop')

    changed = 0
    for contract in due:
        with transaction.atomic():
            if contract.auto_renewal:
                contract.end_date = add_months(contract.end_date, 12)
                contract.save(update_fields=['end_date', 'updated_at'])
                logger.info(f"Contract {contract.id} auto-renewed until {contract.end_date}")
            else:
                contract.status = 'expired'
                contract.save(update_fields=['status', 'updated_at'])
                sync_shop_occupancy(contract.shop)
                logger.info(f"Contract {contract.id} expired")
        changed += 1
    return changed
