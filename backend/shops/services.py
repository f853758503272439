"""Shop occupancy: marking a shop occupied leases it to a tenant"""
import logging
from django.utils import timezone

from backend.contracts.models import Contract
from backend.contracts.services import add_months

logger = logging.getLogger('backend.shops')


def occupy_shop(shop, tenant, user=None, today=None):
    """
    Create the one-year lease for a shop that was just marked occupied.

    Returns the new contract, or None when the shop already has an active
    contract (the same tenant keeps its lease).
    """
    if shop.active_contract:
        logger.debug(f"Shop {shop.shop_number} already has an active contract")
        return None

    today = today or timezone.localdate()
    rent = shop.rent_or_zero
    contract = Contract.objects.create(
        shop=shop,
        tenant=tenant,
        start_date=today,
        end_date=add_months(today, 12),
        rent_amount=rent,
        deposit=rent * 2,
        charges=0,
        payment_day=1,
        status='active',
        auto_renewal=False,
        contract_type='commercial',
        created_by=user,
    )
    logger.info(f"Contract {contract.id} created for shop {shop.shop_number} and tenant {tenant.id}")
    return contract
