"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .model_cache import invalidate_shop_list_cache, invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

# Models whose writes change the shop list and/or the dashboard (shop rows embed the current tenant)
SHOP_LIST_MODELS = {'Shop', 'Tenant', 'Contract'}
DASHBOARD_MODELS = {'Shop', 'Tenant', 'Contract', 'Invoice', 'Payment'}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    previous = is_suspended()
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = previous


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def invalidate_console_caches():
    """Invalidate every cached console view (after bulk updates)"""
    try:
        invalidate_shop_list_cache()
        invalidate_dashboard_cache()
        logger.info("Invalidated shop list and dashboard caches")
    except Exception as e:
        logger.warning(f"Error invalidating console caches: {e}")


# --- Signal Handlers ---

@receiver([post_save, post_delete])
def invalidate_console_cache(sender, instance, **kwargs):
    """Invalidate shop list / dashboard cache when lease data changes"""
    if is_suspended():
        return

    model_name = sender.__name__
    if model_name not in DASHBOARD_MODELS:
        return

    try:
        if model_name in SHOP_LIST_MODELS:
            invalidate_shop_list_cache()
        invalidate_dashboard_cache()
    except Exception as e:
        logger.warning(f"Error in invalidate_console_cache signal: {e}")
