"""
Caching for frequently read console data: the shop list and the dashboard.

Both are read on almost every page load and change only when shops,
contracts, invoices or payments are written, so they are cached and
invalidated from model signals (see cache_signals).
"""
from django.core.cache import cache
import logging

logger = logging.getLogger(__name__)

# Cache key prefixes
SHOP_LIST_KEY_PREFIX = 'shop_list:'
DASHBOARD_KEY = 'dashboard_stats'

# Cache TTL (Time To Live) in seconds
SHOP_LIST_CACHE_TTL = 600  # 10 minutes
DASHBOARD_CACHE_TTL = 300  # 5 minutes

# Shop list variants that are cached (unfiltered list, per-status lists)
SHOP_LIST_VARIANTS = ['all', 'vacant', 'occupied', 'under_renovation']


# ==================== SHOP LIST CACHING ====================

def get_shop_list_cache_key(variant: str = 'all') -> str:
    """Get cache key for the shop list (optionally restricted to a status)"""
    return f"{SHOP_LIST_KEY_PREFIX}{variant or 'all'}"


def get_cached_shop_list(variant: str = 'all'):
    cached_data = cache.get(get_shop_list_cache_key(variant))
    if cached_data is not None:
        logger.debug(f"Cache hit for shop list ({variant})")
    return cached_data


def cache_shop_list(variant: str, data, ttl: int = None):
    if variant not in SHOP_LIST_VARIANTS:
        return
    cache.set(get_shop_list_cache_key(variant), data, ttl or SHOP_LIST_CACHE_TTL)
    logger.debug(f"Cached shop list ({variant}), {len(data)} shops")


def invalidate_shop_list_cache():
    cache.delete_many([get_shop_list_cache_key(v) for v in SHOP_LIST_VARIANTS])
    logger.debug("Invalidated shop list cache")


# ==================== DASHBOARD CACHING ====================

def get_cached_dashboard():
    cached_data = cache.get(DASHBOARD_KEY)
    if cached_data is not None:
        logger.debug("Cache hit for dashboard stats")
    return cached_data


def cache_dashboard(data, ttl: int = None):
    cache.set(DASHBOARD_KEY, data, ttl or DASHBOARD_CACHE_TTL)
    logger.debug("Cached dashboard stats")


def invalidate_dashboard_cache():
    cache.delete(DASHBOARD_KEY)
    logger.debug("Invalidated dashboard cache")
