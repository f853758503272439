"""
Check that the configured cache (Redis in production) serves the console caches.

Run it after setting REDIS_URL:
    python manage.py shell < Doc/test_redis_cache.py
"""
import os
import django

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.config.settings')
django.setup()

from django.core.cache import cache
from django.conf import settings

from backend.core.model_cache import (
    cache_dashboard,
    cache_shop_list,
    get_cached_dashboard,
    get_cached_shop_list,
    get_shop_list_cache_key,
    invalidate_dashboard_cache,
    invalidate_shop_list_cache,
)

print("=" * 60)
print("Console Cache Check")
print("=" * 60)

print(f"\n1. Cache Backend: {settings.CACHES['default']['BACKEND']}")
print(f"2. Cache Location: {settings.CACHES['default'].get('LOCATION', 'N/A')}")

print("\n3. Basic operations:")
print("-" * 60)

try:
    cache.set('cache_check_key', 'value', 60)
    if cache.get('cache_check_key') == 'value':
        print("✅ Cache SET/GET: Success")
    else:
        print("❌ Cache GET: value does not match")
    cache.delete('cache_check_key')
    print("✅ Cache DELETE: Success")

    print("\n4. Shop list and dashboard caches:")
    print("-" * 60)
    sample_shops = [{'id': 0, 'shop_number': 'CHECK-1', 'status': 'vacant'}]
    cache_shop_list('vacant', sample_shops)
    print(f"✅ Shop list key: {get_shop_list_cache_key('vacant')}")
    if get_cached_shop_list('vacant') == sample_shops:
        print("✅ Shop list retrieval: Success")
    else:
        print("❌ Shop list retrieval: Failed")

    cache_dashboard({'shops': {'total': 0}})
    if get_cached_dashboard() is not None:
        print("✅ Dashboard retrieval: Success")
    else:
        print("❌ Dashboard retrieval: Failed")

    invalidate_shop_list_cache()
    invalidate_dashboard_cache()
    if get_cached_shop_list('vacant') is None and get_cached_dashboard() is None:
        print("✅ Invalidation: Success")
    else:
        print("❌ Invalidation: entries still cached")

    print("\n" + "=" * 60)
    print("✅ Cache is working correctly")
    print("=" * 60)

except Exception as e:
    print(f"\n❌ ERROR: {str(e)}")
    print(f"   Error type: {type(e).__name__}")
    print("\n" + "=" * 60)
    print("❌ Cache check failed. Please check:")
    print("   1. REDIS_URL is set correctly in the environment")
    print("   2. django-redis is installed: pip install django-redis")
    print("   3. Redis service is accessible from your server")
    print("=" * 60)
