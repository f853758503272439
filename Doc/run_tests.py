#!/usr/bin/env python
"""
Run the test suites of every console app
Usage: python Doc/run_tests.py
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests([
        'backend.core',
        'backend.shops',
        'backend.parties',
        'backend.contracts',
        'backend.billing',
        'backend.reports',
    ])
    sys.exit(bool(failures))
