"""
Daily maintenance run: overdue marking, payment reminders, contract
renewals and, on the first of the month, rent invoice generation.

Triggered once a day by cron (`manage.py run_scheduled_tasks`) or by an
administrator through POST /api/v1/tasks/run/.
"""
import logging
from django.utils import timezone

from backend.billing.services import mark_overdue_invoices, send_payment_reminders, generate_monthly_invoices
from backend.contracts.services import auto_renew_contracts
from .cache_signals import suspend_cache_signals, invalidate_console_caches
from .utils import log_activity

logger = logging.getLogger('backend.core')


def run_scheduled_tasks(today=None, force_invoices=False, actor=None, request=None):
    """
    Run the daily tasks in order and return a summary.

    Exceptions from a task propagate to the caller after the caches are
    invalidated, so partial work is still reflected.
    """
    today = today or timezone.localdate()
    logger.info(f"Running scheduled tasks for {today}")

    results = {}
    try:
        with suspend_cache_signals():
            results['overdue_invoices'] = mark_overdue_invoices(today)
            logger.info(f"Marked {results['overdue_invoices']} overdue invoices")

            results['payment_reminders'] = send_payment_reminders(today)
            logger.info(f"Sent {results['payment_reminders']} payment reminders")

            results['contracts_processed'] = auto_renew_contracts(today)
            logger.info(f"Processed {results['contracts_processed']} contract renewals")

            if today.day == 1 or force_invoices:
                results['invoices_generated'] = generate_monthly_invoices(today)
                logger.info(f"Generated {results['invoices_generated']} monthly invoices")
            else:
                results['invoices_generated'] = None
    finally:
        invalidate_console_caches()

    log_activity(
        request=request,
        actor=actor,
        action='scheduled_task',
        entity='system',
        entity_label='scheduled-tasks',
        details={'date': str(today), 'force_invoices': force_invoices, 'results': results},
    )
    return {
        'success': True,
        'message': 'Scheduled tasks completed',
        'timestamp': timezone.now().isoformat(),
        'results': results,
    }
