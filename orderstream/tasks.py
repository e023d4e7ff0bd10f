"""
Celery Tasks
Background side effects of order events.
"""

import asyncio
import time

from celery.utils.log import get_task_logger

from orderstream.celery_worker import celery_app
from orderstream.services.sms import get_sms_service

logger = get_task_logger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def send_order_status_sms(self, contact_number: str, daily_order_id: int, status: str) -> dict:
    """
    Text a customer that their order changed status.

    Args:
        contact_number: Number the order was placed with
        daily_order_id: Order number shown to the customer
        status: New order status (only prepared/delivered produce a message)

    Returns:
        dict: Result of the send
    """
    task_id = self.request.id
    start_time = time.time()

    result = asyncio.run(
        get_sms_service().send_order_status(contact_number, daily_order_id, status)
    )

    elapsed = round(time.time() - start_time, 3)
    if result.success:
        logger.info(f"✅ Task {task_id}: '{status}' SMS for order #{daily_order_id} sent in {elapsed}s")
    else:
        logger.warning(
            f"⚠️ Task {task_id}: '{status}' SMS for order #{daily_order_id} failed - {result.error_message}"
        )

    return {
        'success': result.success,
        'message_id': result.message_id,
        'provider': result.provider,
        'error_message': result.error_message,
        'task_id': task_id,
        'processing_time_seconds': elapsed,
    }
