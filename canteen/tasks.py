"""
Celery Tasks
Background export of committed orders to the kitchen spreadsheet.
"""

import logging
import time
from datetime import datetime
from typing import Any

from canteen.celery_worker import celery_app
from canteen.ordering.workflow import SubmissionResult
from canteen.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


def order_export_payload(result: SubmissionResult) -> dict[str, Any]:
    """JSON-serializable description of a committed submission."""
    submitter = result.submitter
    return {
        "order_id": result.order_id,
        "created_at": datetime.now().isoformat(),
        "user_name": submitter.name if submitter else None,
        "registration": submitter.registration if submitter else None,
        "observations": submitter.notes if submitter else None,
        "dishes": [{"id": entry.item_id, "name": entry.name} for entry in result.entries],
    }


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True,
)
def export_order_to_excel(self, order_data: dict) -> dict:
    """
    Export a committed order to Excel.
    This task runs asynchronously via Celery worker.

    Args:
        order_data: Payload built by ``order_export_payload``

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = order_data.get("order_id", "unknown")

    logger.info(f"Task {task_id}: Processing Order #{order_id}")
    start_time = time.time()

    result = ExcelManager.export_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result["task_id"] = task_id
    result["processing_time_seconds"] = elapsed

    if result["success"]:
        logger.info(f"Task {task_id}: Order #{order_id} completed in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: Order #{order_id} failed - {result['message']}")

    return result

