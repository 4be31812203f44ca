"""
Excel File Manager with Concurrency Control

Process-safe export of committed orders to the kitchen's spreadsheet.
Several Celery workers may append at the same time, so every write holds
a file lock around the read-modify-write cycle.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from filelock import FileLock, Timeout

from canteen.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

DATA_DIR = Path(settings.data_directory)
ORDERS_FILE = DATA_DIR / settings.excel_filename
ORDERS_LOCK = DATA_DIR / f"{settings.excel_filename}.lock"


class ExcelManager:
    """Locked Excel writer for committed orders."""

    LOCK_TIMEOUT = settings.excel_lock_timeout

    ORDER_COLUMNS = [
        "order_id",
        "date_time",
        "user_name",
        "registration",
        "observations",
        "dishes",
        "dish_ids",
        "item_count",
        "exported_at",
    ]

    # Registrations keep their leading zeros when the workbook is re-read
    COLUMN_DTYPES = {
        "order_id": "Int64",
        "registration": str,
        "dish_ids": str,
    }

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        if not DATA_DIR.exists():
            DATA_DIR.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {DATA_DIR}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl", dtype=cls.COLUMN_DTYPES)
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
        return pd.DataFrame(columns=cls.ORDER_COLUMNS)

    @classmethod
    def export_order(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """
        Append one committed order to the spreadsheet.

        Args:
            order_data: Payload built by ``order_export_payload``

        Returns:
            dict with success, message, order_id and exported_at
        """
        cls._ensure_data_dir()

        order_id = order_data.get("order_id", 0)
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            lock = FileLock(str(ORDERS_LOCK), timeout=cls.LOCK_TIMEOUT)

            with lock:
                logger.debug(f"Lock acquired for Order #{order_id}")

                df = cls._load_or_create_df(ORDERS_FILE)

                export_time = datetime.now().isoformat()
                dishes = order_data.get("dishes") or []
                new_row = {
                    "order_id": order_id,
                    "date_time": order_data.get("created_at", export_time),
                    "user_name": order_data.get("user_name"),
                    "registration": order_data.get("registration"),
                    "observations": order_data.get("observations") or "",
                    "dishes": ", ".join(dish["name"] for dish in dishes),
                    "dish_ids": ", ".join(dish["id"] for dish in dishes),
                    "item_count": len(dishes),
                    "exported_at": export_time,
                }

                df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(ORDERS_FILE), index=False, engine="openpyxl")

                logger.info(f"Order #{order_id} exported to Excel")

                result["success"] = True
                result["message"] = f"Order #{order_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for Order #{order_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({cls.LOCK_TIMEOUT}s)"
            logger.error(f"Lock timeout for Order #{order_id}")

        return result

    @classmethod
    def get_all_orders(cls) -> list[dict[str, Any]]:
        """Get all exported orders."""
        if not ORDERS_FILE.exists():
            return []

        try:
            df = pd.read_excel(ORDERS_FILE, engine="openpyxl", dtype=cls.COLUMN_DTYPES)
            return df.to_dict("records")
        except Exception as e:
            logger.error(f"Error reading orders: {e}")
            return []

    @classmethod
    def clear_all_orders(cls) -> bool:
        """Delete the spreadsheet and its lock file."""
        try:
            for f in [ORDERS_FILE, ORDERS_LOCK]:
                if f.exists():
                    f.unlink()
            logger.info("Excel export cleared")
            return True
        except OSError as e:
            logger.error(f"Error clearing files: {e}")
            return False
