"""
Excel Verification Script

Verifies data integrity of the kitchen export file.
Run from project root: python scripts/verify.py

Version: 1.0.0
"""

import os
from datetime import datetime

import pandas as pd

from canteen.core.config import get_settings
from canteen.services.excel_manager import ExcelManager

settings = get_settings()
EXCEL_FILE = os.path.join(settings.data_directory, settings.excel_filename)

REQUIRED_COLUMNS = ["order_id", "user_name", "registration", "dishes", "item_count"]


def verify_excel() -> bool:
    """Verify the export after a simulation or a day of service."""

    print("=" * 60)
    print("EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"File: {EXCEL_FILE}")
    print("=" * 60)

    if not os.path.exists(EXCEL_FILE):
        print("\nExcel file not found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    try:
        df = pd.read_excel(EXCEL_FILE, engine="openpyxl", dtype=ExcelManager.COLUMN_DTYPES)
        print("\nFile loaded successfully!")
    except (OSError, ValueError) as e:
        print(f"\nCould not read Excel file: {e}")
        return False

    print("\nSTATISTICS:")
    print(f"   Total Orders: {len(df)}")
    print(f"   Columns: {len(df.columns)}")

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        print(f"\nMissing Columns: {missing}")
    else:
        print("\nAll required columns present")

    ok = not missing

    if "order_id" in df.columns:
        duplicates = df["order_id"].duplicated().sum()
        if duplicates > 0:
            print(f"\n{duplicates} duplicate order IDs found!")
            ok = False
        else:
            print("No duplicate order IDs")

    if "item_count" in df.columns:
        empty = int((df["item_count"] == 0).sum())
        if empty:
            print(f"\n{empty} exported order(s) without dishes!")
            ok = False
        print(f"\nDishes ordered: {int(df['item_count'].sum())}")

    if "registration" in df.columns:
        print(f"Distinct registrations: {df['registration'].nunique()}")

    print("\nRECENT ORDERS:")
    print("-" * 60)
    if len(df) > 0:
        cols = [c for c in ["order_id", "user_name", "registration", "dishes"] if c in df.columns]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("VERIFICATION COMPLETE" if ok else "VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    verify_excel()
