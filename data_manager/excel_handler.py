"""Excel workbook storage for loan snapshots, applied prepayments and settings"""
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd
from openpyxl import load_workbook

from config.constants import (
    SHEET_LOANS, SHEET_PREPAYMENTS, SHEET_CONFIG,
    LOANS_COLUMNS, PREPAYMENTS_COLUMNS, CONFIG_COLUMNS,
)
from config.settings import BACKUP_KEEP, DEFAULT_CURRENCY_SYMBOL, DEFAULT_INTEREST_TYPE, EXCEL_FILE
from data_manager.schema import LoanSnapshot
from utils.date_utils import parse_date

logger = logging.getLogger(__name__)


def _default_config_rows() -> List[dict]:
    now = datetime.now().isoformat()
    return [
        {"key": "currency_symbol", "value": DEFAULT_CURRENCY_SYMBOL, "description": "Currency symbol", "updated_at": now},
        {"key": "interest_type", "value": DEFAULT_INTEREST_TYPE, "description": "Default interest type for new loans", "updated_at": now},
    ]


def init_excel(filepath: Path = EXCEL_FILE):
    """Create the workbook with every sheet and header row"""
    if filepath.exists():
        return
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        pd.DataFrame(columns=LOANS_COLUMNS).to_excel(
            writer, sheet_name=SHEET_LOANS, index=False)
        pd.DataFrame(columns=PREPAYMENTS_COLUMNS).to_excel(
            writer, sheet_name=SHEET_PREPAYMENTS, index=False)
        config_df = pd.DataFrame(_default_config_rows(), columns=CONFIG_COLUMNS)
        config_df.to_excel(writer, sheet_name=SHEET_CONFIG, index=False)
    logger.info("Initialised workbook %s", filepath)


def backup_excel(filepath: Path = EXCEL_FILE):
    """Copy the workbook aside before a write"""
    if filepath.exists():
        ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = filepath.with_suffix(f".xlsx.bak_{ts}")
        shutil.copy2(filepath, backup_path)
        # keep only the most recent backups
        backups = sorted(filepath.parent.glob(f"{filepath.stem}.xlsx.bak_*"))
        for old in backups[:-BACKUP_KEEP]:
            old.unlink()
            logger.debug("Removed old backup %s", old)


def read_sheet(sheet_name: str, filepath: Path = EXCEL_FILE) -> pd.DataFrame:
    init_excel(filepath)
    try:
        df = pd.read_excel(filepath, sheet_name=sheet_name, engine="openpyxl")
    except ValueError:
        df = pd.DataFrame()
    if "loan_id" in df.columns:
        df["loan_id"] = df["loan_id"].astype(str)
    return df


def write_sheet(df: pd.DataFrame, sheet_name: str, filepath: Path = EXCEL_FILE):
    """Replace one sheet, leaving the others untouched"""
    init_excel(filepath)
    backup_excel(filepath)

    wb = load_workbook(filepath)
    if sheet_name in wb.sheetnames:
        del wb[sheet_name]
    wb.save(filepath)

    with pd.ExcelWriter(filepath, engine="openpyxl", mode="a", if_sheet_exists="replace") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    logger.info("Wrote %d rows to sheet %r of %s", len(df), sheet_name, filepath)


# ---- loan rows <-> snapshots ----

def _text(value) -> str:
    return "" if pd.isna(value) else str(value)


def snapshot_to_row(loan: LoanSnapshot) -> dict:
    return {
        "loan_id": loan.loan_id,
        "name": loan.name,
        "loan_type": loan.loan_type.value,
        "principal": loan.principal,
        "interest_rate_pct": loan.interest_rate_pct,
        "interest_type": loan.interest_type.value,
        "original_tenure_months": loan.original_tenure_months,
        "installment": loan.installment,
        "outstanding_balance": loan.outstanding_balance,
        "start_date": loan.start_date.isoformat(),
        "status": loan.status.value,
        "notes": loan.notes,
    }


def row_to_snapshot(row) -> LoanSnapshot:
    return LoanSnapshot(
        loan_id=_text(row["loan_id"]),
        name=_text(row["name"]),
        loan_type=row["loan_type"],
        principal=float(row["principal"]),
        interest_rate_pct=float(row["interest_rate_pct"]),
        interest_type=row["interest_type"],
        original_tenure_months=int(row["original_tenure_months"]),
        installment=float(row["installment"]),
        outstanding_balance=float(row["outstanding_balance"]),
        start_date=parse_date(row["start_date"]),
        status=row["status"],
        notes=_text(row["notes"]),
    )


# ---- loans ----

def get_all_loans(filepath: Path = EXCEL_FILE) -> pd.DataFrame:
    return read_sheet(SHEET_LOANS, filepath)


def list_loans(filepath: Path = EXCEL_FILE) -> List[LoanSnapshot]:
    df = get_all_loans(filepath)
    return [row_to_snapshot(row) for _, row in df.iterrows()]


def load_loan(loan_id: str, filepath: Path = EXCEL_FILE) -> Optional[LoanSnapshot]:
    df = get_all_loans(filepath)
    match = df[df["loan_id"] == loan_id]
    if match.empty:
        return None
    return row_to_snapshot(match.iloc[0])


def save_loan(loan: LoanSnapshot, filepath: Path = EXCEL_FILE):
    """Insert or replace the row with the snapshot's loan_id"""
    if not loan.loan_id:
        raise ValueError("Cannot save a loan without a loan_id")
    df = get_all_loans(filepath)
    df = df[df["loan_id"] != loan.loan_id]
    new_row = pd.DataFrame([snapshot_to_row(loan)], columns=LOANS_COLUMNS)
    df = new_row if df.empty else pd.concat([df, new_row], ignore_index=True)
    write_sheet(df, SHEET_LOANS, filepath)


def delete_loan(loan_id: str, filepath: Path = EXCEL_FILE):
    df = get_all_loans(filepath)
    df = df[df["loan_id"] != loan_id]
    write_sheet(df, SHEET_LOANS, filepath)
    # drop the loan's prepayment history too
    pdf = read_sheet(SHEET_PREPAYMENTS, filepath)
    if "loan_id" in pdf.columns:
        pdf = pdf[pdf["loan_id"] != loan_id]
        write_sheet(pdf, SHEET_PREPAYMENTS, filepath)


# ---- applied prepayments ----

def get_prepayments(loan_id: str, filepath: Path = EXCEL_FILE) -> pd.DataFrame:
    df = read_sheet(SHEET_PREPAYMENTS, filepath)
    return df[df["loan_id"] == loan_id].reset_index(drop=True)


def save_prepayment(record: dict, filepath: Path = EXCEL_FILE):
    df = read_sheet(SHEET_PREPAYMENTS, filepath)
    new_row = pd.DataFrame([record], columns=PREPAYMENTS_COLUMNS)
    df = new_row if df.empty else pd.concat([df, new_row], ignore_index=True)
    write_sheet(df, SHEET_PREPAYMENTS, filepath)


# ---- settings ----

def get_config(key: str, filepath: Path = EXCEL_FILE) -> Optional[str]:
    df = read_sheet(SHEET_CONFIG, filepath)
    match = df[df["key"] == key]
    if match.empty:
        return None
    return str(match.iloc[0]["value"])


def get_all_config(filepath: Path = EXCEL_FILE) -> pd.DataFrame:
    return read_sheet(SHEET_CONFIG, filepath)


def set_config(key: str, value: str, description: str = "", filepath: Path = EXCEL_FILE):
    df = read_sheet(SHEET_CONFIG, filepath)
    now = datetime.now().isoformat()
    if key in df["key"].values:
        df.loc[df["key"] == key, "value"] = value
        df.loc[df["key"] == key, "updated_at"] = now
        if description:
            df.loc[df["key"] == key, "description"] = description
    else:
        new_row = pd.DataFrame([{
            "key": key, "value": value,
            "description": description, "updated_at": now,
        }])
        df = pd.concat([df, new_row], ignore_index=True)
    write_sheet(df, SHEET_CONFIG, filepath)
