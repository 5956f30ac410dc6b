from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hospital_finance.core.dependencies import get_report_db
from hospital_finance.logger_config import logger
from hospital_finance.schemas.reports import (
    BalanceSheetResponse,
    CategoryDetailResponse,
    IncomeExpenditureResponse,
    OpticsStockReportResponse,
    ReceiptPaymentResponse,
    RowDetailResponse,
)
from hospital_finance.services.balance_sheet import BalanceSheetService
from hospital_finance.services.category_aggregator import SPECIAL
from hospital_finance.services.income_expenditure import IncomeExpenditureService
from hospital_finance.services.receipt_payment import ReceiptPaymentService
from hospital_finance.services.stock_valuation import StockValuationService
from hospital_finance.utils.dates import resolve_as_on_date, resolve_period

router = APIRouter()


def _store_unavailable(action: str) -> HTTPException:
    logger.exception(f"Ledger store failure while {action}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Ledger store unavailable",
    )


def _failed(action: str) -> HTTPException:
    logger.exception(f"Error while {action}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed {action}",
    )


# ==================== BALANCE SHEET ====================

@router.get("/balance-sheet", response_model=BalanceSheetResponse)
def get_balance_sheet(
    db: Session = Depends(get_report_db),
    as_on_date: Optional[str] = Query(None),
):
    as_on = resolve_as_on_date(as_on_date)
    try:
        report = BalanceSheetService(db).generate(as_on)
        return BalanceSheetResponse(**report)
    except SQLAlchemyError:
        raise _store_unavailable("generating balance sheet")
    except Exception:
        raise _failed("generating balance sheet")


# ==================== INCOME & EXPENDITURE ====================

@router.get("/income-expenditure", response_model=IncomeExpenditureResponse)
def get_income_expenditure(
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
):
    start, end = resolve_period(from_date, to_date)
    try:
        report = IncomeExpenditureService(db).generate(start, end)
        return IncomeExpenditureResponse(**report)
    except SQLAlchemyError:
        raise _store_unavailable("generating income & expenditure")
    except Exception:
        raise _failed("generating income & expenditure")


@router.get("/income-expenditure/income/{category_id}", response_model=CategoryDetailResponse)
def get_income_details(
    category_id: int,
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
):
    start, end = resolve_period(from_date, to_date)
    try:
        details = IncomeExpenditureService(db).income_details(category_id, start, end)
        if not details:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Income category {category_id} not found",
            )
        return CategoryDetailResponse(filters={"from_date": start, "to_date": end}, **details)
    except HTTPException:
        raise
    except SQLAlchemyError:
        raise _store_unavailable(f"fetching income details for {category_id}")
    except Exception:
        raise _failed(f"fetching income details for {category_id}")


@router.get("/income-expenditure/expense/{category_id}", response_model=CategoryDetailResponse)
def get_expense_details(
    category_id: str,
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
    label: Optional[str] = Query(None),
):
    """
    category_id is a numeric expense category or "special" for uncategorised
    expenses; label narrows "special" to one row.
    """
    if category_id != SPECIAL and not category_id.isdigit():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Expense category {category_id} not found",
        )
    start, end = resolve_period(from_date, to_date)
    try:
        details = IncomeExpenditureService(db).expense_details(category_id, start, end, label)
        if not details:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Expense category {category_id} not found",
            )
        return CategoryDetailResponse(filters={"from_date": start, "to_date": end}, **details)
    except HTTPException:
        raise
    except SQLAlchemyError:
        raise _store_unavailable(f"fetching expense details for {category_id}")
    except Exception:
        raise _failed(f"fetching expense details for {category_id}")


# ==================== RECEIPT & PAYMENT ====================

@router.get("/receipt-payment", response_model=ReceiptPaymentResponse)
def get_receipt_payment(
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
):
    start, end = resolve_period(from_date, to_date)
    try:
        report = ReceiptPaymentService(db).generate(start, end)
        return ReceiptPaymentResponse(**report)
    except SQLAlchemyError:
        raise _store_unavailable("generating receipt & payment")
    except Exception:
        raise _failed("generating receipt & payment")


@router.get("/receipt-payment/export", response_model=ReceiptPaymentResponse)
def export_receipt_payment(
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
):
    start, end = resolve_period(from_date, to_date)
    try:
        report = ReceiptPaymentService(db).export(start, end)
        logger.info(f"Receipt & payment exported for {start} .. {end}")
        return ReceiptPaymentResponse(**report)
    except SQLAlchemyError:
        raise _store_unavailable("exporting receipt & payment")
    except Exception:
        raise _failed("exporting receipt & payment")


@router.get("/receipt-payment/receipts/details", response_model=RowDetailResponse)
def get_receipt_details(
    type: str = Query(..., description="fund_in, income or special_income"),
    category: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
):
    start, end = resolve_period(from_date, to_date)
    try:
        details = ReceiptPaymentService(db).receipt_details(type, start, end, category, category_id)
        if not details:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Income category {category_id} not found",
            )
        return RowDetailResponse(**details)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except SQLAlchemyError:
        raise _store_unavailable(f"fetching {type} receipt details")
    except Exception:
        raise _failed(f"fetching {type} receipt details")


@router.get("/receipt-payment/payments/details", response_model=RowDetailResponse)
def get_payment_details(
    type: str = Query(..., description="fund_out, expense or special_expense"),
    category: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
):
    start, end = resolve_period(from_date, to_date)
    try:
        details = ReceiptPaymentService(db).payment_details(type, start, end, category, category_id)
        if not details:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Expense category {category_id} not found",
            )
        return RowDetailResponse(**details)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except SQLAlchemyError:
        raise _store_unavailable(f"fetching {type} payment details")
    except Exception:
        raise _failed(f"fetching {type} payment details")


# ==================== OPTICS STOCK ====================

@router.get("/optics-stock", response_model=OpticsStockReportResponse)
def get_optics_stock(
    db: Session = Depends(get_report_db),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
):
    start, end = resolve_period(from_date, to_date)
    try:
        report = StockValuationService(db).stock_report(start, end)
        return OpticsStockReportResponse(filters={"from_date": start, "to_date": end}, **report)
    except SQLAlchemyError:
        raise _store_unavailable("generating optics stock report")
    except Exception:
        raise _failed("generating optics stock report")
