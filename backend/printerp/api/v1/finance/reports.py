"""
Finance report endpoints.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.db.base import get_db
from printerp.schemas.report import (
    TrialBalanceResponse, TrialBalanceRow, TrialBalanceTotals,
    IncomeStatementResponse, IncomeStatementSection, IncomeStatementLine,
    BudgetVsActualResponse, BudgetVsActualRow, BudgetVsActualTotals,
)
from printerp.services import reports as report_service

router = APIRouter()


def trial_balance_to_response(report: report_service.TrialBalance) -> TrialBalanceResponse:
    return TrialBalanceResponse(
        accounts=[
            TrialBalanceRow(
                account_id=line.account_id,
                code=line.code,
                name=line.name,
                account_type=line.account_type,
                debit=line.debit,
                credit=line.credit,
                balance=line.balance,
            )
            for line in report.accounts
        ],
        totals=TrialBalanceTotals(debit=report.total_debit, credit=report.total_credit),
        as_of_date=report.as_of_date,
        period_id=report.period_id,
        period_name=report.period_name,
    )


def income_section_to_response(section: report_service.IncomeStatementSection) -> IncomeStatementSection:
    def lines(items):
        return [
            IncomeStatementLine(account_id=i.account_id, code=i.code, name=i.name, amount=i.amount)
            for i in items
        ]

    return IncomeStatementSection(
        start_date=section.start_date,
        end_date=section.end_date,
        revenue=lines(section.revenue),
        expenses=lines(section.expenses),
        total_revenue=section.total_revenue,
        total_expenses=section.total_expenses,
        net_income=section.net_income,
    )


def variance_row_to_response(row: report_service.BudgetVarianceLine) -> BudgetVsActualRow:
    return BudgetVsActualRow(
        account_id=row.account_id,
        account_code=row.account_code,
        account_name=row.account_name,
        account_type=row.account_type,
        budget_amount=row.budget_amount,
        actual_amount=row.actual_amount,
        variance=row.variance,
        variance_percentage=row.variance_percentage,
    )


def budget_vs_actual_to_response(report: report_service.BudgetVsActual) -> BudgetVsActualResponse:
    return BudgetVsActualResponse(
        year=report.year,
        department_id=report.department_id,
        rows=[variance_row_to_response(row) for row in report.rows],
        totals=BudgetVsActualTotals(
            budget_amount=report.budget_amount,
            actual_amount=report.actual_amount,
            variance=report.variance,
            variance_percentage=report.variance_percentage,
        ),
    )


@router.get("/reports/trial-balance", response_model=TrialBalanceResponse)
async def trial_balance(
    as_of_date: Optional[date] = Query(None, alias="asOfDate"),
    period_id: Optional[str] = Query(None, alias="periodId"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Trial balance from posted entries.
    ``periodId`` limits it to one period; otherwise it is cumulative up to ``asOfDate``.
    """
    report = await report_service.compute_trial_balance(db, as_of_date=as_of_date, period_id=period_id)
    return trial_balance_to_response(report)


@router.get("/reports/income-statement", response_model=IncomeStatementResponse)
async def income_statement(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    period_id: Optional[str] = Query(None, alias="periodId"),
    compare_to_previous: bool = Query(False, alias="compareToPrevious"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    report = await report_service.compute_income_statement(
        db,
        start_date=start_date,
        end_date=end_date,
        period_id=period_id,
        compare_to_previous=compare_to_previous,
    )
    return IncomeStatementResponse(
        current=income_section_to_response(report.current),
        previous=income_section_to_response(report.previous) if report.previous else None,
        period_id=report.period_id,
        period_name=report.period_name,
    )


@router.get("/reports/budget-vs-actual", response_model=BudgetVsActualResponse)
async def budget_vs_actual(
    year: int = Query(..., ge=1900, le=9999),
    department_id: Optional[str] = Query(None, alias="departmentId"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Budgeted versus posted amounts per budgeted account for a year."""
    report = await report_service.compute_budget_vs_actual(year, db, department_id=department_id)
    return budget_vs_actual_to_response(report)
