# backend/retail_pos/routes/reports.py
"""
Report procedures (manager only).

Both reports take {start_date, end_date}. A date-only end_date covers the
whole day; only completed transactions are counted.
"""
from ..decorators import require_auth, require_role
from ..rpc import registry, takes_input
from ..services import reporting_service
from ..validation import Field

REPORT_RANGE_INPUT = {
    "start_date": Field("date"),
    "end_date": Field("date"),
}


@registry.query("getSalesReport")
@require_auth
@require_role("manager")
@takes_input(REPORT_RANGE_INPUT)
def get_sales_report(data):
    return reporting_service.sales_report(start=data["start_date"], end=data["end_date"])


@registry.query("getProfitLossReport")
@require_auth
@require_role("manager")
@takes_input(REPORT_RANGE_INPUT)
def get_profit_loss_report(data):
    return reporting_service.profit_loss_report(start=data["start_date"], end=data["end_date"])
