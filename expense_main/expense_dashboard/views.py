from decimal import Decimal

from django.utils import timezone
from django.views.decorators.http import require_GET

from expense_core.api import api_view, ok
from expense_dashboard import analytics_service as analytics
from expense_management.services import recent_transactions


def _floats(row):
    # Decimal -> float for JSON
    return {k: float(val) if isinstance(val, Decimal) else val for k, val in row.items()}


def _current_period(request):
    today = timezone.localdate()
    year = request.GET.get("year") or today.year
    month = request.GET.get("month")
    if month is None or month == "":
        month = today.month - 1
    return year, month


@api_view
@require_GET
def monthly_stats(request):
    year, month = _current_period(request)
    return ok(_floats(analytics.monthly_stats(request.user, year, month)))


@api_view
@require_GET
def category_breakdown(request):
    rows = analytics.category_breakdown(
        request.user,
        type=request.GET.get("type"),
        start_date=request.GET.get("start_date"),
        end_date=request.GET.get("end_date"),
    )
    return ok([_floats(row) for row in rows])


@api_view
@require_GET
def monthly_trends(request):
    trends = analytics.monthly_trends(request.user, months=request.GET.get("months"))
    return ok({
        "trends": [_floats(row) for row in trends],
        "summary": analytics.trend_summary(trends),
    })


@api_view
@require_GET
def dashboard(request):
    """
    Everything the dashboard page shows in one call: this month against
    the previous one, this month's expenses by category, the last six
    months and the latest transactions.
    """
    user = request.user
    today = timezone.localdate()
    first_day, last_day = analytics.month_bounds(today.year, today.month - 1)

    comparison = analytics.month_over_month(user, today.year, today.month - 1)
    breakdown = analytics.category_breakdown(
        user, type="EXPENSE", start_date=first_day, end_date=last_day,
    )
    trends = analytics.monthly_trends(user, months=6, today=today)

    context = {
        "current": _floats(comparison["current"]),
        "previous": _floats(comparison["previous"]),
        "income_change": comparison["income_change"],
        "expense_change": comparison["expense_change"],
        "expense_breakdown": [_floats(row) for row in breakdown],
        "trends": [_floats(row) for row in trends],
        "recent_transactions": [t.as_dict() for t in recent_transactions(user, limit=5)],
    }
    return ok(context)
