# expense_dashboard/analytics_service.py

from calendar import monthrange
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db.models import Count, Sum
from django.utils import timezone

import pandas as pd

from expense_core import validators as v
from expense_core.models import Category, Transaction

INCOME = Category.INCOME
EXPENSE = Category.EXPENSE


def month_bounds(year, month):
    """First and last calendar day of a 0-indexed month."""
    first_day = date(year, month + 1, 1)
    last_day = first_day.replace(day=monthrange(year, month + 1)[1])
    return first_day, last_day


def _totals(qs):
    agg = qs.aggregate(total=Sum('amount'), count=Count('id'))
    return agg['total'] or Decimal('0'), agg['count']


def monthly_stats(user, year, month):
    """
    Income/expense totals of one calendar month (``month`` is 0-indexed).

    Returns a dict with:
      - total_income, total_expenses, net_income (Decimal)
      - income_count, expense_count, total_transactions
    """
    year = v.parse_int(year, 'year', minimum=1, maximum=9999)
    month = v.parse_int(month, 'month', minimum=0, maximum=11)
    first_day, last_day = month_bounds(year, month)

    month_tx = Transaction.objects.filter(user=user, date__range=[first_day, last_day])
    income, income_count = _totals(month_tx.filter(type=INCOME))
    expense, expense_count = _totals(month_tx.filter(type=EXPENSE))

    return {
        'total_income': income,
        'total_expenses': expense,
        'net_income': income - expense,
        'income_count': income_count,
        'expense_count': expense_count,
        'total_transactions': income_count + expense_count,
    }


def category_breakdown(user, type=None, start_date=None, end_date=None):
    """
    Totals per category, largest first.

    Groups whose category has since disappeared are left out.
    """
    base_qs = Transaction.objects.filter(user=user)
    if type:
        base_qs = base_qs.filter(type=v.parse_type(type))
    start_date = v.parse_optional_date(start_date, 'start_date')
    end_date = v.parse_optional_date(end_date, 'end_date')
    if start_date:
        base_qs = base_qs.filter(date__gte=start_date)
    if end_date:
        base_qs = base_qs.filter(date__lte=end_date)

    cat_agg = (
        base_qs.values('category_id')
        .annotate(total=Sum('amount'), count=Count('id'))
        .order_by('-total', 'category_id')
    )
    rows = list(cat_agg)
    categories = Category.objects.in_bulk([row['category_id'] for row in rows])

    result = []
    for row in rows:
        category = categories.get(row['category_id'])
        if category is None:
            continue
        result.append({
            'category_id': row['category_id'],
            'category': category.as_dict(),
            'total_amount': row['total'] or Decimal('0'),
            'transaction_count': row['count'],
        })
    return result


def monthly_trends(user, months=None, today=None):
    """
    Income, expenses and net for the last ``months`` calendar months,
    oldest first and ending with the current month.
    """
    months = v.parse_int(
        months, 'months',
        minimum=1,
        maximum=settings.EXPENSE_MAX_TREND_MONTHS,
        default=settings.EXPENSE_DEFAULT_TREND_MONTHS,
    )
    today = today or timezone.localdate()

    trends = []
    m, y = today.month, today.year
    for _ in range(months):
        start, end = month_bounds(y, m - 1)
        month_tx = Transaction.objects.filter(user=user, date__range=[start, end])
        income = month_tx.filter(type=INCOME).aggregate(Sum('amount'))['amount__sum'] or Decimal('0')
        expenses = month_tx.filter(type=EXPENSE).aggregate(Sum('amount'))['amount__sum'] or Decimal('0')
        trends.append({
            'year': y,
            'month': m - 1,
            'month_name': start.strftime('%b'),
            'income': income,
            'expenses': expenses,
            'net': income - expenses,
        })
        # prev month
        m -= 1
        if m == 0:
            m = 12
            y -= 1
    trends.reverse()
    return trends


def _percent_change(current, previous):
    if not previous:
        return None
    return float((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100)


def month_over_month(user, year, month):
    """Stats of a month next to the month before, with % changes."""
    year = v.parse_int(year, 'year', minimum=2, maximum=9999)
    month = v.parse_int(month, 'month', minimum=0, maximum=11)
    current = monthly_stats(user, year, month)
    prev_year, prev_month = (year - 1, 11) if month == 0 else (year, month - 1)
    previous = monthly_stats(user, prev_year, prev_month)
    return {
        'current': current,
        'previous': previous,
        'income_change': _percent_change(current['total_income'], previous['total_income']),
        'expense_change': _percent_change(current['total_expenses'], previous['total_expenses']),
    }


def trend_summary(trends):
    """
    Summarise a trend series (output of ``monthly_trends``).

    Returns total_income, total_expenses, net, average_income,
    average_expenses, savings_rate (net as a percentage of income, None
    without income), best_month and worst_month (by net, as "Mon YYYY").
    """
    if not trends:
        return {
            'total_income': 0.0,
            'total_expenses': 0.0,
            'net': 0.0,
            'average_income': 0.0,
            'average_expenses': 0.0,
            'savings_rate': None,
            'best_month': None,
            'worst_month': None,
        }

    df = pd.DataFrame(trends)
    for col in ('income', 'expenses', 'net'):
        df[col] = df[col].astype(float)
    df['label'] = df['month_name'] + ' ' + df['year'].astype(str)

    total_income = float(df['income'].sum())
    total_expenses = float(df['expenses'].sum())
    net = total_income - total_expenses

    return {
        'total_income': total_income,
        'total_expenses': total_expenses,
        'net': net,
        'average_income': float(df['income'].mean()),
        'average_expenses': float(df['expenses'].mean()),
        'savings_rate': (net / total_income * 100) if total_income else None,
        'best_month': df.loc[df['net'].idxmax(), 'label'],
        'worst_month': df.loc[df['net'].idxmin(), 'label'],
    }
