from datetime import timedelta

from dateutil.relativedelta import relativedelta

from expense_core.models import RecurringTransaction

_STEPS = {
    RecurringTransaction.DAILY: timedelta(days=1),
    RecurringTransaction.WEEKLY: timedelta(days=7),
    # relativedelta clamps to the month end (Jan 31 -> Feb 28/29)
    RecurringTransaction.MONTHLY: relativedelta(months=1),
    RecurringTransaction.YEARLY: relativedelta(years=1),
}


def next_occurrence(current, frequency):
    """
    Advance ``current`` by one period of ``frequency``.

    Unknown frequencies leave the date unchanged.
    """
    step = _STEPS.get(frequency)
    if step is None:
        return current
    return current + step


def initial_occurrence(start_date, frequency):
    # A new definition is first due on its start date.
    return start_date
