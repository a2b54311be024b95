# expense_recurring/services.py

import logging

from expense_core import validators as v
from expense_core.errors import NotFound, ValidationError
from expense_core.models import RecurringTransaction
from expense_core.occurrence import initial_occurrence
from expense_management.services import visible_category

logger = logging.getLogger(__name__)

RECURRING_UPDATE_FIELDS = (
    'amount', 'description', 'type', 'frequency',
    'start_date', 'end_date', 'category_id', 'is_active',
)


def _check_window(start_date, end_date):
    if end_date is not None and end_date < start_date:
        raise ValidationError("End date cannot be before the start date.", field='end_date')


def _owned_recurring(user, recurring_id):
    recurring = (
        RecurringTransaction.objects
        .filter(pk=recurring_id, user=user)
        .select_related('category')
        .first()
    )
    if recurring is None:
        raise NotFound("Recurring transaction not found.", recurring_id=recurring_id)
    return recurring


def list_recurring(user, is_active=None):
    qs = RecurringTransaction.objects.filter(user=user).select_related('category')
    if is_active is not None and is_active != "":
        qs = qs.filter(is_active=v.parse_bool(is_active, 'is_active'))
    return list(qs.order_by('next_occurrence', 'id'))


def create_recurring(user, amount, description, type, frequency, start_date,
                     category_id, end_date=None):
    amount = v.parse_amount(amount)
    description = v.parse_text(description, 'description', max_length=255)
    rec_type = v.parse_type(type)
    frequency = v.parse_frequency(frequency)
    start_date = v.parse_date(start_date, 'start_date')
    end_date = v.parse_optional_date(end_date, 'end_date')
    _check_window(start_date, end_date)
    category = visible_category(user, category_id)

    recurring = RecurringTransaction.objects.create(
        user=user,
        category=category,
        type=rec_type,
        amount=amount,
        description=description,
        frequency=frequency,
        start_date=start_date,
        end_date=end_date,
        next_occurrence=initial_occurrence(start_date, frequency),
    )
    logger.debug("user=%s created recurring %s next=%s", user.pk, recurring.pk, recurring.next_occurrence)
    return recurring


def update_recurring(user, recurring_id, data):
    """
    Apply a partial update.

    The schedule restarts from the start date whenever the frequency or
    start date changes; otherwise ``next_occurrence`` is kept.
    """
    v.reject_unknown_fields(data, RECURRING_UPDATE_FIELDS)
    recurring = _owned_recurring(user, recurring_id)

    changes = {}
    if data.get('amount') is not None:
        changes['amount'] = v.parse_amount(data['amount'])
    if data.get('description') is not None:
        changes['description'] = v.parse_text(data['description'], 'description', max_length=255)
    if data.get('type') is not None:
        changes['type'] = v.parse_type(data['type'])
    if data.get('frequency') is not None:
        changes['frequency'] = v.parse_frequency(data['frequency'])
    if data.get('start_date') is not None:
        changes['start_date'] = v.parse_date(data['start_date'], 'start_date')
    if 'end_date' in data:
        # explicit null clears the end date
        changes['end_date'] = v.parse_optional_date(data['end_date'], 'end_date')
    if data.get('category_id') is not None:
        changes['category'] = visible_category(user, data['category_id'])
    if data.get('is_active') is not None:
        changes['is_active'] = v.parse_bool(data['is_active'], 'is_active')

    _check_window(
        changes.get('start_date', recurring.start_date),
        changes.get('end_date', recurring.end_date),
    )

    reschedule = 'frequency' in changes or 'start_date' in changes
    for field, value in changes.items():
        setattr(recurring, field, value)
    if reschedule:
        recurring.next_occurrence = initial_occurrence(recurring.start_date, recurring.frequency)

    recurring.save()
    return recurring


def delete_recurring(user, recurring_id):
    recurring = _owned_recurring(user, recurring_id)
    recurring.delete()
    logger.debug("user=%s deleted recurring %s", user.pk, recurring_id)


def toggle_active(user, recurring_id):
    recurring = _owned_recurring(user, recurring_id)
    recurring.is_active = not recurring.is_active
    recurring.save(update_fields=['is_active', 'updated_at'])
    return recurring
