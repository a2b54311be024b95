# expense_recurring/materializer.py

import logging
from collections import namedtuple

from django.db import transaction as db_transaction
from django.db.models import Q
from django.utils import timezone

from expense_core import validators as v
from expense_core.models import Category, RecurringTransaction, Transaction
from expense_core.occurrence import next_occurrence

logger = logging.getLogger(__name__)

MaterializeResult = namedtuple(
    "MaterializeResult",
    ["processed_count", "created_count", "skipped_count", "created_transactions"],
)


def due_recurring(user, as_of):
    """Active definitions of ``user`` due on ``as_of`` and not yet ended."""
    return (
        RecurringTransaction.objects
        .filter(
            user=user,
            is_active=True,
            next_occurrence=as_of,
        )
        .filter(Q(end_date__isnull=True) | Q(end_date__gte=as_of))
        .order_by('id')
    )


def _category_usable(recurring, user):
    category = Category.objects.filter(pk=recurring.category_id).first()
    if category is None:
        return False
    return category.is_default or category.user_id == user.pk


def _materialize_one(recurring, user, as_of):
    """
    Create the transaction for one due definition (unless it already exists)
    and move its schedule forward. Returns the created Transaction or None.
    """
    with db_transaction.atomic():
        already_there = Transaction.objects.filter(
            user=user,
            description=recurring.description,
            amount=recurring.amount,
            type=recurring.type,
            category_id=recurring.category_id,
            date=as_of,
        ).exists()

        created = None
        if not already_there:
            created = Transaction.objects.create(
                user=user,
                category_id=recurring.category_id,
                type=recurring.type,
                amount=recurring.amount,
                description=recurring.description,
                date=as_of,
            )

        recurring.next_occurrence = next_occurrence(recurring.next_occurrence, recurring.frequency)
        recurring.save(update_fields=['next_occurrence', 'updated_at'])

    return created


def process_recurring(user, as_of=None):
    """
    Materialize every definition of ``user`` due on ``as_of`` (today by
    default).

    Safe to re-run for the same day: an identical transaction on that date
    blocks a second creation. Definitions whose category is gone or not
    visible to the user are logged and skipped without touching their
    schedule.
    """
    as_of = v.parse_date(as_of, 'date') if as_of is not None else timezone.localdate()

    processed = 0
    skipped = 0
    created = []

    for recurring in due_recurring(user, as_of):
        if not _category_usable(recurring, user):
            logger.warning(
                "skipping recurring %s for user=%s: category %s is missing or not visible",
                recurring.pk, user.pk, recurring.category_id,
            )
            skipped += 1
            continue

        tx = _materialize_one(recurring, user, as_of)
        processed += 1
        if tx is not None:
            created.append(tx)

    logger.info(
        "processed recurring for user=%s on %s: processed=%d created=%d skipped=%d",
        user.pk, as_of, processed, len(created), skipped,
    )
    return MaterializeResult(
        processed_count=processed,
        created_count=len(created),
        skipped_count=skipped,
        created_transactions=created,
    )
