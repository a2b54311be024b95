# expense_management/services.py
#
# Category and transaction operations. Every function takes the acting user
# explicitly and only ever touches that user's rows (plus the read-only
# default categories).

import logging

from django.conf import settings
from django.db.models import Count, Q, Sum
from django.db.models.deletion import ProtectedError

from expense_core import validators as v
from expense_core.errors import Conflict, InvalidReference, NotFound, ValidationError
from expense_core.models import Category, Transaction

logger = logging.getLogger(__name__)

TRANSACTION_UPDATE_FIELDS = ('amount', 'description', 'type', 'date', 'category_id')
CATEGORY_UPDATE_FIELDS = ('name', 'color')


def visible_category(user, category_id):
    """
    Resolve a category the user may reference (own or default).

    Raises InvalidReference otherwise.
    """
    if isinstance(category_id, bool) or (isinstance(category_id, float) and not category_id.is_integer()):
        raise InvalidReference("Category not found.", category_id=category_id)
    try:
        pk = int(category_id)
    except (TypeError, ValueError, OverflowError):
        raise InvalidReference("Category not found.", category_id=category_id)
    category = Category.visible_to(user).filter(pk=pk).first()
    if category is None:
        raise InvalidReference("Category not found.", category_id=category_id)
    return category


# ──────────────────────────────────────────────────────────────────────────────
# Categories
# ──────────────────────────────────────────────────────────────────────────────
def list_categories(user, type=None):
    """Default categories first, then the user's own, each sorted by name."""
    defaults = Category.objects.filter(is_default=True)
    own = Category.objects.filter(user=user, is_default=False)
    if type:
        cat_type = v.parse_type(type)
        defaults = defaults.filter(type=cat_type)
        own = own.filter(type=cat_type)
    return list(defaults.order_by('name')) + list(own.order_by('name'))


def _owned_category(user, category_id):
    # Defaults and other users' categories are invisible to mutations.
    category = Category.objects.filter(pk=category_id, user=user, is_default=False).first()
    if category is None:
        raise NotFound("Category not found or cannot be modified.", category_id=category_id)
    return category


def create_category(user, name, type, color=None):
    name = v.parse_text(name, 'name', max_length=50)
    cat_type = v.parse_type(type)
    color = v.parse_text(color, 'color', max_length=16) if color else settings.EXPENSE_DEFAULT_CATEGORY_COLOR

    if Category.objects.filter(user=user, name=name, type=cat_type).exists():
        raise Conflict("Category with this name already exists.", name=name, type=cat_type)

    category = Category.objects.create(
        user=user,
        name=name,
        type=cat_type,
        color=color,
        is_default=False,
    )
    logger.debug("user=%s created category %s", user.pk, category.pk)
    return category


def update_category(user, category_id, data):
    v.reject_unknown_fields(data, CATEGORY_UPDATE_FIELDS)
    category = _owned_category(user, category_id)

    if data.get('name') is not None:
        name = v.parse_text(data['name'], 'name', max_length=50)
        if name != category.name:
            clash = (
                Category.objects
                .filter(user=user, name=name, type=category.type)
                .exclude(pk=category.pk)
                .exists()
            )
            if clash:
                raise Conflict("Category with this name already exists.", name=name, type=category.type)
        category.name = name

    if data.get('color') is not None:
        category.color = v.parse_text(data['color'], 'color', max_length=16)

    category.save()
    return category


def delete_category(user, category_id):
    category = _owned_category(user, category_id)

    in_use = (
        Transaction.objects.filter(category=category).exists()
        or category.recurring_transactions.exists()
    )
    if in_use:
        raise Conflict("Cannot delete category with existing transactions.", category_id=category.pk)

    try:
        category.delete()
    except ProtectedError:
        # Something was attached between the check and the delete.
        raise Conflict("Cannot delete category with existing transactions.", category_id=category.pk)
    logger.debug("user=%s deleted category %s", user.pk, category_id)


def category_stats(user, category_id, start_date=None, end_date=None):
    qs = Transaction.objects.filter(user=user, category_id=category_id)
    start_date = v.parse_optional_date(start_date, 'start_date')
    end_date = v.parse_optional_date(end_date, 'end_date')
    if start_date:
        qs = qs.filter(date__gte=start_date)
    if end_date:
        qs = qs.filter(date__lte=end_date)

    agg = qs.aggregate(total=Sum('amount'), count=Count('id'))
    return {
        'category_id': int(category_id),
        'total_amount': agg['total'] or 0,
        'transaction_count': agg['count'],
    }


# ──────────────────────────────────────────────────────────────────────────────
# Transactions
# ──────────────────────────────────────────────────────────────────────────────
def _owned_transaction(user, transaction_id):
    tx = Transaction.objects.filter(pk=transaction_id, user=user).select_related('category').first()
    if tx is None:
        raise NotFound("Transaction not found.", transaction_id=transaction_id)
    return tx


def list_transactions(user, limit=None, cursor=None, type=None, category_id=None,
                      start_date=None, end_date=None, search=None):
    """
    Newest-first page of the user's transactions.

    ``cursor`` is the id of the first transaction of the page to return;
    the result carries ``next_cursor`` when more rows follow.
    """
    limit = v.parse_int(limit, 'limit', minimum=1, maximum=100,
                        default=settings.EXPENSE_TRANSACTION_PAGE_SIZE)

    tx = Transaction.objects.filter(user=user).select_related('category')

    if type:
        tx = tx.filter(type=v.parse_type(type))
    if category_id:
        tx = tx.filter(category_id=v.parse_int(category_id, 'category_id'))
    start_date = v.parse_optional_date(start_date, 'start_date')
    end_date = v.parse_optional_date(end_date, 'end_date')
    if start_date:
        tx = tx.filter(date__gte=start_date)
    if end_date:
        tx = tx.filter(date__lte=end_date)
    if search:
        tx = tx.filter(description__icontains=search.strip())

    if cursor:
        cursor = v.parse_int(cursor, 'cursor')
        anchor = Transaction.objects.filter(pk=cursor, user=user).values('date', 'id').first()
        if anchor is None:
            raise ValidationError("Invalid cursor.", field='cursor')
        tx = tx.filter(
            Q(date__lt=anchor['date']) |
            Q(date=anchor['date'], id__lte=anchor['id'])
        )

    rows = list(tx.order_by('-date', '-id')[:limit + 1])
    next_cursor = None
    if len(rows) > limit:
        next_cursor = rows.pop().id

    return {
        'transactions': rows,
        'next_cursor': next_cursor,
    }


def recent_transactions(user, limit=None):
    limit = v.parse_int(limit, 'limit', minimum=1, maximum=20, default=10)
    return list(
        Transaction.objects
        .filter(user=user)
        .select_related('category')
        .order_by('-date', '-id')[:limit]
    )


def create_transaction(user, amount, description, type, date, category_id):
    amount = v.parse_amount(amount)
    description = v.parse_text(description, 'description', max_length=255)
    tx_type = v.parse_type(type)
    tx_date = v.parse_date(date)
    category = visible_category(user, category_id)

    tx = Transaction.objects.create(
        user=user,
        category=category,
        type=tx_type,
        amount=amount,
        date=tx_date,
        description=description,
    )
    logger.debug("user=%s created transaction %s", user.pk, tx.pk)
    return tx


def update_transaction(user, transaction_id, data):
    v.reject_unknown_fields(data, TRANSACTION_UPDATE_FIELDS)
    tx = _owned_transaction(user, transaction_id)

    changes = {}
    if data.get('amount') is not None:
        changes['amount'] = v.parse_amount(data['amount'])
    if data.get('description') is not None:
        changes['description'] = v.parse_text(data['description'], 'description', max_length=255)
    if data.get('type') is not None:
        changes['type'] = v.parse_type(data['type'])
    if data.get('date') is not None:
        changes['date'] = v.parse_date(data['date'])
    if data.get('category_id') is not None:
        changes['category'] = visible_category(user, data['category_id'])

    for field, value in changes.items():
        setattr(tx, field, value)
    tx.save()
    return tx


def delete_transaction(user, transaction_id):
    tx = _owned_transaction(user, transaction_id)
    tx.delete()
    logger.debug("user=%s deleted transaction %s", user.pk, transaction_id)
