# expense_management/duplicates.py

import logging

import pandas as pd

from expense_core.models import Transaction

logger = logging.getLogger(__name__)

DUPLICATE_KEY = ["user_id", "amount", "description", "date", "category_id", "type"]


def find_duplicate_groups(user=None):
    """
    Group transactions that agree on user, amount, description, date,
    category and type.

    Returns a list of dicts, one per group with more than one row:
      - key fields
      - keep_id: oldest transaction (by created_at, then id)
      - delete_ids: the rest
    """
    qs = Transaction.objects.all()
    if user is not None:
        qs = qs.filter(user=user)

    rows = list(qs.values("id", "created_at", *DUPLICATE_KEY))
    if not rows:
        return []

    df = pd.DataFrame(rows)
    # Decimal -> str keeps 10.0 and 10.00 in the same group
    df["amount"] = df["amount"].map(lambda a: f"{a:.2f}")
    df = df.sort_values(["created_at", "id"])

    groups = []
    for key, group in df.groupby(DUPLICATE_KEY, sort=False):
        if len(group) < 2:
            continue
        ids = [int(i) for i in group["id"]]
        groups.append({
            **dict(zip(DUPLICATE_KEY, key)),
            "count": len(ids),
            "keep_id": ids[0],
            "delete_ids": ids[1:],
        })

    groups.sort(key=lambda g: g["count"], reverse=True)
    return groups


def cleanup_duplicates(user=None, dry_run=False):
    """Delete every duplicate but the oldest; returns (groups, deleted_count)."""
    groups = find_duplicate_groups(user=user)
    deleted = 0
    for group in groups:
        logger.info(
            "duplicate group user=%s %s %s on %s: %d rows",
            group["user_id"], group["description"], group["amount"], group["date"], group["count"],
        )
        if dry_run:
            continue
        count, _ = Transaction.objects.filter(pk__in=group["delete_ids"]).delete()
        deleted += count
    return groups, deleted
