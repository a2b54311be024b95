from django.views.decorators.http import require_GET, require_POST

from expense_core.api import api_view, json_body, ok
from expense_management import services


# ──────────────────────────────────────────────────────────────────────────────
# Management - Categories
# ──────────────────────────────────────────────────────────────────────────────
@api_view
@require_GET
def category_list(request):
    cats = services.list_categories(request.user, type=request.GET.get("type"))
    return ok([c.as_dict() for c in cats])


@api_view
@require_POST
def category_create(request):
    data = json_body(request)
    category = services.create_category(
        request.user,
        name=data.get("name"),
        type=data.get("type"),
        color=data.get("color"),
    )
    return ok(category.as_dict(), status=201)


@api_view
@require_POST
def category_edit(request, pk):
    category = services.update_category(request.user, pk, json_body(request))
    return ok(category.as_dict())


@api_view
@require_POST
def category_delete(request, pk):
    services.delete_category(request.user, pk)
    return ok({"ok": True})


@api_view
@require_GET
def category_stats(request, pk):
    stats = services.category_stats(
        request.user,
        pk,
        start_date=request.GET.get("start_date"),
        end_date=request.GET.get("end_date"),
    )
    stats["total_amount"] = float(stats["total_amount"])
    return ok(stats)


# ──────────────────────────────────────────────────────────────────────────────
# Management - Transactions
# ──────────────────────────────────────────────────────────────────────────────
@api_view
@require_GET
def transaction_list(request):
    page = services.list_transactions(
        request.user,
        limit=request.GET.get("limit"),
        cursor=request.GET.get("cursor"),
        type=request.GET.get("type"),
        category_id=request.GET.get("category"),
        start_date=request.GET.get("start_date"),
        end_date=request.GET.get("end_date"),
        search=request.GET.get("q"),
    )
    return ok({
        "transactions": [t.as_dict() for t in page["transactions"]],
        "next_cursor": page["next_cursor"],
    })


@api_view
@require_GET
def transaction_recent(request):
    rows = services.recent_transactions(request.user, limit=request.GET.get("limit"))
    return ok([t.as_dict() for t in rows])


@api_view
@require_POST
def transaction_create(request):
    data = json_body(request)
    tx = services.create_transaction(
        request.user,
        amount=data.get("amount"),
        description=data.get("description"),
        type=data.get("type"),
        date=data.get("date"),
        category_id=data.get("category_id"),
    )
    return ok(tx.as_dict(), status=201)


@api_view
@require_POST
def transaction_edit(request, pk):
    tx = services.update_transaction(request.user, pk, json_body(request))
    return ok(tx.as_dict())


@api_view
@require_POST
def transaction_delete(request, pk):
    services.delete_transaction(request.user, pk)
    return ok({"ok": True})
