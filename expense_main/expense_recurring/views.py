from django.views.decorators.http import require_GET, require_POST

from expense_core.api import api_view, json_body, ok
from expense_recurring import services
from expense_recurring.materializer import process_recurring


@api_view
@require_GET
def recurring_list(request):
    rows = services.list_recurring(request.user, is_active=request.GET.get("is_active"))
    return ok([r.as_dict() for r in rows])


@api_view
@require_POST
def recurring_create(request):
    data = json_body(request)
    recurring = services.create_recurring(
        request.user,
        amount=data.get("amount"),
        description=data.get("description"),
        type=data.get("type"),
        frequency=data.get("frequency"),
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
        category_id=data.get("category_id"),
    )
    return ok(recurring.as_dict(), status=201)


@api_view
@require_POST
def recurring_edit(request, pk):
    recurring = services.update_recurring(request.user, pk, json_body(request))
    return ok(recurring.as_dict())


@api_view
@require_POST
def recurring_delete(request, pk):
    services.delete_recurring(request.user, pk)
    return ok({"ok": True})


@api_view
@require_POST
def recurring_toggle(request, pk):
    recurring = services.toggle_active(request.user, pk)
    return ok(recurring.as_dict())


@api_view
@require_POST
def recurring_process(request):
    """
    POST: { date: "YYYY-MM-DD" (optional, defaults to today) }
    Returns: { processed, created, skipped, transactions }
    """
    data = json_body(request)
    result = process_recurring(request.user, as_of=data.get("date"))
    return ok({
        "processed": result.processed_count,
        "created": result.created_count,
        "skipped": result.skipped_count,
        "transactions": [t.as_dict() for t in result.created_transactions],
    })
