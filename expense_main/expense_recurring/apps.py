from django.apps import AppConfig


class ExpenseRecurringConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "expense_recurring"
