from django.apps import AppConfig


class ExpenseDashboardConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "expense_dashboard"
