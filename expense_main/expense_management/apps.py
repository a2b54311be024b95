from django.apps import AppConfig


class ExpenseManagementConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "expense_management"
