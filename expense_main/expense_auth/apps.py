from django.apps import AppConfig


class ExpenseAuthConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "expense_auth"
