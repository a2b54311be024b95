from django.apps import AppConfig


class ExpenseCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "expense_core"
