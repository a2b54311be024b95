from django.contrib import admin

from expense_core.models import Category, RecurringTransaction, Transaction


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "user", "is_default", "color")
    list_filter = ("type", "is_default")
    search_fields = ("name",)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "description", "type", "amount", "category", "user")
    list_filter = ("type",)
    search_fields = ("description",)
    date_hierarchy = "date"


@admin.register(RecurringTransaction)
class RecurringTransactionAdmin(admin.ModelAdmin):
    list_display = ("description", "frequency", "amount", "next_occurrence", "is_active", "user")
    list_filter = ("frequency", "is_active", "type")
