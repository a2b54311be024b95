from datetime import date
from decimal import Decimal
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase

from expense_core.errors import Conflict, InvalidReference, NotFound, ValidationError
from expense_core.models import Category, RecurringTransaction, Transaction
from expense_management import services
from expense_management.duplicates import cleanup_duplicates, find_duplicate_groups


class CategoryServiceTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.alice = User.objects.create_user("alice", password="pw")
        cls.bob = User.objects.create_user("bob", password="pw")
        cls.default = Category.objects.create(name="Groceries", type="EXPENSE", is_default=True)

    def test_list_puts_defaults_first(self):
        services.create_category(self.alice, "Books", "EXPENSE")
        services.create_category(self.alice, "Allowance", "INCOME")
        services.create_category(self.bob, "Cars", "EXPENSE")

        names = [c.name for c in services.list_categories(self.alice)]
        self.assertEqual(names, ["Groceries", "Allowance", "Books"])

        expense_names = [c.name for c in services.list_categories(self.alice, type="EXPENSE")]
        self.assertEqual(expense_names, ["Groceries", "Books"])

    def test_create_rejects_duplicate_name_and_type(self):
        services.create_category(self.alice, "Books", "EXPENSE")
        with self.assertRaises(Conflict):
            services.create_category(self.alice, "Books", "EXPENSE")
        # same name is fine for another type or another user
        services.create_category(self.alice, "Books", "INCOME")
        services.create_category(self.bob, "Books", "EXPENSE")

    def test_create_uses_default_color(self):
        category = services.create_category(self.alice, "Books", "EXPENSE")
        self.assertEqual(category.color, "#3B82F6")
        self.assertFalse(category.is_default)

    def test_update_name_and_color(self):
        category = services.create_category(self.alice, "Books", "EXPENSE")
        updated = services.update_category(self.alice, category.pk, {"name": "Novels", "color": "#000000"})
        self.assertEqual(updated.name, "Novels")
        self.assertEqual(updated.color, "#000000")

    def test_update_rename_clash(self):
        services.create_category(self.alice, "Books", "EXPENSE")
        other = services.create_category(self.alice, "Games", "EXPENSE")
        with self.assertRaises(Conflict):
            services.update_category(self.alice, other.pk, {"name": "Books"})

    def test_defaults_and_foreign_categories_are_read_only(self):
        theirs = services.create_category(self.bob, "Cars", "EXPENSE")
        with self.assertRaises(NotFound):
            services.update_category(self.alice, self.default.pk, {"name": "Food"})
        with self.assertRaises(NotFound):
            services.delete_category(self.alice, self.default.pk)
        with self.assertRaises(NotFound):
            services.delete_category(self.alice, theirs.pk)

    def test_delete_unreferenced_category(self):
        category = services.create_category(self.alice, "Books", "EXPENSE")
        services.delete_category(self.alice, category.pk)
        self.assertFalse(Category.objects.filter(pk=category.pk).exists())

    def test_delete_referenced_by_transaction_is_conflict(self):
        category = services.create_category(self.alice, "Books", "EXPENSE")
        services.create_transaction(self.alice, "10", "Novel", "EXPENSE", "2024-01-10", category.pk)
        with self.assertRaises(Conflict):
            services.delete_category(self.alice, category.pk)
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())

    def test_delete_referenced_by_recurring_is_conflict(self):
        category = services.create_category(self.alice, "Gym", "EXPENSE")
        RecurringTransaction.objects.create(
            user=self.alice, category=category, type="EXPENSE", amount=Decimal("30"),
            description="Membership", frequency="MONTHLY",
            start_date=date(2024, 1, 1), next_occurrence=date(2024, 1, 1),
        )
        with self.assertRaises(Conflict):
            services.delete_category(self.alice, category.pk)

    def test_category_stats(self):
        category = services.create_category(self.alice, "Books", "EXPENSE")
        services.create_transaction(self.alice, "10", "A", "EXPENSE", "2024-01-10", category.pk)
        services.create_transaction(self.alice, "15", "B", "EXPENSE", "2024-02-10", category.pk)

        stats = services.category_stats(self.alice, category.pk)
        self.assertEqual(stats["total_amount"], Decimal("25"))
        self.assertEqual(stats["transaction_count"], 2)

        january = services.category_stats(self.alice, category.pk, end_date="2024-01-31")
        self.assertEqual(january["total_amount"], Decimal("10"))
        self.assertEqual(january["transaction_count"], 1)

        self.assertEqual(services.category_stats(self.bob, category.pk)["transaction_count"], 0)


class TransactionServiceTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.alice = User.objects.create_user("alice", password="pw")
        cls.bob = User.objects.create_user("bob", password="pw")
        cls.default = Category.objects.create(name="Salary", type="INCOME", is_default=True)
        cls.food = Category.objects.create(user=cls.alice, name="Food", type="EXPENSE")
        cls.bobs = Category.objects.create(user=cls.bob, name="Food", type="EXPENSE")

    def test_create_with_own_and_default_category(self):
        tx = services.create_transaction(self.alice, "12.50", "Lunch", "expense", "2024-03-02", self.food.pk)
        self.assertEqual(tx.amount, Decimal("12.50"))
        self.assertEqual(tx.type, "EXPENSE")
        self.assertEqual(tx.date, date(2024, 3, 2))

        pay = services.create_transaction(self.alice, 3000, "Pay", "INCOME", "2024-03-01", self.default.pk)
        self.assertEqual(pay.category, self.default)

    def test_create_with_foreign_category_is_invalid_reference(self):
        with self.assertRaises(InvalidReference):
            services.create_transaction(self.alice, "5", "Snack", "EXPENSE", "2024-03-02", self.bobs.pk)
        with self.assertRaises(InvalidReference):
            services.create_transaction(self.alice, "5", "Snack", "EXPENSE", "2024-03-02", 99999)

    def test_create_validates_before_writing(self):
        with self.assertRaises(ValidationError):
            services.create_transaction(self.alice, "0", "Nothing", "EXPENSE", "2024-03-02", self.food.pk)
        with self.assertRaises(ValidationError):
            services.create_transaction(self.alice, "5", "", "EXPENSE", "2024-03-02", self.food.pk)
        self.assertFalse(Transaction.objects.exists())

    def test_create_rejects_amounts_the_column_cannot_hold(self):
        for amount in ("0.001", "12345678901234", "1e30"):
            with self.assertRaises(ValidationError):
                services.create_transaction(self.alice, amount, "Odd", "EXPENSE", "2024-03-02", self.food.pk)
        self.assertFalse(Transaction.objects.exists())

        tx = services.create_transaction(self.alice, "9999999999.99", "Big", "EXPENSE", "2024-03-02", self.food.pk)
        tx.refresh_from_db()
        self.assertEqual(tx.amount, Decimal("9999999999.99"))

    def test_category_reference_must_be_an_integer(self):
        self.assertEqual(services.visible_category(self.alice, str(self.food.pk)), self.food)
        for bad in (True, False, self.food.pk + 0.9, "abc"):
            with self.assertRaises(InvalidReference):
                services.create_transaction(self.alice, "5", "Snack", "EXPENSE", "2024-03-02", bad)
        self.assertFalse(Transaction.objects.exists())

    def test_update_closed_field_set(self):
        tx = services.create_transaction(self.alice, "10", "Lunch", "EXPENSE", "2024-03-02", self.food.pk)
        updated = services.update_transaction(self.alice, tx.pk, {"amount": "11", "description": "Brunch"})
        self.assertEqual(updated.amount, Decimal("11"))
        self.assertEqual(updated.description, "Brunch")
        self.assertEqual(updated.date, date(2024, 3, 2))

        with self.assertRaises(ValidationError):
            services.update_transaction(self.alice, tx.pk, {"user_id": self.bob.pk})
        with self.assertRaises(InvalidReference):
            services.update_transaction(self.alice, tx.pk, {"category_id": self.bobs.pk})

    def test_other_users_transaction_is_not_found(self):
        tx = services.create_transaction(self.alice, "10", "Lunch", "EXPENSE", "2024-03-02", self.food.pk)
        with self.assertRaises(NotFound):
            services.update_transaction(self.bob, tx.pk, {"amount": "1"})
        with self.assertRaises(NotFound):
            services.delete_transaction(self.bob, tx.pk)
        services.delete_transaction(self.alice, tx.pk)
        self.assertFalse(Transaction.objects.filter(pk=tx.pk).exists())

    def test_list_pages_with_cursor(self):
        created = [
            services.create_transaction(self.alice, "1", f"Item {day}", "EXPENSE", date(2024, 3, day), self.food.pk)
            for day in range(1, 6)
        ]
        services.create_transaction(self.bob, "1", "Not mine", "EXPENSE", "2024-03-03", self.bobs.pk)

        first = services.list_transactions(self.alice, limit=2)
        self.assertEqual([t.pk for t in first["transactions"]], [created[4].pk, created[3].pk])
        self.assertEqual(first["next_cursor"], created[2].pk)

        second = services.list_transactions(self.alice, limit=2, cursor=first["next_cursor"])
        self.assertEqual([t.pk for t in second["transactions"]], [created[2].pk, created[1].pk])

        last = services.list_transactions(self.alice, limit=2, cursor=second["next_cursor"])
        self.assertEqual([t.pk for t in last["transactions"]], [created[0].pk])
        self.assertIsNone(last["next_cursor"])

    def test_list_filters(self):
        services.create_transaction(self.alice, "8", "Coffee beans", "EXPENSE", "2024-03-02", self.food.pk)
        services.create_transaction(self.alice, "9", "Pizza", "EXPENSE", "2024-04-02", self.food.pk)
        services.create_transaction(self.alice, "100", "Pay", "INCOME", "2024-03-05", self.default.pk)

        found = services.list_transactions(self.alice, search="COFFEE")["transactions"]
        self.assertEqual([t.description for t in found], ["Coffee beans"])

        income = services.list_transactions(self.alice, type="INCOME")["transactions"]
        self.assertEqual([t.description for t in income], ["Pay"])

        march = services.list_transactions(self.alice, start_date="2024-03-01", end_date="2024-03-31")
        self.assertEqual(len(march["transactions"]), 2)

        with self.assertRaises(ValidationError):
            services.list_transactions(self.alice, limit=101)

    def test_recent(self):
        for day in range(1, 4):
            services.create_transaction(self.alice, "1", f"Item {day}", "EXPENSE", date(2024, 3, day), self.food.pk)
        recent = services.recent_transactions(self.alice, limit=2)
        self.assertEqual([t.description for t in recent], ["Item 3", "Item 2"])


class DuplicateCleanupTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user("alice", password="pw")
        cls.food = Category.objects.create(user=cls.user, name="Food", type="EXPENSE")

    def _tx(self, description="Rent", amount="500", day=1):
        return Transaction.objects.create(
            user=self.user, category=self.food, type="EXPENSE",
            amount=Decimal(amount), description=description, date=date(2024, 1, day),
        )

    def test_keeps_oldest_of_each_group(self):
        keep = self._tx()
        dup1 = self._tx()
        dup2 = self._tx()
        other = self._tx(description="Rent", day=2)

        groups = find_duplicate_groups(self.user)
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0]["keep_id"], keep.pk)
        self.assertEqual(sorted(groups[0]["delete_ids"]), sorted([dup1.pk, dup2.pk]))

        _, deleted = cleanup_duplicates(self.user)
        self.assertEqual(deleted, 2)
        remaining = set(Transaction.objects.values_list("pk", flat=True))
        self.assertEqual(remaining, {keep.pk, other.pk})

    def test_dry_run_command_deletes_nothing(self):
        self._tx()
        self._tx()
        out = StringIO()
        call_command("cleanup_duplicates", "--dry-run", stdout=out)
        self.assertIn("1 duplicate group(s) found", out.getvalue())
        self.assertEqual(Transaction.objects.count(), 2)

    def test_no_duplicates(self):
        self._tx()
        self.assertEqual(find_duplicate_groups(), [])


class ManagementViewTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user("alice", password="pw")
        cls.food = Category.objects.create(user=cls.user, name="Food", type="EXPENSE")

    def setUp(self):
        self.client.force_login(self.user)

    def test_create_and_list_transaction(self):
        response = self.client.post(
            "/api/transactions/create/",
            data={"amount": 12.5, "description": "Lunch", "type": "EXPENSE",
                  "date": "2024-03-02", "category_id": self.food.pk},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["amount"], 12.5)
        self.assertEqual(body["category"]["name"], "Food")

        listing = self.client.get("/api/transactions/", {"limit": 10}).json()
        self.assertEqual(len(listing["transactions"]), 1)
        self.assertIsNone(listing["next_cursor"])

    def test_delete_referenced_category_returns_conflict(self):
        Transaction.objects.create(
            user=self.user, category=self.food, type="EXPENSE",
            amount=Decimal("3"), description="Tea", date=date(2024, 1, 1),
        )
        response = self.client.post(f"/api/categories/{self.food.pk}/delete/")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "CONFLICT")

    def test_missing_transaction_returns_not_found(self):
        response = self.client.post("/api/transactions/9999/delete/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "NOT_FOUND")

    def test_get_on_mutation_is_not_allowed(self):
        response = self.client.get("/api/categories/create/")
        self.assertEqual(response.status_code, 405)
