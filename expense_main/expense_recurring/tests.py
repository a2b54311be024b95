from datetime import date
from decimal import Decimal
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase

from expense_core.errors import InvalidReference, NotFound, ValidationError
from expense_core.models import Category, RecurringTransaction, Transaction
from expense_recurring import services
from expense_recurring.materializer import process_recurring


class RecurringServiceTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.alice = User.objects.create_user("alice", password="pw")
        cls.bob = User.objects.create_user("bob", password="pw")
        cls.rent = Category.objects.create(user=cls.alice, name="Rent", type="EXPENSE")
        cls.bobs = Category.objects.create(user=cls.bob, name="Rent", type="EXPENSE")

    def _create(self, user=None, **overrides):
        fields = {
            "amount": "100",
            "description": "Rent",
            "type": "EXPENSE",
            "frequency": "MONTHLY",
            "start_date": "2024-01-15",
            "category_id": self.rent.pk,
        }
        fields.update(overrides)
        return services.create_recurring(user or self.alice, **fields)

    def test_create_starts_on_start_date(self):
        recurring = self._create()
        self.assertEqual(recurring.next_occurrence, date(2024, 1, 15))
        self.assertTrue(recurring.is_active)
        self.assertIsNone(recurring.end_date)

    def test_create_validation(self):
        with self.assertRaises(ValidationError):
            self._create(amount="-1")
        with self.assertRaises(ValidationError):
            self._create(frequency="FORTNIGHTLY")
        with self.assertRaises(ValidationError):
            self._create(end_date="2024-01-01")
        with self.assertRaises(InvalidReference):
            self._create(category_id=self.bobs.pk)
        self.assertFalse(RecurringTransaction.objects.exists())

    def test_update_reschedules_on_frequency_change(self):
        recurring = self._create()
        process_recurring(self.alice, as_of=date(2024, 1, 15))
        recurring.refresh_from_db()
        self.assertEqual(recurring.next_occurrence, date(2024, 2, 15))

        updated = services.update_recurring(self.alice, recurring.pk, {"frequency": "WEEKLY"})
        self.assertEqual(updated.frequency, "WEEKLY")
        self.assertEqual(updated.next_occurrence, date(2024, 1, 15))

    def test_update_reschedules_on_start_date_change(self):
        recurring = self._create()
        updated = services.update_recurring(self.alice, recurring.pk, {"start_date": "2024-03-01"})
        self.assertEqual(updated.next_occurrence, date(2024, 3, 1))

    def test_update_other_fields_keeps_schedule(self):
        recurring = self._create()
        process_recurring(self.alice, as_of=date(2024, 1, 15))
        updated = services.update_recurring(self.alice, recurring.pk, {"amount": "120", "description": "New rent"})
        self.assertEqual(updated.amount, Decimal("120"))
        self.assertEqual(updated.next_occurrence, date(2024, 2, 15))

    def test_update_rejects_unknown_fields_and_bad_window(self):
        recurring = self._create()
        with self.assertRaises(ValidationError):
            services.update_recurring(self.alice, recurring.pk, {"next_occurrence": "2030-01-01"})
        with self.assertRaises(ValidationError):
            services.update_recurring(self.alice, recurring.pk, {"end_date": "2023-12-31"})

    def test_update_can_clear_end_date(self):
        recurring = self._create(end_date="2024-06-30")
        updated = services.update_recurring(self.alice, recurring.pk, {"end_date": None})
        self.assertIsNone(updated.end_date)

    def test_toggle_active(self):
        recurring = self._create()
        self.assertFalse(services.toggle_active(self.alice, recurring.pk).is_active)
        self.assertTrue(services.toggle_active(self.alice, recurring.pk).is_active)

    def test_foreign_definitions_are_not_found(self):
        recurring = self._create()
        with self.assertRaises(NotFound):
            services.toggle_active(self.bob, recurring.pk)
        with self.assertRaises(NotFound):
            services.update_recurring(self.bob, recurring.pk, {"amount": "1"})
        with self.assertRaises(NotFound):
            services.delete_recurring(self.bob, recurring.pk)
        services.delete_recurring(self.alice, recurring.pk)
        self.assertFalse(RecurringTransaction.objects.exists())

    def test_list_filters_by_active_flag(self):
        first = self._create(start_date="2024-02-01")
        second = self._create(start_date="2024-01-01", description="Gym")
        services.toggle_active(self.alice, first.pk)

        self.assertEqual([r.pk for r in services.list_recurring(self.alice)], [second.pk, first.pk])
        self.assertEqual([r.pk for r in services.list_recurring(self.alice, is_active="true")], [second.pk])
        self.assertEqual([r.pk for r in services.list_recurring(self.alice, is_active=False)], [first.pk])
        self.assertEqual(services.list_recurring(self.bob), [])


class MaterializerTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user("alice", password="pw")
        cls.other = User.objects.create_user("bob", password="pw")
        cls.rent = Category.objects.create(user=cls.user, name="Rent", type="EXPENSE")

    def _recurring(self, **overrides):
        fields = {
            "user": self.user,
            "category": self.rent,
            "type": "EXPENSE",
            "amount": Decimal("100.00"),
            "description": "Rent",
            "frequency": "MONTHLY",
            "start_date": date(2024, 1, 15),
            "next_occurrence": date(2024, 1, 15),
        }
        fields.update(overrides)
        return RecurringTransaction.objects.create(**fields)

    def test_monthly_definition_fires_and_advances(self):
        recurring = self._recurring()

        result = process_recurring(self.user, as_of=date(2024, 1, 15))

        self.assertEqual(result.processed_count, 1)
        self.assertEqual(result.created_count, 1)
        tx = result.created_transactions[0]
        self.assertEqual(tx.date, date(2024, 1, 15))
        self.assertEqual(tx.amount, Decimal("100.00"))
        self.assertEqual(tx.type, "EXPENSE")
        self.assertEqual(tx.category, self.rent)
        recurring.refresh_from_db()
        self.assertEqual(recurring.next_occurrence, date(2024, 2, 15))

    def test_running_twice_creates_once(self):
        self._recurring()
        process_recurring(self.user, as_of=date(2024, 1, 15))
        again = process_recurring(self.user, as_of=date(2024, 1, 15))

        self.assertEqual(again.created_count, 0)
        self.assertEqual(Transaction.objects.filter(user=self.user).count(), 1)

    def test_existing_identical_transaction_blocks_creation_but_advances(self):
        recurring = self._recurring()
        Transaction.objects.create(
            user=self.user, category=self.rent, type="EXPENSE", amount=Decimal("100.00"),
            description="Rent", date=date(2024, 1, 15),
        )

        result = process_recurring(self.user, as_of=date(2024, 1, 15))

        self.assertEqual(result.processed_count, 1)
        self.assertEqual(result.created_count, 0)
        self.assertEqual(Transaction.objects.count(), 1)
        recurring.refresh_from_db()
        self.assertEqual(recurring.next_occurrence, date(2024, 2, 15))

    def test_only_due_active_unended_definitions(self):
        self._recurring(description="Not due", next_occurrence=date(2024, 1, 16))
        self._recurring(description="Paused", is_active=False)
        self._recurring(description="Ended", end_date=date(2024, 1, 14))
        self._recurring(description="Ends today", end_date=date(2024, 1, 15))
        RecurringTransaction.objects.create(
            user=self.other, category=Category.objects.create(user=self.other, name="Rent", type="EXPENSE"),
            type="EXPENSE", amount=Decimal("1"), description="Bob", frequency="DAILY",
            start_date=date(2024, 1, 15), next_occurrence=date(2024, 1, 15),
        )

        result = process_recurring(self.user, as_of=date(2024, 1, 15))

        self.assertEqual(result.processed_count, 1)
        self.assertEqual([t.description for t in result.created_transactions], ["Ends today"])
        self.assertFalse(Transaction.objects.filter(user=self.other).exists())

    def test_invisible_category_is_skipped(self):
        foreign = Category.objects.create(user=self.other, name="Loan", type="EXPENSE")
        bad = self._recurring(category=foreign, description="Loan")
        good = self._recurring(description="Rent")

        with self.assertLogs("expense_recurring.materializer", level="WARNING"):
            result = process_recurring(self.user, as_of=date(2024, 1, 15))

        self.assertEqual(result.skipped_count, 1)
        self.assertEqual(result.processed_count, 1)
        bad.refresh_from_db()
        good.refresh_from_db()
        self.assertEqual(bad.next_occurrence, date(2024, 1, 15))
        self.assertEqual(good.next_occurrence, date(2024, 2, 15))

    def test_default_category_is_usable(self):
        default = Category.objects.create(name="Salary", type="INCOME", is_default=True)
        self._recurring(category=default, type="INCOME", description="Pay")
        result = process_recurring(self.user, as_of=date(2024, 1, 15))
        self.assertEqual(result.created_count, 1)

    def test_string_date_is_accepted(self):
        self._recurring(frequency="WEEKLY")
        result = process_recurring(self.user, as_of="2024-01-15")
        self.assertEqual(result.created_count, 1)
        self.assertEqual(RecurringTransaction.objects.get().next_occurrence, date(2024, 1, 22))


class RecurringViewTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user("alice", password="pw")
        cls.rent = Category.objects.create(user=cls.user, name="Rent", type="EXPENSE")

    def setUp(self):
        self.client.force_login(self.user)

    def test_create_then_process(self):
        created = self.client.post(
            "/api/recurring/create/",
            data={"amount": 100, "description": "Rent", "type": "EXPENSE", "frequency": "MONTHLY",
                  "start_date": "2024-01-15", "category_id": self.rent.pk},
            content_type="application/json",
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["next_occurrence"], "2024-01-15")

        processed = self.client.post(
            "/api/recurring/process/", data={"date": "2024-01-15"}, content_type="application/json",
        ).json()
        self.assertEqual(processed["processed"], 1)
        self.assertEqual(processed["created"], 1)
        self.assertEqual(processed["transactions"][0]["date"], "2024-01-15")

        listing = self.client.get("/api/recurring/").json()
        self.assertEqual(listing[0]["next_occurrence"], "2024-02-15")

    def test_invalid_frequency_is_validation_error(self):
        response = self.client.post(
            "/api/recurring/create/",
            data={"amount": 100, "description": "Rent", "type": "EXPENSE", "frequency": "HOURLY",
                  "start_date": "2024-01-15", "category_id": self.rent.pk},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "frequency")

    def test_toggle(self):
        recurring = RecurringTransaction.objects.create(
            user=self.user, category=self.rent, type="EXPENSE", amount=Decimal("5"),
            description="Tea", frequency="DAILY", start_date=date(2024, 1, 1),
            next_occurrence=date(2024, 1, 1),
        )
        body = self.client.post(f"/api/recurring/{recurring.pk}/toggle/").json()
        self.assertFalse(body["is_active"])


class ProcessRecurringCommandTests(TestCase):

    def test_processes_every_user(self):
        for name in ("alice", "bob"):
            user = User.objects.create_user(name, password="pw")
            category = Category.objects.create(user=user, name="Rent", type="EXPENSE")
            RecurringTransaction.objects.create(
                user=user, category=category, type="EXPENSE", amount=Decimal("10"),
                description="Rent", frequency="DAILY", start_date=date(2024, 5, 1),
                next_occurrence=date(2024, 5, 1),
            )

        out = StringIO()
        call_command("process_recurring", "--date", "2024-05-01", stdout=out)

        self.assertIn("created 2 transaction(s)", out.getvalue())
        self.assertEqual(Transaction.objects.count(), 2)
