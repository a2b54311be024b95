from datetime import date
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase

from expense_core import validators as v
from expense_core.defaults import DEFAULT_CATEGORIES, seed_default_categories
from expense_core.errors import ValidationError
from expense_core.models import Category, RecurringTransaction
from expense_core.occurrence import initial_occurrence, next_occurrence


class NextOccurrenceTests(TestCase):

    def test_each_frequency_moves_one_period(self):
        d = date(2024, 1, 15)
        self.assertEqual(next_occurrence(d, RecurringTransaction.DAILY), date(2024, 1, 16))
        self.assertEqual(next_occurrence(d, RecurringTransaction.WEEKLY), date(2024, 1, 22))
        self.assertEqual(next_occurrence(d, RecurringTransaction.MONTHLY), date(2024, 2, 15))
        self.assertEqual(next_occurrence(d, RecurringTransaction.YEARLY), date(2025, 1, 15))

    def test_result_is_strictly_later(self):
        days = [date(2023, 12, 31), date(2024, 1, 31), date(2024, 2, 29), date(2024, 6, 30)]
        for d in days:
            for freq, _ in RecurringTransaction.FREQUENCY_CHOICES:
                self.assertGreater(next_occurrence(d, freq), d, (d, freq))

    def test_month_end_clamps(self):
        self.assertEqual(next_occurrence(date(2024, 1, 31), "MONTHLY"), date(2024, 2, 29))
        self.assertEqual(next_occurrence(date(2023, 1, 31), "MONTHLY"), date(2023, 2, 28))
        self.assertEqual(next_occurrence(date(2024, 2, 29), "YEARLY"), date(2025, 2, 28))

    def test_year_rollover(self):
        self.assertEqual(next_occurrence(date(2024, 12, 31), "DAILY"), date(2025, 1, 1))
        self.assertEqual(next_occurrence(date(2024, 12, 15), "MONTHLY"), date(2025, 1, 15))

    def test_unknown_frequency_is_a_no_op(self):
        d = date(2024, 3, 1)
        self.assertEqual(next_occurrence(d, "HOURLY"), d)
        self.assertEqual(next_occurrence(d, None), d)

    def test_initial_occurrence_is_start_date(self):
        self.assertEqual(initial_occurrence(date(2024, 1, 15), "MONTHLY"), date(2024, 1, 15))


class ValidatorTests(TestCase):

    def test_amount(self):
        self.assertEqual(v.parse_amount("12.5"), Decimal("12.50"))
        self.assertEqual(v.parse_amount(100), Decimal("100.00"))
        for bad in (None, "", "abc", "0", -5, "NaN", "Infinity", True):
            with self.assertRaises(ValidationError):
                v.parse_amount(bad)

    def test_amount_rounds_before_positivity_check(self):
        self.assertEqual(v.parse_amount("0.006"), Decimal("0.01"))
        for bad in ("0.001", "0.004", "-0.001"):
            with self.assertRaises(ValidationError):
                v.parse_amount(bad)

    def test_amount_fits_the_column(self):
        self.assertEqual(v.parse_amount("9999999999.99"), Decimal("9999999999.99"))
        for bad in ("12345678901", "12345678901234", "1e30", "1e-30"):
            with self.assertRaises(ValidationError):
                v.parse_amount(bad)

    def test_text_length(self):
        self.assertEqual(v.parse_text("  Rent ", "description", max_length=255), "Rent")
        with self.assertRaises(ValidationError):
            v.parse_text("   ", "description", max_length=255)
        with self.assertRaises(ValidationError):
            v.parse_text("x" * 256, "description", max_length=255)
        with self.assertRaises(ValidationError):
            v.parse_text(42, "description", max_length=255)

    def test_enums_are_case_insensitive(self):
        self.assertEqual(v.parse_type("income"), "INCOME")
        self.assertEqual(v.parse_frequency("Weekly"), "WEEKLY")
        with self.assertRaises(ValidationError):
            v.parse_type("TRANSFER")
        with self.assertRaises(ValidationError):
            v.parse_frequency("HOURLY")

    def test_dates(self):
        self.assertEqual(v.parse_date("2024-01-15"), date(2024, 1, 15))
        self.assertEqual(v.parse_date("2024-01-15T10:30:00Z"), date(2024, 1, 15))
        self.assertEqual(v.parse_date(date(2024, 1, 15)), date(2024, 1, 15))
        self.assertIsNone(v.parse_optional_date("", "end_date"))
        with self.assertRaises(ValidationError):
            v.parse_date("15/01/2024")

    def test_error_names_the_field(self):
        with self.assertRaises(ValidationError) as ctx:
            v.parse_int("x", "months")
        self.assertEqual(ctx.exception.code, "VALIDATION_ERROR")
        self.assertEqual(ctx.exception.details, {"field": "months"})

    def test_unknown_fields(self):
        v.reject_unknown_fields({"amount": 1}, ("amount", "type"))
        with self.assertRaises(ValidationError) as ctx:
            v.reject_unknown_fields({"amount": 1, "user_id": 3}, ("amount",))
        self.assertEqual(ctx.exception.details["fields"], ["user_id"])


class DefaultCategoryTests(TestCase):

    def test_seed_is_idempotent(self):
        self.assertEqual(seed_default_categories(Category), len(DEFAULT_CATEGORIES))
        self.assertEqual(seed_default_categories(Category), 0)
        defaults = Category.objects.filter(is_default=True)
        self.assertEqual(defaults.count(), len(DEFAULT_CATEGORIES))
        self.assertFalse(defaults.filter(user__isnull=False).exists())

    def test_visible_to(self):
        seed_default_categories(Category)
        alice = User.objects.create_user("alice", password="pw")
        bob = User.objects.create_user("bob", password="pw")
        mine = Category.objects.create(user=alice, name="Pets", type="EXPENSE")
        theirs = Category.objects.create(user=bob, name="Pets", type="EXPENSE")

        visible = Category.visible_to(alice)
        self.assertIn(mine, visible)
        self.assertNotIn(theirs, visible)
        self.assertEqual(visible.filter(is_default=True).count(), len(DEFAULT_CATEGORIES))


class ApiViewTests(TestCase):

    def test_anonymous_caller_gets_unauthorized(self):
        response = self.client.get("/api/transactions/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "UNAUTHORIZED")

    def test_bad_json_body(self):
        user = User.objects.create_user("carol", password="pw")
        self.client.force_login(user)
        response = self.client.post(
            "/api/categories/create/", data="{not json", content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")
