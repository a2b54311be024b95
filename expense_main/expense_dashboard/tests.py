from datetime import date
from decimal import Decimal
from unittest import mock

from django.contrib.auth.models import User
from django.test import TestCase

from expense_core.errors import ValidationError
from expense_core.models import Category, Transaction
from expense_dashboard import analytics_service as analytics


class AnalyticsTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user("alice", password="pw")
        cls.other = User.objects.create_user("bob", password="pw")
        cls.salary = Category.objects.create(name="Salary", type="INCOME", is_default=True)
        cls.food = Category.objects.create(user=cls.user, name="Food", type="EXPENSE")
        cls.rent = Category.objects.create(user=cls.user, name="Rent", type="EXPENSE")

    def add(self, amount, type, day, category, user=None, description="tx"):
        return Transaction.objects.create(
            user=user or self.user,
            category=category,
            type=type,
            amount=Decimal(amount),
            description=description,
            date=day,
        )


class MonthlyStatsTests(AnalyticsTestCase):

    def test_empty_month_is_all_zero(self):
        stats = analytics.monthly_stats(self.user, 2024, 0)
        self.assertEqual(stats, {
            "total_income": 0,
            "total_expenses": 0,
            "net_income": 0,
            "income_count": 0,
            "expense_count": 0,
            "total_transactions": 0,
        })

    def test_totals_cover_whole_calendar_month(self):
        self.add("3000", "INCOME", date(2024, 1, 1), self.salary)
        self.add("900", "EXPENSE", date(2024, 1, 31), self.rent)
        self.add("50.50", "EXPENSE", date(2024, 1, 10), self.food)
        self.add("70", "EXPENSE", date(2024, 2, 1), self.food)
        self.add("10", "EXPENSE", date(2023, 12, 31), self.food)
        self.add("999", "INCOME", date(2024, 1, 5), self.salary, user=self.other)

        stats = analytics.monthly_stats(self.user, 2024, 0)

        self.assertEqual(stats["total_income"], Decimal("3000"))
        self.assertEqual(stats["total_expenses"], Decimal("950.50"))
        self.assertEqual(stats["net_income"], stats["total_income"] - stats["total_expenses"])
        self.assertEqual(stats["income_count"], 1)
        self.assertEqual(stats["expense_count"], 2)
        self.assertEqual(stats["total_transactions"], 3)

    def test_month_is_zero_indexed(self):
        self.add("20", "EXPENSE", date(2024, 12, 24), self.food)
        self.assertEqual(analytics.monthly_stats(self.user, 2024, 11)["expense_count"], 1)
        with self.assertRaises(ValidationError):
            analytics.monthly_stats(self.user, 2024, 12)

    def test_month_over_month(self):
        self.add("100", "INCOME", date(2023, 12, 5), self.salary)
        self.add("150", "INCOME", date(2024, 1, 5), self.salary)
        self.add("40", "EXPENSE", date(2024, 1, 6), self.food)

        result = analytics.month_over_month(self.user, 2024, 0)

        self.assertEqual(result["previous"]["total_income"], Decimal("100"))
        self.assertAlmostEqual(result["income_change"], 50.0)
        # no expenses in December -> no percentage
        self.assertIsNone(result["expense_change"])


class CategoryBreakdownTests(AnalyticsTestCase):

    def test_grouped_and_sorted_by_total(self):
        self.add("10", "EXPENSE", date(2024, 1, 2), self.food)
        self.add("15", "EXPENSE", date(2024, 1, 3), self.food)
        self.add("900", "EXPENSE", date(2024, 1, 1), self.rent)
        self.add("3000", "INCOME", date(2024, 1, 1), self.salary)

        rows = analytics.category_breakdown(self.user, type="EXPENSE")

        self.assertEqual([r["category"]["name"] for r in rows], ["Rent", "Food"])
        self.assertEqual(rows[1]["total_amount"], Decimal("25"))
        self.assertEqual(rows[1]["transaction_count"], 2)

    def test_matches_monthly_totals(self):
        self.add("10", "EXPENSE", date(2024, 3, 2), self.food)
        self.add("900", "EXPENSE", date(2024, 3, 1), self.rent)
        self.add("5", "EXPENSE", date(2024, 4, 1), self.rent)
        self.add("3000", "INCOME", date(2024, 3, 1), self.salary)

        first, last = analytics.month_bounds(2024, 2)
        stats = analytics.monthly_stats(self.user, 2024, 2)
        expenses = analytics.category_breakdown(self.user, type="EXPENSE", start_date=first, end_date=last)
        income = analytics.category_breakdown(self.user, type="INCOME", start_date=first, end_date=last)

        self.assertEqual(sum(r["total_amount"] for r in expenses), stats["total_expenses"])
        self.assertEqual(sum(r["total_amount"] for r in income), stats["total_income"])

    def test_missing_categories_are_dropped(self):
        self.add("10", "EXPENSE", date(2024, 1, 2), self.food)
        rows = [{"category_id": self.food.pk, "total": Decimal("10"), "count": 1},
                {"category_id": 424242, "total": Decimal("99"), "count": 1}]
        with mock.patch.object(analytics.Transaction.objects, "filter") as filt:
            filt.return_value.values.return_value.annotate.return_value.order_by.return_value = rows
            result = analytics.category_breakdown(self.user)
        self.assertEqual([r["category_id"] for r in result], [self.food.pk])


class MonthlyTrendsTests(AnalyticsTestCase):

    def test_series_ends_at_current_month(self):
        trends = analytics.monthly_trends(self.user, months=3, today=date(2024, 2, 10))

        self.assertEqual(
            [(t["year"], t["month"], t["month_name"]) for t in trends],
            [(2023, 11, "Dec"), (2024, 0, "Jan"), (2024, 1, "Feb")],
        )

    def test_sums_per_month(self):
        self.add("3000", "INCOME", date(2024, 1, 1), self.salary)
        self.add("1000", "EXPENSE", date(2024, 1, 20), self.rent)
        self.add("200", "EXPENSE", date(2024, 2, 2), self.food)

        trends = analytics.monthly_trends(self.user, months=2, today=date(2024, 2, 29))

        self.assertEqual(trends[0]["income"], Decimal("3000"))
        self.assertEqual(trends[0]["net"], Decimal("2000"))
        self.assertEqual(trends[1]["expenses"], Decimal("200"))
        self.assertEqual(trends[1]["net"], Decimal("-200"))

    def test_default_and_bounds(self):
        self.assertEqual(len(analytics.monthly_trends(self.user, today=date(2024, 6, 1))), 12)
        self.assertEqual(len(analytics.monthly_trends(self.user, months=24, today=date(2024, 6, 1))), 24)
        with self.assertRaises(ValidationError):
            analytics.monthly_trends(self.user, months=0)
        with self.assertRaises(ValidationError):
            analytics.monthly_trends(self.user, months=25)

    def test_summary(self):
        self.add("1000", "INCOME", date(2024, 1, 1), self.salary)
        self.add("250", "EXPENSE", date(2024, 1, 2), self.food)
        self.add("500", "EXPENSE", date(2024, 2, 2), self.rent)

        trends = analytics.monthly_trends(self.user, months=2, today=date(2024, 2, 15))
        summary = analytics.trend_summary(trends)

        self.assertEqual(summary["total_income"], 1000.0)
        self.assertEqual(summary["total_expenses"], 750.0)
        self.assertEqual(summary["net"], 250.0)
        self.assertEqual(summary["average_expenses"], 375.0)
        self.assertEqual(summary["savings_rate"], 25.0)
        self.assertEqual(summary["best_month"], "Jan 2024")
        self.assertEqual(summary["worst_month"], "Feb 2024")

    def test_summary_of_nothing(self):
        summary = analytics.trend_summary([])
        self.assertIsNone(summary["savings_rate"])
        self.assertEqual(summary["net"], 0.0)


class DashboardViewTests(AnalyticsTestCase):

    def setUp(self):
        self.client.force_login(self.user)

    def test_monthly_stats_endpoint(self):
        self.add("12.50", "EXPENSE", date(2024, 1, 3), self.food)
        body = self.client.get("/api/dashboard/monthly-stats/", {"year": 2024, "month": 0}).json()
        self.assertEqual(body["total_expenses"], 12.5)
        self.assertEqual(body["net_income"], -12.5)

    def test_monthly_trends_endpoint(self):
        body = self.client.get("/api/dashboard/monthly-trends/", {"months": 4}).json()
        self.assertEqual(len(body["trends"]), 4)
        self.assertIn("savings_rate", body["summary"])

    def test_trend_months_out_of_range(self):
        response = self.client.get("/api/dashboard/monthly-trends/", {"months": 30})
        self.assertEqual(response.status_code, 400)

    def test_dashboard_overview(self):
        body = self.client.get("/api/dashboard/").json()
        self.assertEqual(len(body["trends"]), 6)
        self.assertEqual(body["recent_transactions"], [])
        self.assertIn("income_change", body)
