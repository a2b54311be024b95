from django.db import migrations

from expense_core.defaults import seed_default_categories


def seed(apps, schema_editor):
    Category = apps.get_model("expense_core", "Category")
    seed_default_categories(Category)


def unseed(apps, schema_editor):
    Category = apps.get_model("expense_core", "Category")
    Category.objects.filter(is_default=True, user__isnull=True).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("expense_core", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed, unseed),
    ]
