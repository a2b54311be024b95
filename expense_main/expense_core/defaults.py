"""
Default categories shared by every user.

Seeded once by the ``0002_seed_default_categories`` migration; the service
layer refuses to update or delete them.
"""

DEFAULT_CATEGORIES = [
    # Income
    ('Salary', 'INCOME', '#10B981'),
    ('Freelance', 'INCOME', '#14B8A6'),
    ('Investments', 'INCOME', '#22C55E'),
    ('Gifts', 'INCOME', '#84CC16'),
    ('Other Income', 'INCOME', '#6B7280'),

    # Expense
    ('Food & Dining', 'EXPENSE', '#EF4444'),
    ('Groceries', 'EXPENSE', '#F97316'),
    ('Transportation', 'EXPENSE', '#F59E0B'),
    ('Housing', 'EXPENSE', '#8B5CF6'),
    ('Utilities', 'EXPENSE', '#6366F1'),
    ('Healthcare', 'EXPENSE', '#EC4899'),
    ('Entertainment', 'EXPENSE', '#3B82F6'),
    ('Shopping', 'EXPENSE', '#06B6D4'),
    ('Subscriptions', 'EXPENSE', '#A855F7'),
    ('Other', 'EXPENSE', '#6B7280'),
]


def seed_default_categories(category_model):
    """
    Create any missing default categories.

    Takes the model class so the data migration can pass its historical
    model. Returns the number of categories created.
    """
    created = 0
    for name, cat_type, color in DEFAULT_CATEGORIES:
        _, was_created = category_model.objects.get_or_create(
            user=None,
            name=name,
            type=cat_type,
            defaults={'color': color, 'is_default': True},
        )
        if was_created:
            created += 1
    return created
