from django.contrib.auth.models import User
from django.db import models
from django.db.models import Q


class Category(models.Model):
    INCOME = 'INCOME'
    EXPENSE = 'EXPENSE'
    TYPE_CHOICES = (
        (INCOME, 'Income'),
        (EXPENSE, 'Expense'),
    )
    # null for the shared default categories
    user = models.ForeignKey(User, on_delete=models.CASCADE, null=True, blank=True, related_name='categories')
    name = models.CharField(max_length=50)
    type = models.CharField(max_length=7, choices=TYPE_CHOICES)
    color = models.CharField(max_length=16, default='#3B82F6')
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'name', 'type'], name='uq_category_user_name_type'),
            models.UniqueConstraint(
                fields=['name', 'type'],
                condition=Q(user__isnull=True),
                name='uq_category_default_name_type',
            ),
        ]
        ordering = ['type', 'name']
        db_table = "expense_category"
        verbose_name_plural = "categories"

    def __str__(self):
        return f"{self.name} ({self.type})"

    @classmethod
    def visible_to(cls, user):
        """Categories a user may reference: their own plus the defaults."""
        return cls.objects.filter(Q(user=user) | Q(is_default=True))

    def as_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'type': self.type,
            'is_default': self.is_default,
        }


class Transaction(models.Model):
    TYPE_CHOICES = Category.TYPE_CHOICES
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='transactions')
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='transactions')
    type = models.CharField(max_length=7, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255)
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-id']
        db_table = "expense_transaction"
        indexes = [
            models.Index(fields=['user', 'date'], name='expense_tra_user_id_6b1d3c_idx'),
            models.Index(fields=['user', 'type', 'date'], name='expense_tra_user_id_9f0a2e_idx'),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} - {self.description}"

    def as_dict(self):
        return {
            'id': self.id,
            'amount': float(self.amount),
            'description': self.description,
            'type': self.type,
            'date': self.date.isoformat(),
            'category_id': self.category_id,
            'category': self.category.as_dict() if self.category_id else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class RecurringTransaction(models.Model):
    DAILY = 'DAILY'
    WEEKLY = 'WEEKLY'
    MONTHLY = 'MONTHLY'
    YEARLY = 'YEARLY'
    FREQUENCY_CHOICES = (
        (DAILY, 'Daily'),
        (WEEKLY, 'Weekly'),
        (MONTHLY, 'Monthly'),
        (YEARLY, 'Yearly'),
    )
    TYPE_CHOICES = Category.TYPE_CHOICES
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='recurring_transactions')
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='recurring_transactions')
    type = models.CharField(max_length=7, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255)
    frequency = models.CharField(max_length=7, choices=FREQUENCY_CHOICES)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    next_occurrence = models.DateField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['next_occurrence', 'id']
        db_table = "expense_recurring_transaction"
        indexes = [
            models.Index(fields=['user', 'is_active', 'next_occurrence'], name='expense_rec_user_id_4c7e81_idx'),
        ]

    def __str__(self):
        return f"{self.description} ({self.frequency}) {self.amount}"

    def as_dict(self):
        return {
            'id': self.id,
            'amount': float(self.amount),
            'description': self.description,
            'type': self.type,
            'frequency': self.frequency,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'next_occurrence': self.next_occurrence.isoformat(),
            'is_active': self.is_active,
            'category_id': self.category_id,
            'category': self.category.as_dict() if self.category_id else None,
        }
