from django.urls import path
from . import views

urlpatterns = [
# Categories
    path('categories/', views.category_list, name='categories'),
    path('categories/create/', views.category_create, name='category_create'),
    path('categories/<int:pk>/edit/', views.category_edit, name='category_edit'),
    path('categories/<int:pk>/delete/', views.category_delete, name='category_delete'),
    path('categories/<int:pk>/stats/', views.category_stats, name='category_stats'),

# Transactions
    path('transactions/', views.transaction_list, name='transactions'),
    path('transactions/recent/', views.transaction_recent, name='transaction_recent'),
    path('transactions/create/', views.transaction_create, name='transaction_create'),
    path('transactions/<int:pk>/edit/', views.transaction_edit, name='transaction_edit'),
    path('transactions/<int:pk>/delete/', views.transaction_delete, name='transaction_delete'),
]
