from django.urls import path
from . import views

urlpatterns = [
# Dashboard
    path('', views.dashboard, name='dashboard'),
    path('monthly-stats/', views.monthly_stats, name='monthly_stats'),
    path('category-breakdown/', views.category_breakdown, name='category_breakdown'),
    path('monthly-trends/', views.monthly_trends, name='monthly_trends'),
]
