from django.urls import path
from . import views

urlpatterns = [
    path('', views.recurring_list, name='recurring'),
    path('create/', views.recurring_create, name='recurring_create'),
    path('<int:pk>/edit/', views.recurring_edit, name='recurring_edit'),
    path('<int:pk>/delete/', views.recurring_delete, name='recurring_delete'),
    path('<int:pk>/toggle/', views.recurring_toggle, name='recurring_toggle'),
    path('process/', views.recurring_process, name='recurring_process'),
]
