from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/", include("expense_auth.urls")),
    path("api/", include("expense_management.urls")),
    path("api/recurring/", include("expense_recurring.urls")),
    path("api/dashboard/", include("expense_dashboard.urls")),
]
