# payroll/urls/__init__.py
from django.urls import path, include

urlpatterns = [
    path("", include("payroll.urls.concept_urls")),
    path("", include("payroll.urls.period_urls")),
    path("", include("payroll.urls.payroll_urls")),
    path("", include("payroll.urls.report_urls")),
    path("", include("payroll.urls.config_urls")),
]
