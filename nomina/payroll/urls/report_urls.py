# -*- coding: utf-8 -*-
from __future__ import annotations
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from payroll.views.report_view import PayrollReportViewSet

router = DefaultRouter()
router.register(r"payroll-reports", PayrollReportViewSet, basename="payroll-reports")

urlpatterns = [
    path("", include(router.urls)),
]
