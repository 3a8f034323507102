# -*- coding: utf-8 -*-
from __future__ import annotations
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from payroll.views.period_view import PayrollPeriodViewSet

router = DefaultRouter()
router.register(r"payroll-periods", PayrollPeriodViewSet, basename="payroll-periods")

urlpatterns = [
    path("", include(router.urls)),
]
