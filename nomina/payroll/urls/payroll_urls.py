# -*- coding: utf-8 -*-
from __future__ import annotations
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from payroll.views.payroll_view import PayrollViewSet

router = DefaultRouter()
router.register(r"payrolls", PayrollViewSet, basename="payrolls")

urlpatterns = [
    path("", include(router.urls)),
]
