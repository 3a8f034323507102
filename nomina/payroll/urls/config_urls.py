# -*- coding: utf-8 -*-
from __future__ import annotations
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from payroll.views.config_view import PayrollConfigViewSet

router = DefaultRouter()
router.register(r"configuration", PayrollConfigViewSet, basename="configuration")

urlpatterns = [
    path("", include(router.urls)),
]
