# -*- coding: utf-8 -*-
from __future__ import annotations
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from payroll.views.concept_view import PayrollConceptViewSet

router = DefaultRouter()
router.register(r"payroll-concepts", PayrollConceptViewSet, basename="payroll-concepts")

urlpatterns = [
    path("", include(router.urls)),
]
