# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import viewsets, permissions
from rest_framework.decorators import action

from payroll.serializers.config_serializer import (
    RatesUpdateSerializer,
    ConfigurationSerializer,
    WithholdingTableSerializer,
)
from payroll.services import config_service
from .utils import extend_schema, ok, responses_ok, std_errors

TAG = ["Configuration"]


class PayrollConfigViewSet(viewsets.ViewSet):
    """Rates, minimum wage, UVT and the withholding table used by the calculation engine."""
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(tags=TAG, summary="Current payroll configuration",
                   responses=responses_ok(ConfigurationSerializer, extra=std_errors()))
    def list(self, request):
        return ok(config_service.get_configuration())

    @extend_schema(
        tags=TAG,
        summary="Override payroll rates",
        description="Only the keys sent are changed. Overrides are cached (30 days by default).",
        request=RatesUpdateSerializer,
        responses=responses_ok(ConfigurationSerializer, extra=std_errors()),
    )
    @action(detail=False, methods=["put", "patch"], url_path="rates")
    def rates(self, request):
        ser = RatesUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = config_service.update_configuration(patch=dict(ser.validated_data), actor_id=request.user.id)
        return ok(data, "Configuration updated.")

    @extend_schema(tags=TAG, summary="Drop all overrides", request=None,
                   responses=responses_ok(ConfigurationSerializer, extra=std_errors()))
    @action(detail=False, methods=["post"], url_path="reset")
    def reset(self, request):
        return ok(config_service.reset_configuration(actor_id=request.user.id), "Configuration reset.")

    @extend_schema(tags=TAG, summary="Withholding tax brackets (UVT)",
                   responses=responses_ok(WithholdingTableSerializer, extra=std_errors()))
    @action(detail=False, methods=["get"], url_path="withholding-table")
    def withholding_table(self, request):
        return ok(config_service.withholding_table())
