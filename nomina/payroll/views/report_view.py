# -*- coding: utf-8 -*-
from __future__ import annotations
from django.http import HttpResponse
from rest_framework import viewsets, permissions
from rest_framework.decorators import action

from payroll.serializers.report_serializer import (
    ReportQuerySerializer,
    ExportQuerySerializer,
    HistoryQuerySerializer,
    AnalyticsQuerySerializer,
)
from payroll.services import report_service, export_service
from .utils import (
    extend_schema, OpenApiResponse, OpenApiTypes,
    path_int, q_int, q_str, q_date, ok, std_errors,
)

TAG = ["Payroll reports"]

FILTER_PARAMS = [
    q_str("period_id", "Period id(s), comma separated"),
    q_str("department_id", "Department id(s)"),
    q_str("position_id", "Position id(s)"),
    q_str("employee_id", "Employee id(s)"),
    q_str("status", "Payroll statuses (default calculated,approved,paid)"),
    q_date("date_from", "Period starting on/after"),
    q_date("date_to", "Period ending on/before"),
]


def _filters(request, serializer_cls=ReportQuerySerializer):
    ser = serializer_cls(data=request.query_params)
    ser.is_valid(raise_exception=True)
    data = dict(ser.validated_data)
    report_type = data.pop("report_type", "summary")
    return data, report_type


class PayrollReportViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        tags=TAG,
        summary="Payroll report",
        description="`summary`: totals, averages, by status. `detailed`: one row per payroll with its concepts. "
                    "`comparative`: per-period totals with the change against the previous period.",
        parameters=[q_str("report_type", "summary / detailed / comparative",
                          enum=list(report_service.REPORT_TYPES)), *FILTER_PARAMS],
        responses={200: OpenApiTypes.OBJECT, **std_errors()},
    )
    def list(self, request):
        filters, report_type = _filters(request)
        return ok(report_service.payroll_report(filters, report_type))

    @extend_schema(tags=TAG, summary="Totals per department", parameters=FILTER_PARAMS,
                   responses={200: OpenApiTypes.OBJECT, **std_errors()})
    @action(detail=False, methods=["get"], url_path="department")
    def department(self, request):
        filters, _ = _filters(request)
        return ok(report_service.department_report(filters))

    @extend_schema(tags=TAG, summary="Totals per position (with min / max net)", parameters=FILTER_PARAMS,
                   responses={200: OpenApiTypes.OBJECT, **std_errors()})
    @action(detail=False, methods=["get"], url_path="position")
    def position(self, request):
        filters, _ = _filters(request)
        return ok(report_service.position_report(filters))

    @extend_schema(
        tags=TAG,
        summary="Payroll history of one employee",
        parameters=[path_int("employee_id", "Employee ID"), q_int("limit", "Number of periods (default 12)")],
        responses={200: OpenApiTypes.OBJECT, **std_errors()},
    )
    @action(detail=False, methods=["get"], url_path=r"employee-history/(?P<employee_id>\d+)")
    def employee_history(self, request, employee_id=None):
        ser = HistoryQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        return ok(report_service.employee_history(int(employee_id), limit=ser.validated_data["limit"]))

    @extend_schema(
        tags=TAG,
        summary="Monthly trends and department distribution",
        parameters=[q_int("months", "Look-back window in months (default 12)")],
        responses={200: OpenApiTypes.OBJECT, **std_errors()},
    )
    @action(detail=False, methods=["get"], url_path="analytics")
    def analytics(self, request):
        ser = AnalyticsQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        return ok(report_service.analytics(months=ser.validated_data["months"]))

    @extend_schema(
        tags=TAG,
        summary="Payroll counts per status in a period",
        parameters=[path_int("period_id", "Period ID")],
        responses={200: OpenApiTypes.OBJECT, **std_errors()},
    )
    @action(detail=False, methods=["get"], url_path=r"period-status/(?P<period_id>\d+)")
    def period_status(self, request, period_id=None):
        return ok(report_service.period_status_summary(int(period_id)))

    @extend_schema(
        tags=TAG,
        summary="Export to Excel",
        parameters=[q_str("report_type", "summary / detailed", enum=["summary", "detailed"]), *FILTER_PARAMS],
        responses={200: OpenApiResponse(OpenApiTypes.BINARY, description="xlsx workbook"), **std_errors()},
    )
    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        filters, report_type = _filters(request, ExportQuerySerializer)
        buffer = export_service.build_workbook(filters, report_type)
        response = HttpResponse(buffer.getvalue(), content_type=export_service.XLSX_CONTENT_TYPE)
        response["Content-Disposition"] = f'attachment; filename="{export_service.export_filename(report_type, filters)}"'
        return response
