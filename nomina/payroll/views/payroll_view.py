# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from payroll.models import Payroll
from payroll.serializers.payroll_serializer import (
    PayrollListSerializer,
    PayrollReadSerializer,
    PayrollCalculateSerializer,
    PayrollCreateSerializer,
    PayrollUpdateSerializer,
    PayrollRejectSerializer,
    PeriodBatchSerializer,
    BatchResultSerializer,
)
from payroll.services.payroll_service import (
    calculate_payroll as svc_calculate_payroll,
    create_payroll as svc_create_payroll,
    update_payroll as svc_update_payroll,
    delete_payroll as svc_delete_payroll,
    approve_payroll as svc_approve_payroll,
    reject_payroll as svc_reject_payroll,
    mark_paid as svc_mark_paid,
    calculate_period as svc_calculate_period,
    approve_period as svc_approve_period,
)
from payroll.selectors.payroll_selector import filter_payrolls, get_with_details
from payroll.utils.pagination import DefaultPagination
from .utils import (
    extend_schema, extend_schema_view, OpenApiExample, OpenApiTypes,
    path_int, q_str, q_date, ok, responses_ok, std_errors, CONFLICT, PAGE_PARAMS,
)

TAG = ["Payrolls"]


@extend_schema_view(
    list=extend_schema(
        tags=TAG,
        summary="List payrolls",
        parameters=[
            q_str("period_id", "Period id(s), comma separated"),
            q_str("employee_id", "Employee id(s)"),
            q_str("department_id", "Department id(s)"),
            q_str("position_id", "Position id(s)"),
            q_str("status", "draft,calculated,approved,paid,rejected,cancelled"),
            q_date("date_from", "Period starting on/after"),
            q_date("date_to", "Period ending on/before"),
            q_str("q", "Search payroll number or employee"),
            *PAGE_PARAMS,
        ],
        responses=responses_ok(PayrollListSerializer, many=True, extra=std_errors()),
    ),
    retrieve=extend_schema(
        tags=TAG,
        summary="Payroll with concept breakdown",
        parameters=[path_int("id", "Payroll ID")],
        responses=responses_ok(PayrollReadSerializer, extra=std_errors()),
    ),
    create=extend_schema(
        tags=TAG,
        summary="Register a draft payroll",
        description="Creates an uncalculated draft. 409 when the employee already has a payroll in the period.",
        request=PayrollCreateSerializer,
        responses=responses_ok(PayrollReadSerializer, status=201, extra=std_errors(CONFLICT)),
    ),
    partial_update=extend_schema(
        tags=TAG,
        summary="Update a payroll",
        description="Attendance inputs and `recalculate` only apply to draft payrolls. "
                    "`status` may move to draft or cancelled; approve/reject/pay have their own actions.",
        request=PayrollUpdateSerializer,
        responses=responses_ok(PayrollReadSerializer, extra=std_errors(CONFLICT)),
    ),
    destroy=extend_schema(
        tags=TAG,
        summary="Delete a draft payroll",
        responses={204: None, **std_errors(CONFLICT)},
    ),
)
class PayrollViewSet(viewsets.GenericViewSet):
    queryset = Payroll.objects.all()
    serializer_class = PayrollReadSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = DefaultPagination
    lookup_value_regex = r"\d+"

    def list(self, request):
        page = self.paginate_queryset(filter_payrolls(request.query_params))
        return self.get_paginated_response(PayrollListSerializer(page, many=True).data)

    def retrieve(self, request, pk=None):
        return ok(PayrollReadSerializer(get_with_details(int(pk))).data)

    def create(self, request):
        ser = PayrollCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        obj = svc_create_payroll(
            employee_id=data.pop("employee_id"),
            period_id=data.pop("payroll_period_id"),
            actor_id=request.user.id,
            **data,
        )
        return ok(PayrollReadSerializer(get_with_details(obj.id)).data, "Payroll created.", status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        ser = PayrollUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        obj = svc_update_payroll(payroll_id=int(pk), actor_id=request.user.id, **ser.validated_data)
        return ok(PayrollReadSerializer(obj).data, "Payroll updated.")

    def destroy(self, request, pk=None):
        svc_delete_payroll(payroll_id=int(pk), actor_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=TAG,
        summary="Calculate one payroll",
        description="Runs the gross-to-net engine for an employee in an open period and stores the "
                    "concept breakdown. A draft payroll is recalculated in place; any other status is a 409.",
        request=PayrollCalculateSerializer,
        responses=responses_ok(PayrollReadSerializer, extra=std_errors(CONFLICT)),
        examples=[
            OpenApiExample(
                "Full month",
                value={"employee_id": 1, "payroll_period_id": 3, "worked_days": 30, "worked_hours": 240,
                       "overtime_hours": 4},
                request_only=True,
            )
        ],
    )
    @action(detail=False, methods=["post"], url_path="calculate")
    def calculate(self, request):
        ser = PayrollCalculateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        v = ser.validated_data
        obj = svc_calculate_payroll(
            employee_id=v["employee_id"],
            period_id=v["payroll_period_id"],
            worked_days=v["worked_days"],
            worked_hours=v.get("worked_hours"),
            overtime_hours=v.get("overtime_hours", 0),
            unpaid_leave_days=v.get("unpaid_leave_days", 0),
            finalize=v.get("finalize", True),
            notes=v.get("notes"),
            actor_id=request.user.id,
        )
        return ok(PayrollReadSerializer(obj).data, "Payroll calculated.")

    @extend_schema(
        tags=TAG,
        summary="Calculate every payroll of a period",
        description="Per-employee failures are reported in `details` and never abort the batch.",
        request=PeriodBatchSerializer,
        responses=responses_ok(BatchResultSerializer, extra=std_errors(CONFLICT)),
    )
    @action(detail=False, methods=["post"], url_path="calculate-period")
    def calculate_period(self, request):
        ser = PeriodBatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = svc_calculate_period(
            period_id=ser.validated_data["payroll_period_id"],
            entries=ser.validated_data.get("entries"),
            actor_id=request.user.id,
        )
        return ok(result, f"{result['processed']} payroll(s) processed, {result['errors']} error(s).")

    @extend_schema(
        tags=TAG,
        summary="Approve all calculated payrolls of a period",
        request=PeriodBatchSerializer,
        responses={200: OpenApiTypes.OBJECT, **std_errors()},
    )
    @action(detail=False, methods=["post"], url_path="approve-period")
    def approve_period(self, request):
        ser = PeriodBatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = svc_approve_period(period_id=ser.validated_data["payroll_period_id"], approver_id=request.user.id)
        return ok(result, f"{result['approved']} payroll(s) approved.")

    @extend_schema(tags=TAG, summary="Approve a calculated payroll", request=None,
                   responses=responses_ok(PayrollReadSerializer, extra=std_errors(CONFLICT)))
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        obj = svc_approve_payroll(payroll_id=int(pk), approver_id=request.user.id)
        return ok(PayrollReadSerializer(get_with_details(obj.id)).data, "Payroll approved.")

    @extend_schema(tags=TAG, summary="Reject a calculated or approved payroll", request=PayrollRejectSerializer,
                   responses=responses_ok(PayrollReadSerializer, extra=std_errors(CONFLICT)))
    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None):
        ser = PayrollRejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        obj = svc_reject_payroll(payroll_id=int(pk), actor_id=request.user.id, **ser.validated_data)
        return ok(PayrollReadSerializer(get_with_details(obj.id)).data, "Payroll rejected.")

    @extend_schema(tags=TAG, summary="Mark an approved payroll as paid", request=None,
                   responses=responses_ok(PayrollReadSerializer, extra=std_errors(CONFLICT)))
    @action(detail=True, methods=["post"], url_path="mark-paid")
    def mark_paid(self, request, pk=None):
        obj = svc_mark_paid(payroll_id=int(pk), actor_id=request.user.id)
        return ok(PayrollReadSerializer(get_with_details(obj.id)).data, "Payroll marked as paid.")
