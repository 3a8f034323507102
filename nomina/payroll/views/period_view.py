# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from payroll.models import PayrollPeriod
from payroll.serializers.period_serializer import (
    PayrollPeriodReadSerializer,
    PayrollPeriodCreateSerializer,
    PayrollPeriodUpdateSerializer,
)
from payroll.serializers.payroll_serializer import PayrollListSerializer
from payroll.services.period_service import (
    create_period as svc_create_period,
    update_period as svc_update_period,
    delete_period as svc_delete_period,
    open_period as svc_open_period,
    close_period as svc_close_period,
    reopen_period as svc_reopen_period,
)
from payroll.selectors.period_selector import (
    filter_periods,
    current_period,
    active_periods,
    period_payrolls,
    period_summary,
    get_period_by_id,
)
from payroll.utils.pagination import DefaultPagination
from .utils import (
    extend_schema, extend_schema_view, OpenApiExample, OpenApiTypes, OpenApiResponse,
    path_int, q_int, q_str, q_date, ok, responses_ok, std_errors, CONFLICT, PAGE_PARAMS,
)

TAG = ["Payroll periods"]


@extend_schema_view(
    list=extend_schema(
        tags=TAG,
        summary="List payroll periods",
        description="Newest first.",
        parameters=[
            q_str("status", "draft,open,processing,closed"),
            q_str("period_type", "monthly,biweekly,weekly,special"),
            q_int("year", "Calendar year"),
            q_int("month", "Month 1..12"),
            q_date("date_from", "Periods ending on/after"),
            q_date("date_to", "Periods starting on/before"),
            q_str("q", "Search by name"),
            *PAGE_PARAMS,
        ],
        responses=responses_ok(PayrollPeriodReadSerializer, many=True, extra=std_errors()),
    ),
    retrieve=extend_schema(
        tags=TAG,
        summary="Period detail",
        parameters=[path_int("id", "Period ID")],
        responses=responses_ok(PayrollPeriodReadSerializer, extra=std_errors()),
    ),
    create=extend_schema(
        tags=TAG,
        summary="Create a period (draft)",
        description="`end_date > start_date`, `pay_date >= end_date`, no overlap with another period. "
                    "`year`, `month` and `period_number` are derived from `start_date`.",
        request=PayrollPeriodCreateSerializer,
        responses=responses_ok(PayrollPeriodReadSerializer, status=201, extra=std_errors()),
        examples=[
            OpenApiExample(
                "February 2024",
                value={
                    "name": "Nómina febrero 2024",
                    "period_type": "monthly",
                    "start_date": "2024-02-01",
                    "end_date": "2024-02-29",
                    "pay_date": "2024-03-01",
                },
                request_only=True,
            )
        ],
    ),
    partial_update=extend_schema(
        tags=TAG,
        summary="Edit a draft period",
        description="422 unless the period is draft.",
        request=PayrollPeriodUpdateSerializer,
        responses=responses_ok(PayrollPeriodReadSerializer, extra=std_errors()),
    ),
    destroy=extend_schema(
        tags=TAG,
        summary="Delete a draft period without payrolls",
        responses={204: None, **std_errors(CONFLICT)},
    ),
)
class PayrollPeriodViewSet(viewsets.GenericViewSet):
    queryset = PayrollPeriod.objects.all()
    serializer_class = PayrollPeriodReadSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = DefaultPagination
    lookup_value_regex = r"\d+"

    def list(self, request):
        page = self.paginate_queryset(filter_periods(request.query_params))
        return self.get_paginated_response(PayrollPeriodReadSerializer(page, many=True).data)

    def retrieve(self, request, pk=None):
        return ok(PayrollPeriodReadSerializer(get_period_by_id(int(pk))).data)

    def create(self, request):
        ser = PayrollPeriodCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        obj = svc_create_period(actor_id=request.user.id, **ser.validated_data)
        return ok(PayrollPeriodReadSerializer(obj).data, "Period created.", status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        ser = PayrollPeriodUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        obj = svc_update_period(period_id=int(pk), actor_id=request.user.id, **ser.validated_data)
        return ok(PayrollPeriodReadSerializer(obj).data, "Period updated.")

    def destroy(self, request, pk=None):
        svc_delete_period(period_id=int(pk), actor_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ---- State machine
    @extend_schema(tags=TAG, summary="Open a draft period", request=None,
                   responses=responses_ok(PayrollPeriodReadSerializer, extra=std_errors(CONFLICT)))
    @action(detail=True, methods=["post"], url_path="open")
    def open(self, request, pk=None):
        obj = svc_open_period(period_id=int(pk), actor_id=request.user.id)
        return ok(PayrollPeriodReadSerializer(obj).data, "Period opened.")

    @extend_schema(
        tags=TAG,
        summary="Close a period",
        description="409 while payrolls are still pending; `errors.pending_payrolls` holds the count.",
        request=None,
        responses=responses_ok(PayrollPeriodReadSerializer, extra=std_errors(CONFLICT)),
    )
    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request, pk=None):
        obj = svc_close_period(period_id=int(pk), actor_id=request.user.id)
        return ok(PayrollPeriodReadSerializer(obj).data, "Period closed.")

    @extend_schema(tags=TAG, summary="Reopen a closed period", request=None,
                   responses=responses_ok(PayrollPeriodReadSerializer, extra=std_errors(CONFLICT)))
    @action(detail=True, methods=["post"], url_path="reopen")
    def reopen(self, request, pk=None):
        obj = svc_reopen_period(period_id=int(pk), actor_id=request.user.id)
        return ok(PayrollPeriodReadSerializer(obj).data, "Period reopened.")

    # ---- Read side
    @extend_schema(tags=TAG, summary="Totals and status breakdown of a period",
                   responses={200: OpenApiTypes.OBJECT, **std_errors()})
    @action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request, pk=None):
        return ok(period_summary(int(pk)))

    @extend_schema(tags=TAG, summary="Payrolls of a period", parameters=PAGE_PARAMS,
                   responses=responses_ok(PayrollListSerializer, many=True, extra=std_errors()))
    @action(detail=True, methods=["get"], url_path="payrolls")
    def payrolls(self, request, pk=None):
        page = self.paginate_queryset(period_payrolls(int(pk)))
        return self.get_paginated_response(PayrollListSerializer(page, many=True).data)

    @extend_schema(
        tags=TAG,
        summary="Current period",
        description="Period containing today, else the latest open one. `data` is null when there is none.",
        responses={200: OpenApiResponse(PayrollPeriodReadSerializer)},
    )
    @action(detail=False, methods=["get"], url_path="current")
    def current(self, request):
        obj = current_period()
        if obj is None:
            return ok(None, "No current period.")
        return ok(PayrollPeriodReadSerializer(obj).data)

    @extend_schema(tags=TAG, summary="Open / processing periods",
                   responses=responses_ok(PayrollPeriodReadSerializer, many=True))
    @action(detail=False, methods=["get"], url_path="active")
    def active(self, request):
        return ok(PayrollPeriodReadSerializer(active_periods(), many=True).data)
