# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from payroll.models import PayrollConcept
from payroll.serializers.concept_serializer import (
    PayrollConceptReadSerializer,
    PayrollConceptWriteSerializer,
    FormulaValidateSerializer,
    FormulaResultSerializer,
)
from payroll.services.concept_service import (
    create_concept as svc_create_concept,
    update_concept as svc_update_concept,
    delete_concept as svc_delete_concept,
    activate_concept as svc_activate_concept,
    deactivate_concept as svc_deactivate_concept,
    validate_formula as svc_validate_formula,
)
from payroll.selectors.concept_selector import (
    filter_concepts,
    active_by_type,
    active_grouped,
    config_summary,
    get_concept_by_id,
    TYPES,
)
from payroll.utils.pagination import DefaultPagination
from .utils import (
    extend_schema, extend_schema_view, OpenApiExample, OpenApiTypes, inline_serializer,
    path_int, path_str, q_str, ok, responses_ok, std_errors, PAGE_PARAMS,
)

TAG = ["Payroll concepts"]


@extend_schema_view(
    list=extend_schema(
        tags=TAG,
        summary="List payroll concepts",
        description="Ordered by type then name. Filters accept comma separated values.",
        parameters=[
            q_str("type", "earning,deduction,tax,benefit"),
            q_str("status", "active / inactive"),
            q_str("calculation_type", "fixed / percentage / formula"),
            q_str("is_mandatory", "true / false"),
            q_str("q", "Search code or name"),
            *PAGE_PARAMS,
        ],
        responses=responses_ok(PayrollConceptReadSerializer, many=True, extra=std_errors()),
    ),
    retrieve=extend_schema(
        tags=TAG,
        summary="Concept detail",
        parameters=[path_int("id", "Concept ID")],
        responses=responses_ok(PayrollConceptReadSerializer, extra=std_errors()),
    ),
    create=extend_schema(
        tags=TAG,
        summary="Create a concept",
        description="`fixed`/`percentage` need `default_value`; `formula` needs a formula whose `{CODE}` "
                    "variables are known concept codes or built-ins.",
        request=PayrollConceptWriteSerializer,
        responses=responses_ok(PayrollConceptReadSerializer, status=201, extra=std_errors()),
        examples=[
            OpenApiExample(
                "Food allowance",
                value={
                    "code": "AUX_ALIMENTACION",
                    "name": "Auxilio de alimentación",
                    "type": "earning",
                    "calculation_type": "fixed",
                    "default_value": "150000",
                    "is_taxable": False,
                    "affects_social_security": False,
                },
                request_only=True,
            ),
            OpenApiExample(
                "Formula bonus",
                value={
                    "code": "BONO_PRODUCTIVIDAD",
                    "name": "Bono de productividad",
                    "type": "earning",
                    "calculation_type": "formula",
                    "formula": "{BASE_SALARY} * 0.1",
                },
                request_only=True,
            ),
        ],
    ),
    partial_update=extend_schema(
        tags=TAG,
        summary="Update a concept",
        request=PayrollConceptWriteSerializer,
        responses=responses_ok(PayrollConceptReadSerializer, extra=std_errors()),
    ),
    destroy=extend_schema(
        tags=TAG,
        summary="Delete a concept",
        description="422 for system concepts or when referenced by payroll details.",
        responses={204: None, **std_errors()},
    ),
)
class PayrollConceptViewSet(viewsets.GenericViewSet):
    queryset = PayrollConcept.objects.all()
    serializer_class = PayrollConceptReadSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = DefaultPagination
    lookup_value_regex = r"\d+"

    def list(self, request):
        qs = filter_concepts(request.query_params)
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(PayrollConceptReadSerializer(page, many=True).data)

    def retrieve(self, request, pk=None):
        return ok(PayrollConceptReadSerializer(get_concept_by_id(int(pk))).data)

    def create(self, request):
        ser = PayrollConceptWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        obj = svc_create_concept(actor_id=request.user.id, **ser.validated_data)
        return ok(PayrollConceptReadSerializer(obj).data, "Concept created.", status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        ser = PayrollConceptWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        obj = svc_update_concept(concept_id=int(pk), actor_id=request.user.id, **ser.validated_data)
        return ok(PayrollConceptReadSerializer(obj).data, "Concept updated.")

    def destroy(self, request, pk=None):
        svc_delete_concept(concept_id=int(pk), actor_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=TAG, summary="Activate a concept", request=None,
                   responses=responses_ok(PayrollConceptReadSerializer, extra=std_errors()))
    @action(detail=True, methods=["post"], url_path="activate")
    def activate(self, request, pk=None):
        obj = svc_activate_concept(concept_id=int(pk), actor_id=request.user.id)
        return ok(PayrollConceptReadSerializer(obj).data, "Concept activated.")

    @extend_schema(tags=TAG, summary="Deactivate a concept", description="422 for mandatory concepts.",
                   request=None, responses=responses_ok(PayrollConceptReadSerializer, extra=std_errors()))
    @action(detail=True, methods=["post"], url_path="deactivate")
    def deactivate(self, request, pk=None):
        obj = svc_deactivate_concept(concept_id=int(pk), actor_id=request.user.id)
        return ok(PayrollConceptReadSerializer(obj).data, "Concept deactivated.")

    @extend_schema(
        tags=TAG,
        summary="Active concepts grouped by type",
        responses=responses_ok(
            inline_serializer(name="ConceptsByType", fields={
                t: PayrollConceptReadSerializer(many=True) for t in TYPES
            }),
            name="ConceptsByType",
        ),
    )
    @action(detail=False, methods=["get"], url_path="active")
    def active(self, request):
        grouped = active_grouped()
        return ok({t: PayrollConceptReadSerializer(items, many=True).data for t, items in grouped.items()})

    @extend_schema(
        tags=TAG,
        summary="Active concepts of one type",
        parameters=[path_str("concept_type", "earning / deduction / tax / benefit")],
        responses=responses_ok(PayrollConceptReadSerializer, many=True, extra=std_errors()),
    )
    @action(detail=False, methods=["get"], url_path=r"by-type/(?P<concept_type>[a-z]+)")
    def by_type(self, request, concept_type=None):
        if concept_type not in TYPES:
            return ok([], f"Unknown concept type '{concept_type}'.")
        return ok(PayrollConceptReadSerializer(active_by_type(concept_type), many=True).data)

    @extend_schema(tags=TAG, summary="Catalog counters", responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["get"], url_path="config-summary")
    def summary(self, request):
        return ok(config_summary())

    @extend_schema(
        tags=TAG,
        summary="Validate a formula",
        description="Parses the expression and checks that every `{CODE}` exists. 422 with the list of unknown codes.",
        request=FormulaValidateSerializer,
        responses=responses_ok(FormulaResultSerializer, extra=std_errors()),
    )
    @action(detail=False, methods=["post"], url_path="validate-formula")
    def validate_formula(self, request):
        ser = FormulaValidateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = svc_validate_formula(ser.validated_data["formula"], ser.validated_data.get("known_codes"))
        result.pop("compiled", None)
        return ok(result, "Formula is valid.")
