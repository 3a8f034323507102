# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import serializers
from payroll.models import PayrollConcept


class PayrollConceptReadSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source="get_type_display", read_only=True)
    calculation_type_display = serializers.CharField(source="get_calculation_type_display", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = PayrollConcept
        fields = [
            "id",
            "code",
            "name",
            "description",
            "type",
            "type_display",
            "calculation_type",
            "calculation_type_display",
            "calculation_base",
            "default_value",
            "formula",
            "is_taxable",
            "affects_social_security",
            "is_mandatory",
            "is_system",
            "priority_order",
            "display_order",
            "status",
            "status_display",
            "created_at",
            "updated_at",
        ]


# ===== Writes =====
class PayrollConceptWriteSerializer(serializers.Serializer):
    code = serializers.RegexField(r"^[A-Za-z0-9_]+$", max_length=40)
    name = serializers.CharField(max_length=120)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    type = serializers.ChoiceField(choices=PayrollConcept.Type.choices)
    calculation_type = serializers.ChoiceField(choices=PayrollConcept.CalculationType.choices)
    calculation_base = serializers.ChoiceField(choices=PayrollConcept.CalculationBase.choices, required=False)
    default_value = serializers.DecimalField(max_digits=15, decimal_places=4, required=False, allow_null=True)
    formula = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_taxable = serializers.BooleanField(required=False)
    affects_social_security = serializers.BooleanField(required=False)
    is_mandatory = serializers.BooleanField(required=False)
    priority_order = serializers.IntegerField(required=False, min_value=0)
    display_order = serializers.IntegerField(required=False, min_value=0)
    status = serializers.ChoiceField(choices=PayrollConcept.Status.choices, required=False)


class FormulaValidateSerializer(serializers.Serializer):
    formula = serializers.CharField()
    known_codes = serializers.ListField(child=serializers.CharField(), required=False)


class FormulaResultSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    variables = serializers.ListField(child=serializers.CharField())
    missing = serializers.ListField(child=serializers.CharField())
