# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import serializers
from payroll.models import Payroll, PayrollDetail


class PayrollDetailSerializer(serializers.ModelSerializer):
    concept_code = serializers.CharField(source="concept.code", read_only=True)
    concept_name = serializers.CharField(source="concept.name", read_only=True)

    class Meta:
        model = PayrollDetail
        fields = [
            "id",
            "concept",
            "concept_code",
            "concept_name",
            "concept_type",
            "quantity",
            "rate",
            "base_amount",
            "amount",
            "calculation_details",
        ]


PAYROLL_FIELDS = [
    "id",
    "payroll_number",
    "employee",
    "employee_number",
    "employee_name",
    "period",
    "period_name",
    "department",
    "position",
    "worked_days",
    "worked_hours",
    "regular_hours",
    "overtime_hours",
    "unpaid_leave_days",
    "base_salary",
    "overtime_amount",
    "gross_salary",
    "total_earnings",
    "total_deductions",
    "total_taxes",
    "net_salary",
    "employer_contributions",
    "status",
    "status_display",
    "notes",
    "rejection_reason",
    "calculated_at",
    "approved_by",
    "approved_at",
    "paid_at",
    "created_at",
    "updated_at",
]


class PayrollListSerializer(serializers.ModelSerializer):
    employee_number = serializers.CharField(source="employee.employee_number", read_only=True)
    employee_name = serializers.CharField(source="employee.full_name", read_only=True)
    period_name = serializers.CharField(source="period.name", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Payroll
        fields = PAYROLL_FIELDS


class PayrollReadSerializer(PayrollListSerializer):
    details = PayrollDetailSerializer(many=True, read_only=True)

    class Meta(PayrollListSerializer.Meta):
        fields = PAYROLL_FIELDS + ["employer_breakdown", "details"]


# ===== Writes =====
class PayrollCalculateSerializer(serializers.Serializer):
    employee_id = serializers.IntegerField()
    payroll_period_id = serializers.IntegerField()
    worked_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, max_value=31)
    worked_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False, allow_null=True)
    overtime_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False, default=0)
    unpaid_leave_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    finalize = serializers.BooleanField(required=False, default=True)


class PayrollCreateSerializer(serializers.Serializer):
    employee_id = serializers.IntegerField()
    payroll_period_id = serializers.IntegerField()
    worked_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, max_value=31, required=False)
    worked_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    overtime_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    unpaid_leave_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PayrollUpdateSerializer(serializers.Serializer):
    worked_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, max_value=31, required=False)
    worked_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    overtime_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    unpaid_leave_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, required=False)
    status = serializers.ChoiceField(choices=Payroll.Status.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    recalculate = serializers.BooleanField(required=False, default=False)


class PayrollRejectSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField()


class PayrollEntrySerializer(serializers.Serializer):
    employee_id = serializers.IntegerField()
    worked_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, max_value=31, required=False)
    worked_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    overtime_hours = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    unpaid_leave_days = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, required=False)


class PeriodBatchSerializer(serializers.Serializer):
    payroll_period_id = serializers.IntegerField()
    entries = PayrollEntrySerializer(many=True, required=False)


class BatchResultSerializer(serializers.Serializer):
    period_id = serializers.IntegerField()
    processed = serializers.IntegerField()
    errors = serializers.IntegerField()
    skipped = serializers.IntegerField()
    details = serializers.ListField(child=serializers.DictField())
