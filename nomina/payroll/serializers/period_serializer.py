# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import serializers
from payroll.models import PayrollPeriod


class PayrollPeriodReadSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    period_type_display = serializers.CharField(source="get_period_type_display", read_only=True)
    days = serializers.IntegerField(read_only=True)

    class Meta:
        model = PayrollPeriod
        fields = [
            "id",
            "name",
            "period_type",
            "period_type_display",
            "start_date",
            "end_date",
            "pay_date",
            "days",
            "year",
            "month",
            "period_number",
            "status",
            "status_display",
            "notes",
            "opened_at",
            "closed_at",
            "total_employees",
            "total_gross",
            "total_deductions",
            "total_taxes",
            "total_net",
            "created_at",
            "updated_at",
        ]


# ===== Writes =====
# year / month / period_number are derived from start_date and never accepted here
class PayrollPeriodCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    period_type = serializers.ChoiceField(choices=PayrollPeriod.PeriodType.choices, default=PayrollPeriod.PeriodType.MONTHLY)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    pay_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PayrollPeriodUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120, required=False)
    period_type = serializers.ChoiceField(choices=PayrollPeriod.PeriodType.choices, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    pay_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
