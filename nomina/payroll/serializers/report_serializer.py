# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import serializers
from payroll.services.report_service import REPORT_TYPES


class ReportQuerySerializer(serializers.Serializer):
    """Only validates the shape; the selectors normalise comma lists themselves."""
    report_type = serializers.ChoiceField(choices=REPORT_TYPES, required=False, default="summary")
    period_id = serializers.CharField(required=False)
    department_id = serializers.CharField(required=False)
    position_id = serializers.CharField(required=False)
    employee_id = serializers.CharField(required=False)
    status = serializers.CharField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs.get("date_from") and attrs.get("date_to") and attrs["date_from"] > attrs["date_to"]:
            raise serializers.ValidationError({"date_to": "date_to must be on or after date_from."})
        return attrs


class ExportQuerySerializer(ReportQuerySerializer):
    report_type = serializers.ChoiceField(choices=("summary", "detailed"), required=False, default="summary")


class HistoryQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, default=12, min_value=1, max_value=120)


class AnalyticsQuerySerializer(serializers.Serializer):
    months = serializers.IntegerField(required=False, default=12, min_value=1, max_value=120)
