# -*- coding: utf-8 -*-
from __future__ import annotations
from rest_framework import serializers


def _rate(**kw):
    return serializers.DecimalField(max_digits=18, decimal_places=6, min_value=0, required=False, **kw)


class WithholdingBracketSerializer(serializers.Serializer):
    min_uvt = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0)
    max_uvt = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0, allow_null=True, required=False)
    rate = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=0, max_value=1)
    fixed_uvt = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0, required=False, default=0)


class RatesUpdateSerializer(serializers.Serializer):
    """Partial update: only the keys sent are overridden."""
    health_employee = _rate()
    pension_employee = _rate()
    solidarity_fund = _rate()
    solidarity_threshold_wages = _rate()
    health_employer = _rate()
    pension_employer = _rate()
    arl = _rate()
    compensation_fund = _rate()
    icbf = _rate()
    sena = _rate()
    severance = _rate()
    severance_interest = _rate()
    service_bonus = _rate()
    vacation = _rate()
    minimum_wage = _rate()
    transport_allowance = _rate()
    transport_allowance_cap_wages = _rate()
    overtime_multiplier = _rate()
    overtime_hour_divisor = _rate()
    hourly_divisor = _rate()
    standard_period_days = _rate()
    uvt_value = _rate()
    withholding_brackets = WithholdingBracketSerializer(many=True, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one rate must be provided.")
        return attrs


class ConfigurationSerializer(serializers.Serializer):
    rates = serializers.DictField()
    overridden = serializers.ListField(child=serializers.CharField())


class WithholdingTableSerializer(serializers.Serializer):
    uvt_value = serializers.CharField()
    brackets = WithholdingBracketSerializer(many=True)
