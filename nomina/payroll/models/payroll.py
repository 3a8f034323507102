from django.db import models
from django.db.models import UniqueConstraint
from .mixins import TimeStampedModel


class Payroll(TimeStampedModel):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        CALCULATED = "calculated", "Calculated"
        APPROVED = "approved", "Approved"
        PAID = "paid", "Paid"
        REJECTED = "rejected", "Rejected"
        CANCELLED = "cancelled", "Cancelled"

    payroll_number = models.CharField(max_length=32, db_index=True)
    employee = models.ForeignKey("payroll.Employee", on_delete=models.PROTECT, related_name="payrolls")
    period = models.ForeignKey("payroll.PayrollPeriod", on_delete=models.PROTECT, related_name="payrolls")
    # snapshots at calculation time, used for grouping in reports
    department = models.ForeignKey("payroll.Department", on_delete=models.SET_NULL, null=True, blank=True, related_name="payrolls")
    position = models.ForeignKey("payroll.Position", on_delete=models.SET_NULL, null=True, blank=True, related_name="payrolls")

    worked_days = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    worked_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    regular_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    overtime_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    unpaid_leave_days = models.DecimalField(max_digits=6, decimal_places=2, default=0)

    base_salary = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    overtime_amount = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    gross_salary = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    total_earnings = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    total_deductions = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    total_taxes = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    net_salary = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    employer_contributions = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    employer_breakdown = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    notes = models.TextField(blank=True, default="")
    rejection_reason = models.TextField(blank=True, default="")
    calculated_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.IntegerField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-period__start_date", "employee_id"]
        db_table = "Payroll"
        indexes = [models.Index(fields=["status"])]
        constraints = [
            UniqueConstraint(fields=["employee", "period"], name="uniq_payroll_employee_period"),
        ]

    def __str__(self):
        return self.payroll_number


class PayrollDetail(TimeStampedModel):
    payroll = models.ForeignKey(Payroll, on_delete=models.CASCADE, related_name="details")
    concept = models.ForeignKey("payroll.PayrollConcept", on_delete=models.PROTECT, related_name="details")
    concept_type = models.CharField(max_length=16)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=1)
    rate = models.DecimalField(max_digits=15, decimal_places=4, null=True, blank=True)
    base_amount = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    calculation_details = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["payroll_id", "id"]
        db_table = "PayrollDetail"
        constraints = [
            UniqueConstraint(fields=["payroll", "concept"], name="uniq_detail_payroll_concept"),
        ]

    def __str__(self):
        return f"{self.payroll_id}:{self.concept_id}={self.amount}"
