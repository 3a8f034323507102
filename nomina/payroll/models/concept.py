from django.db import models
from django.db.models import Q
from .mixins import TimeStampedModel


class PayrollConcept(TimeStampedModel):
    class Type(models.TextChoices):
        EARNING = "earning", "Earning"
        DEDUCTION = "deduction", "Deduction"
        TAX = "tax", "Tax"
        BENEFIT = "benefit", "Benefit"

    class CalculationType(models.TextChoices):
        FIXED = "fixed", "Fixed amount"
        PERCENTAGE = "percentage", "Percentage"
        FORMULA = "formula", "Formula"

    class CalculationBase(models.TextChoices):
        BASE_SALARY = "base_salary", "Pro-rated base salary"
        GROSS_SALARY = "gross_salary", "Gross salary"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    code = models.CharField(max_length=40, unique=True)
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True, default="")
    type = models.CharField(max_length=16, choices=Type.choices)
    calculation_type = models.CharField(max_length=16, choices=CalculationType.choices)
    calculation_base = models.CharField(max_length=16, choices=CalculationBase.choices, default=CalculationBase.BASE_SALARY)
    # fixed -> amount; percentage -> percent (4.0 == 4 %)
    default_value = models.DecimalField(max_digits=15, decimal_places=4, null=True, blank=True)
    formula = models.TextField(null=True, blank=True)
    compiled_formula = models.JSONField(null=True, blank=True)
    is_taxable = models.BooleanField(default=True)
    affects_social_security = models.BooleanField(default=True)
    is_mandatory = models.BooleanField(default=False)
    is_system = models.BooleanField(default=False)
    priority_order = models.PositiveIntegerField(default=100)
    display_order = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        ordering = ["type", "priority_order", "name"]
        db_table = "PayrollConcept"
        indexes = [
            models.Index(fields=["type", "status"]),
            models.Index(fields=["priority_order"]),
        ]

    def __str__(self):
        return f"{self.code} ({self.type})"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class EmployeeBenefit(TimeStampedModel):
    """Per-employee assignment of a concept, optionally with its own amount/percentage."""

    class Frequency(models.TextChoices):
        MONTHLY = "monthly", "Monthly"
        BIWEEKLY = "biweekly", "Biweekly"
        WEEKLY = "weekly", "Weekly"
        ANNUAL = "annual", "Annual"
        ONE_TIME = "one_time", "One time"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"
        SUSPENDED = "suspended", "Suspended"

    employee = models.ForeignKey("payroll.Employee", on_delete=models.CASCADE, related_name="benefits")
    concept = models.ForeignKey(PayrollConcept, on_delete=models.CASCADE, related_name="assignments")
    amount = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    percentage = models.DecimalField(max_digits=9, decimal_places=4, null=True, blank=True)
    frequency = models.CharField(max_length=16, choices=Frequency.choices, default=Frequency.MONTHLY)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["employee_id", "start_date"]
        db_table = "EmployeeBenefit"
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__isnull=True) | Q(end_date__gte=models.F("start_date")),
                name="employee_benefit_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.employee_id}:{self.concept_id}"
