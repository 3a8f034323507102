from django.db import models
from django.db.models import Q, F
from .mixins import TimeStampedModel


class PayrollPeriod(TimeStampedModel):
    class PeriodType(models.TextChoices):
        MONTHLY = "monthly", "Monthly"
        BIWEEKLY = "biweekly", "Biweekly"
        WEEKLY = "weekly", "Weekly"
        SPECIAL = "special", "Special"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        OPEN = "open", "Open"
        PROCESSING = "processing", "Processing"
        CLOSED = "closed", "Closed"

    name = models.CharField(max_length=120)
    period_type = models.CharField(max_length=16, choices=PeriodType.choices, default=PeriodType.MONTHLY)
    start_date = models.DateField()
    end_date = models.DateField()
    pay_date = models.DateField()
    # derived from start_date + period_type, never written by clients
    year = models.PositiveIntegerField()
    month = models.PositiveSmallIntegerField()
    period_number = models.PositiveSmallIntegerField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    notes = models.TextField(blank=True, default="")
    opened_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    total_employees = models.PositiveIntegerField(default=0)
    total_gross = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_deductions = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_taxes = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_net = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    class Meta:
        ordering = ["-start_date"]
        db_table = "PayrollPeriod"
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["start_date", "end_date"]),
            models.Index(fields=["year", "month"]),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(end_date__gt=F("start_date")), name="period_end_after_start"),
            models.CheckConstraint(condition=Q(pay_date__gte=F("end_date")), name="period_pay_after_end"),
        ]

    def __str__(self):
        return f"{self.name} ({self.start_date} → {self.end_date})"

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
