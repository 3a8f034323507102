from django.db import models
from django.db.models import Q
from .mixins import TimeStampedModel


class Department(TimeStampedModel):
    code = models.CharField(max_length=16, unique=True)
    name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        db_table = "Department"

    def __str__(self):
        return self.name


class Position(TimeStampedModel):
    class Level(models.TextChoices):
        ENTRY = "entry", "Entry"
        JUNIOR = "junior", "Junior"
        MID = "mid", "Mid"
        SENIOR = "senior", "Senior"
        LEAD = "lead", "Lead"
        MANAGER = "manager", "Manager"
        DIRECTOR = "director", "Director"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    code = models.CharField(max_length=16, unique=True)
    title = models.CharField(max_length=120)
    department = models.ForeignKey(Department, on_delete=models.SET_NULL, null=True, blank=True, related_name="positions")
    min_salary = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    max_salary = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    level = models.CharField(max_length=16, choices=Level.choices, default=Level.ENTRY)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        ordering = ["title"]
        db_table = "Position"

    def __str__(self):
        return self.title


class Employee(TimeStampedModel):
    """Read-only collaborator: HR owns these rows, payroll only reads them."""

    class EmploymentStatus(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"
        TERMINATED = "terminated", "Terminated"

    class EmploymentType(models.TextChoices):
        FULL_TIME = "full_time", "Full time"
        PART_TIME = "part_time", "Part time"
        CONTRACT = "contract", "Contract"
        INTERN = "intern", "Intern"

    class SalaryType(models.TextChoices):
        MONTHLY = "monthly", "Monthly"
        HOURLY = "hourly", "Hourly"

    employee_number = models.CharField(max_length=32, unique=True)
    first_name = models.CharField(max_length=80)
    last_name = models.CharField(max_length=80)
    email = models.EmailField(unique=True)
    identification_number = models.CharField(max_length=32, null=True, blank=True, unique=True)
    hire_date = models.DateField()
    termination_date = models.DateField(null=True, blank=True)
    employment_status = models.CharField(max_length=16, choices=EmploymentStatus.choices, default=EmploymentStatus.ACTIVE)
    employment_type = models.CharField(max_length=16, choices=EmploymentType.choices, default=EmploymentType.FULL_TIME)
    salary_type = models.CharField(max_length=16, choices=SalaryType.choices, default=SalaryType.MONTHLY)
    base_salary = models.DecimalField(max_digits=15, decimal_places=2)
    hourly_rate = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    department = models.ForeignKey(Department, on_delete=models.SET_NULL, null=True, blank=True, related_name="employees")

    class Meta:
        ordering = ["last_name", "first_name"]
        db_table = "Employee"
        indexes = [models.Index(fields=["employment_status"])]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return f"{self.employee_number} - {self.full_name}"


class EmployeePosition(TimeStampedModel):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name="position_history")
    position = models.ForeignKey(Position, on_delete=models.CASCADE, related_name="assignments")
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    salary = models.DecimalField(max_digits=15, decimal_places=2)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-start_date"]
        db_table = "EmployeePosition"
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__isnull=True) | Q(end_date__gte=models.F("start_date")),
                name="employee_position_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.employee_id} @ {self.position_id}"
