import pytest
from datetime import date
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.core.cache import cache
from payroll.models import Department, Position, Employee, EmployeePosition, PayrollPeriod

User = get_user_model()

@pytest.fixture(autouse=True)
def clear_rates_cache():
    # rate overrides live in the cache; keep tests independent
    cache.clear()
    yield
    cache.clear()

@pytest.fixture
def user(db):
    return User.objects.create_user(username="tester", password="pass")

@pytest.fixture
def api(user):
    from rest_framework.test import APIClient
    client = APIClient()
    client.force_authenticate(user=user)
    return client

@pytest.fixture
def master_data(db):
    dept = Department.objects.create(code="ADM", name="Administración")
    pos = Position.objects.create(code="AN1", title="Analista", department=dept,
                                  min_salary=Decimal("2000000"), max_salary=Decimal("4000000"))
    emp = Employee.objects.create(
        employee_number="E001", first_name="Ana", last_name="Gómez", email="ana@example.com",
        hire_date=date(2023, 1, 10), base_salary=Decimal("3000000.00"), department=dept,
    )
    EmployeePosition.objects.create(employee=emp, position=pos, start_date=date(2023, 1, 10),
                                    salary=Decimal("3000000.00"))
    return {"dept": dept, "pos": pos, "emp": emp}

@pytest.fixture
def second_employee(db, master_data):
    # minimum wage earner: gets the transport allowance
    return Employee.objects.create(
        employee_number="E002", first_name="Luis", last_name="Pérez", email="luis@example.com",
        hire_date=date(2023, 6, 1), base_salary=Decimal("1160000.00"), department=master_data["dept"],
    )

@pytest.fixture
def draft_period(db):
    return PayrollPeriod.objects.create(
        name="Febrero 2024", period_type=PayrollPeriod.PeriodType.MONTHLY,
        start_date=date(2024, 2, 1), end_date=date(2024, 2, 29), pay_date=date(2024, 3, 1),
        year=2024, month=2, period_number=2,
    )

@pytest.fixture
def open_period(draft_period):
    draft_period.status = PayrollPeriod.Status.OPEN
    draft_period.save(update_fields=["status"])
    return draft_period

@pytest.fixture
def system_concepts(db):
    from payroll.services.concept_service import ensure_system_concepts
    return {c.code: c for c in ensure_system_concepts()}
