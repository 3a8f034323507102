import pytest
from datetime import date
from decimal import Decimal
from django.core.exceptions import ValidationError

from payroll.exceptions import ConflictError
from payroll.models import AuditLog, Employee, EmployeeBenefit, Payroll, PayrollConcept, PayrollDetail
from payroll.services import payroll_service
from payroll.services.payroll_service import calculate_payroll, can_transition, generate_payroll_number


def _calc(master_data, period, **kw):
    data = dict(employee_id=master_data["emp"].id, period_id=period.id, worked_days=30, worked_hours=240)
    data.update(kw)
    return calculate_payroll(**data)


def test_transition_table():
    assert can_transition("draft", "calculated")
    assert can_transition("approved", "paid")
    assert not can_transition("paid", "draft")
    assert not can_transition("cancelled", "draft")
    assert not can_transition("draft", "approved")

@pytest.mark.django_db
def test_payroll_number(master_data, open_period):
    assert generate_payroll_number(7, open_period) == "PAY-202402-000007"

@pytest.mark.django_db
def test_calculate_three_million(master_data, open_period):
    p = _calc(master_data, open_period)
    assert p.status == Payroll.Status.CALCULATED
    assert p.gross_salary == Decimal("3000000.00")
    assert p.total_deductions == Decimal("240000.00")
    assert p.total_taxes == Decimal("0.00")
    assert p.net_salary == Decimal("2760000.00")
    assert p.payroll_number == f"PAY-202402-{master_data['emp'].id:06d}"
    assert p.position_id == master_data["pos"].id
    codes = {d.concept.code: d.amount for d in p.details.all()}
    assert codes == {
        "SALARIO_BASE": Decimal("3000000.00"),
        "SALUD_EMPLEADO": Decimal("120000.00"),
        "PENSION_EMPLEADO": Decimal("120000.00"),
    }
    open_period.refresh_from_db()
    assert open_period.total_net == Decimal("2760000.00")
    assert AuditLog.objects.filter(action="payroll.calculate", object_id=str(p.id)).exists()

@pytest.mark.django_db
def test_recalculating_a_draft_is_idempotent(master_data, open_period):
    first = _calc(master_data, open_period, overtime_hours=4, finalize=False)
    first_details = sorted((d.concept.code, d.amount) for d in first.details.all())
    second = _calc(master_data, open_period, overtime_hours=4, finalize=False)
    assert second.id == first.id
    assert second.status == Payroll.Status.DRAFT
    assert second.net_salary == first.net_salary
    assert sorted((d.concept.code, d.amount) for d in second.details.all()) == first_details
    assert Payroll.objects.filter(employee=master_data["emp"], period=open_period).count() == 1

@pytest.mark.django_db
def test_calculate_again_when_calculated_conflicts(master_data, open_period):
    _calc(master_data, open_period)
    with pytest.raises(ConflictError):
        _calc(master_data, open_period)

@pytest.mark.django_db
def test_calculate_requires_open_period(master_data, draft_period):
    with pytest.raises(ConflictError):
        _calc(master_data, draft_period)
    assert not Payroll.objects.exists()

@pytest.mark.django_db
def test_mandatory_and_assigned_concepts_applied(master_data, open_period, system_concepts):
    PayrollConcept.objects.create(code="APORTE_FONDO", name="Fondo empleados", type="deduction",
                                  calculation_type="fixed", default_value=Decimal("50000"), is_mandatory=True)
    bonus = PayrollConcept.objects.create(code="BONO", name="Bono", type="earning", calculation_type="fixed",
                                          default_value=Decimal("100000"), affects_social_security=False)
    # not mandatory and not assigned: ignored
    PayrollConcept.objects.create(code="OTRO", name="Otro", type="earning", calculation_type="fixed",
                                  default_value=Decimal("999"))
    EmployeeBenefit.objects.create(employee=master_data["emp"], concept=bonus, amount=Decimal("200000"),
                                   start_date=date(2024, 1, 1))
    p = _calc(master_data, open_period)
    codes = {d.concept.code: d.amount for d in p.details.all()}
    assert codes["BONO"] == Decimal("200000.00")
    assert codes["APORTE_FONDO"] == Decimal("50000.00")
    assert "OTRO" not in codes
    assert p.gross_salary == Decimal("3200000.00")
    assert p.net_salary == p.gross_salary - p.total_deductions - p.total_taxes

@pytest.mark.django_db
def test_approve_reject_pay(master_data, open_period, user):
    p = _calc(master_data, open_period)
    p = payroll_service.approve_payroll(payroll_id=p.id, approver_id=user.id)
    assert p.status == "approved" and p.approved_by == user.id
    with pytest.raises(ConflictError):
        payroll_service.approve_payroll(payroll_id=p.id, approver_id=user.id)
    p = payroll_service.reject_payroll(payroll_id=p.id, rejection_reason="wrong hours")
    assert p.status == "rejected" and p.approved_by is None and p.approved_at is None
    assert "wrong hours" in p.notes
    with pytest.raises(ConflictError):
        payroll_service.mark_paid(payroll_id=p.id)

@pytest.mark.django_db
def test_reject_needs_reason(master_data, open_period):
    p = _calc(master_data, open_period)
    with pytest.raises(ValidationError):
        payroll_service.reject_payroll(payroll_id=p.id, rejection_reason="  ")

@pytest.mark.django_db
def test_mark_paid(master_data, open_period):
    p = _calc(master_data, open_period)
    payroll_service.approve_payroll(payroll_id=p.id)
    p = payroll_service.mark_paid(payroll_id=p.id)
    assert p.status == "paid" and p.paid_at

@pytest.mark.django_db
def test_delete_only_draft(master_data, open_period):
    p = _calc(master_data, open_period)
    with pytest.raises(ConflictError):
        payroll_service.delete_payroll(payroll_id=p.id)
    payroll_service.update_payroll(payroll_id=p.id, status="draft")
    payroll_service.delete_payroll(payroll_id=p.id)
    assert not Payroll.objects.filter(id=p.id).exists()

@pytest.mark.django_db
def test_update_with_recalculate(master_data, open_period):
    p = payroll_service.create_payroll(employee_id=master_data["emp"].id, period_id=open_period.id)
    assert p.status == "draft" and p.net_salary == 0
    p = payroll_service.update_payroll(payroll_id=p.id, worked_days=Decimal("15"), worked_hours=Decimal("120"),
                                       recalculate=True)
    assert p.status == "calculated"
    assert p.gross_salary == Decimal("1500000.00")
    with pytest.raises(ConflictError):
        payroll_service.update_payroll(payroll_id=p.id, recalculate=True)

@pytest.mark.django_db
def test_update_rejects_dedicated_statuses(master_data, open_period):
    p = _calc(master_data, open_period)
    with pytest.raises(ValidationError):
        payroll_service.update_payroll(payroll_id=p.id, status="approved")

@pytest.mark.django_db
def test_create_duplicate_conflicts(master_data, open_period):
    payroll_service.create_payroll(employee_id=master_data["emp"].id, period_id=open_period.id)
    with pytest.raises(ConflictError):
        payroll_service.create_payroll(employee_id=master_data["emp"].id, period_id=open_period.id)

@pytest.mark.django_db
def test_calculate_period_captures_errors(master_data, second_employee, open_period):
    Employee.objects.create(employee_number="E003", first_name="Sin", last_name="Salario", email="s@example.com",
                            hire_date=date(2023, 1, 1), base_salary=Decimal("0"))
    # hired after the period: not payable
    Employee.objects.create(employee_number="E004", first_name="Nuevo", last_name="Ingreso", email="n@example.com",
                            hire_date=date(2024, 5, 1), base_salary=Decimal("2000000"))
    result = payroll_service.calculate_period(
        period_id=open_period.id,
        entries=[{"employee_id": second_employee.id, "worked_days": Decimal("15")}],
    )
    assert result["processed"] == 2
    assert result["errors"] == 1
    assert result["skipped"] == 0
    statuses = {d["employee_id"]: d["status"] for d in result["details"]}
    assert statuses[master_data["emp"].id] == "success"
    assert list(statuses.values()).count("error") == 1
    second = Payroll.objects.get(employee=second_employee, period=open_period)
    assert second.worked_days == Decimal("15")
    open_period.refresh_from_db()
    assert open_period.status == "processing"
    assert open_period.total_employees == 2

@pytest.mark.django_db
def test_calculate_period_skips_finalised(master_data, open_period):
    p = _calc(master_data, open_period)
    payroll_service.approve_payroll(payroll_id=p.id)
    result = payroll_service.calculate_period(period_id=open_period.id)
    assert result["skipped"] == 1 and result["processed"] == 0

@pytest.mark.django_db
def test_approve_period(master_data, second_employee, open_period):
    payroll_service.calculate_period(period_id=open_period.id)
    result = payroll_service.approve_period(period_id=open_period.id)
    assert result == {"period_id": open_period.id, "approved": 2}
    assert set(Payroll.objects.values_list("status", flat=True)) == {"approved"}

@pytest.mark.django_db
def test_failed_detail_write_leaves_no_rows(master_data, open_period, monkeypatch):
    from payroll.repositories import payroll_repository

    def broken(payroll, rows):
        raise RuntimeError("disk full")

    monkeypatch.setattr(payroll_repository, "replace_details", broken)
    with pytest.raises(RuntimeError):
        _calc(master_data, open_period)
    assert not Payroll.objects.filter(employee=master_data["emp"], period=open_period).exists()
    assert not PayrollDetail.objects.exists()
    open_period.refresh_from_db()
    assert open_period.total_net == Decimal("0")

@pytest.mark.django_db
def test_failed_recalculation_keeps_previous_draft(master_data, open_period, monkeypatch):
    from payroll.repositories import payroll_repository

    draft = _calc(master_data, open_period, finalize=False)
    details = sorted((d.concept.code, d.amount) for d in draft.details.all())

    def broken(payroll, rows):
        raise RuntimeError("disk full")

    monkeypatch.setattr(payroll_repository, "replace_details", broken)
    with pytest.raises(RuntimeError):
        _calc(master_data, open_period, overtime_hours=8, finalize=False)
    draft.refresh_from_db()
    assert draft.net_salary == Decimal("2760000.00")
    assert draft.overtime_hours == Decimal("0")
    assert sorted((d.concept.code, d.amount) for d in PayrollDetail.objects.filter(payroll=draft)) == details

@pytest.mark.django_db
def test_conflict_checked_before_calculation(master_data, open_period):
    _calc(master_data, open_period)
    Employee.objects.filter(id=master_data["emp"].id).update(base_salary=Decimal("0"))
    with pytest.raises(ConflictError):
        _calc(master_data, open_period)
