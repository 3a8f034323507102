import pytest
from datetime import date
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from payroll.models import PayrollPeriod
from payroll.services import export_service, payroll_service, report_service


@pytest.fixture
def calculated(master_data, second_employee, open_period):
    payroll_service.calculate_period(period_id=open_period.id)
    return open_period


@pytest.mark.django_db
def test_empty_reports_return_zeros():
    summary = report_service.payroll_report({}, "summary")
    assert summary["totals"]["payroll_count"] == 0
    assert summary["totals"]["total_net"] == "0.00"
    assert summary["totals"]["average_net"] == "0.00"
    assert report_service.department_report({})["departments"] == []
    assert report_service.payroll_report({}, "comparative")["periods"] == []
    assert report_service.analytics(today=date(2024, 6, 30))["totals"]["total_gross"] == "0.00"

@pytest.mark.django_db
def test_summary_report(calculated):
    data = report_service.payroll_report({"period_id": str(calculated.id)}, "summary")
    totals = data["totals"]
    assert totals["payroll_count"] == 2
    # 2,760,000 + 1,207,806
    assert totals["total_net"] == "3967806.00"
    assert data["by_status"]["calculated"]["payroll_count"] == 2

@pytest.mark.django_db
def test_drafts_excluded_unless_requested(master_data, open_period):
    payroll_service.calculate_payroll(employee_id=master_data["emp"].id, period_id=open_period.id,
                                      worked_days=30, finalize=False)
    assert report_service.summary_report({})["totals"]["payroll_count"] == 0
    assert report_service.summary_report({"status": "draft"})["totals"]["payroll_count"] == 1

@pytest.mark.django_db
def test_detailed_report_rows(calculated, master_data):
    data = report_service.payroll_report({}, "detailed")
    assert data["count"] == 2
    row = next(r for r in data["rows"] if r["employee_id"] == master_data["emp"].id)
    assert row["net_salary"] == "2760000.00"
    assert row["position"] == "Analista"
    assert {d["code"] for d in row["details"]} == {"SALARIO_BASE", "SALUD_EMPLEADO", "PENSION_EMPLEADO"}

@pytest.mark.django_db
def test_department_share(calculated):
    data = report_service.department_report({})
    assert len(data["departments"]) == 1
    assert data["departments"][0]["percentage_of_total"] == "100.00"

@pytest.mark.django_db
def test_position_report_min_max(calculated, master_data):
    rows = report_service.position_report({})["positions"]
    analyst = next(r for r in rows if r["position_id"] == master_data["pos"].id)
    assert analyst["min_net"] == analyst["max_net"] == "2760000.00"

@pytest.mark.django_db
def test_comparative_report(master_data, open_period):
    payroll_service.calculate_payroll(employee_id=master_data["emp"].id, period_id=open_period.id, worked_days=30)
    march = PayrollPeriod.objects.create(name="Marzo 2024", start_date=date(2024, 3, 1), end_date=date(2024, 3, 31),
                                         pay_date=date(2024, 4, 1), year=2024, month=3, period_number=3,
                                         status=PayrollPeriod.Status.OPEN)
    payroll_service.calculate_payroll(employee_id=master_data["emp"].id, period_id=march.id, worked_days=15)
    periods = report_service.payroll_report({}, "comparative")["periods"]
    assert [p["period_id"] for p in periods] == [open_period.id, march.id]
    assert periods[0]["net_change"] is None
    assert periods[1]["net_change"] == "-1380000.00"
    assert periods[1]["net_change_pct"] == "-50.00"

@pytest.mark.django_db
def test_employee_history(calculated, master_data):
    data = report_service.employee_history(master_data["emp"].id, limit=12)
    assert data["statistics"]["count"] == 1
    assert data["history"][0]["net_salary"] == "2760000.00"

@pytest.mark.django_db
def test_analytics_window(calculated):
    data = report_service.analytics(months=12, today=date(2024, 6, 30))
    assert data["since"] == date(2023, 7, 1)
    assert [t["label"] for t in data["monthly_trends"]] == ["2024-02"]
    assert data["department_distribution"][0]["percentage_of_total"] == "100.00"
    outside = report_service.analytics(months=3, today=date(2024, 12, 31))
    assert outside["monthly_trends"] == []

@pytest.mark.django_db
def test_period_status_summary(calculated):
    data = report_service.period_status_summary(calculated.id)
    assert data["by_status"]["calculated"]["payroll_count"] == 2
    assert data["by_status"]["paid"]["payroll_count"] == 0
    assert set(data["by_status"]["paid"]) == set(data["by_status"]["calculated"])
    assert data["by_status"]["paid"]["status"] == "paid"
    assert data["by_status"]["paid"]["average_net"] == "0.00"

@pytest.mark.django_db
def test_export_workbook(calculated):
    buffer = export_service.build_workbook({}, "detailed")
    wb = load_workbook(BytesIO(buffer.getvalue()))
    assert wb.sheetnames == ["Summary", "Payrolls"]
    header = [c.value for c in wb["Payrolls"][1]]
    assert "Net" in header and "SALARIO_BASE" in header
    assert wb["Payrolls"].max_row == 3
