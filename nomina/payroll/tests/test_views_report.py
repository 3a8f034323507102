import pytest
from io import BytesIO

from openpyxl import load_workbook

from payroll.services import payroll_service

URL = "/api/payroll-reports/"


@pytest.fixture
def calculated(master_data, second_employee, open_period):
    payroll_service.calculate_period(period_id=open_period.id)
    return open_period

@pytest.mark.django_db
@pytest.mark.parametrize("report_type", ["summary", "detailed", "comparative"])
def test_report_types(api, calculated, report_type):
    r = api.get(f"{URL}?report_type={report_type}&period_id={calculated.id}")
    assert r.status_code == 200, r.content
    assert r.json()["data"]["report_type"] == report_type

@pytest.mark.django_db
def test_report_rejects_unknown_type_and_bad_range(api):
    assert api.get(f"{URL}?report_type=weird").status_code == 422
    r = api.get(f"{URL}?date_from=2024-03-01&date_to=2024-02-01")
    assert r.status_code == 422
    assert "date_to" in r.json()["errors"]

@pytest.mark.django_db
def test_department_and_position(api, calculated):
    r = api.get(f"{URL}department/")
    assert r.status_code == 200
    assert r.json()["data"]["departments"][0]["percentage_of_total"] == "100.00"
    r = api.get(f"{URL}position/")
    assert r.status_code == 200
    assert r.json()["data"]["totals"]["payroll_count"] == 2

@pytest.mark.django_db
def test_employee_history_and_period_status(api, calculated, master_data):
    r = api.get(f"{URL}employee-history/{master_data['emp'].id}/?limit=6")
    assert r.status_code == 200
    assert r.json()["data"]["statistics"]["count"] == 1
    assert api.get(f"{URL}employee-history/999/").status_code == 404

    r = api.get(f"{URL}period-status/{calculated.id}/")
    assert r.status_code == 200
    assert r.json()["data"]["by_status"]["calculated"]["payroll_count"] == 2

@pytest.mark.django_db
def test_analytics(api, calculated):
    r = api.get(f"{URL}analytics/?months=6")
    assert r.status_code == 200
    assert r.json()["data"]["months"] == 6

@pytest.mark.django_db
def test_export_xlsx(api, calculated):
    r = api.get(f"{URL}export/?report_type=detailed&period_id={calculated.id}")
    assert r.status_code == 200
    assert r["Content-Type"] == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert f"payroll_detailed_period_{calculated.id}.xlsx" in r["Content-Disposition"]
    wb = load_workbook(BytesIO(r.content))
    assert wb["Payrolls"].max_row == 3
