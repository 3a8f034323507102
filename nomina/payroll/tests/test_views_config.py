import pytest

from payroll.services.payroll_service import calculate_payroll

URL = "/api/configuration/"

@pytest.mark.django_db
def test_get_configuration(api):
    r = api.get(URL)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["overridden"] == []
    assert data["rates"]["minimum_wage"] == "1160000"
    assert data["rates"]["withholding_brackets"]

@pytest.mark.django_db
def test_rates_override_changes_calculation(api, master_data, open_period):
    r = api.put(f"{URL}rates/", {"health_employee": "0.05"}, format="json")
    assert r.status_code == 200, r.content
    assert r.json()["data"]["overridden"] == ["health_employee"]

    p = calculate_payroll(employee_id=master_data["emp"].id, period_id=open_period.id, worked_days=30)
    # 3,000,000 - 150,000 health - 120,000 pension
    assert str(p.net_salary) == "2730000.00"

@pytest.mark.django_db
def test_rates_rejects_empty_and_negative(api):
    assert api.patch(f"{URL}rates/", {}, format="json").status_code == 422
    assert api.patch(f"{URL}rates/", {"uvt_value": "-1"}, format="json").status_code == 422

@pytest.mark.django_db
def test_reset(api):
    api.patch(f"{URL}rates/", {"minimum_wage": "1300000"}, format="json")
    assert api.get(URL).json()["data"]["rates"]["minimum_wage"] != "1160000"
    r = api.post(f"{URL}reset/")
    assert r.status_code == 200
    assert r.json()["data"]["overridden"] == []
    assert r.json()["data"]["rates"]["minimum_wage"] == "1160000"

@pytest.mark.django_db
def test_withholding_table(api):
    r = api.get(f"{URL}withholding-table/")
    assert r.status_code == 200
    brackets = r.json()["data"]["brackets"]
    assert brackets[0]["rate"] in ("0", "0.00", "0.0000")
    assert brackets[-1]["max_uvt"] is None
