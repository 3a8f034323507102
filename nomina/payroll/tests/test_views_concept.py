import pytest

from payroll.models import PayrollConcept
from payroll.services.payroll_service import calculate_payroll

URL = "/api/payroll-concepts/"

BONUS = {"code": "bono_productividad", "name": "Bono productividad", "type": "earning",
         "calculation_type": "percentage", "calculation_base": "base_salary", "default_value": "10"}

@pytest.mark.django_db
def test_create_and_list(api):
    r = api.post(URL, BONUS, format="json")
    assert r.status_code == 201, r.content
    assert r.json()["data"]["code"] == "BONO_PRODUCTIVIDAD"

    r = api.get(f"{URL}?type=earning")
    assert r.status_code == 200
    codes = [c["code"] for c in r.json()["data"]["results"]]
    assert "BONO_PRODUCTIVIDAD" in codes

@pytest.mark.django_db
def test_duplicate_code_is_rejected(api):
    api.post(URL, BONUS, format="json")
    r = api.post(URL, BONUS, format="json")
    assert r.status_code == 422
    assert "code" in r.json()["errors"]

@pytest.mark.django_db
def test_validate_formula(api, system_concepts):
    r = api.post(f"{URL}validate-formula/", {"formula": "{SALARIO_BASE} * 0.1"}, format="json")
    assert r.status_code == 200, r.content
    assert r.json()["data"]["valid"] is True
    assert r.json()["data"]["variables"] == ["SALARIO_BASE"]

    r = api.post(f"{URL}validate-formula/", {"formula": "{NO_EXISTE} + 1"}, format="json")
    assert r.status_code == 422
    assert "NO_EXISTE" in r.json()["errors"]["formula"][0]

    r = api.post(f"{URL}validate-formula/", {"formula": "__import__('os')"}, format="json")
    assert r.status_code == 422

@pytest.mark.django_db
def test_mandatory_concept_cannot_be_deactivated(api):
    r = api.post(URL, {**BONUS, "is_mandatory": True}, format="json")
    cid = r.json()["data"]["id"]
    r = api.post(f"{URL}{cid}/deactivate/")
    assert r.status_code == 422
    assert PayrollConcept.objects.get(id=cid).status == "active"

@pytest.mark.django_db
def test_deactivate_and_activate(api):
    cid = api.post(URL, BONUS, format="json").json()["data"]["id"]
    r = api.post(f"{URL}{cid}/deactivate/")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "inactive"
    r = api.post(f"{URL}{cid}/activate/")
    assert r.json()["data"]["status"] == "active"

@pytest.mark.django_db
def test_delete_referenced_concept(api, master_data, open_period):
    cid = api.post(URL, {**BONUS, "is_mandatory": True}, format="json").json()["data"]["id"]
    calculate_payroll(employee_id=master_data["emp"].id, period_id=open_period.id, worked_days=30)
    r = api.delete(f"{URL}{cid}/")
    assert r.status_code == 422
    assert PayrollConcept.objects.filter(id=cid).exists()

@pytest.mark.django_db
def test_delete_unused_concept(api):
    cid = api.post(URL, BONUS, format="json").json()["data"]["id"]
    assert api.delete(f"{URL}{cid}/").status_code == 204
    assert api.get(f"{URL}{cid}/").status_code == 404

@pytest.mark.django_db
def test_by_type_and_active(api, system_concepts):
    api.post(URL, BONUS, format="json")
    r = api.get(f"{URL}by-type/earning/")
    assert r.status_code == 200
    codes = {c["code"] for c in r.json()["data"]}
    assert {"SALARIO_BASE", "BONO_PRODUCTIVIDAD"} <= codes

    r = api.get(f"{URL}by-type/unknown/")
    assert r.status_code == 200
    assert r.json()["data"] == []

    grouped = api.get(f"{URL}active/").json()["data"]
    assert "deduction" in grouped
    assert any(c["code"] == "SALUD_EMPLEADO" for c in grouped["deduction"])

@pytest.mark.django_db
def test_config_summary(api, system_concepts):
    r = api.get(f"{URL}config-summary/")
    assert r.status_code == 200
    assert r.json()["success"] is True
