import pytest
from decimal import Decimal

from payroll.models import PayrollPeriod
from payroll.services.payroll_service import calculate_payroll

URL = "/api/payroll-periods/"

MARCH = {"name": "Nómina marzo 2024", "period_type": "monthly",
         "start_date": "2024-03-01", "end_date": "2024-03-31", "pay_date": "2024-04-01"}

@pytest.mark.django_db
def test_create_period_derives_fields(api):
    r = api.post(URL, MARCH, format="json")
    assert r.status_code == 201, r.content
    data = r.json()["data"]
    assert data["status"] == "draft"
    assert (data["year"], data["month"], data["period_number"]) == (2024, 3, 3)
    assert data["days"] == 31

@pytest.mark.django_db
def test_create_rejects_bad_dates(api):
    r = api.post(URL, {**MARCH, "end_date": "2024-02-20"}, format="json")
    assert r.status_code == 422
    assert "end_date" in r.json()["errors"]

@pytest.mark.django_db
def test_create_rejects_overlap(api, draft_period):
    r = api.post(URL, {**MARCH, "start_date": "2024-02-15"}, format="json")
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert "start_date" in body["errors"]
    assert PayrollPeriod.objects.count() == 1

@pytest.mark.django_db
def test_patch_only_while_draft(api, draft_period):
    r = api.patch(f"{URL}{draft_period.id}/", {"name": "Febrero"}, format="json")
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Febrero"

    assert api.post(f"{URL}{draft_period.id}/open/").status_code == 200
    r = api.patch(f"{URL}{draft_period.id}/", {"name": "Otro"}, format="json")
    assert r.status_code == 422

@pytest.mark.django_db
def test_state_machine(api, master_data, draft_period):
    r = api.post(f"{URL}{draft_period.id}/open/")
    assert r.json()["data"]["status"] == "open"
    # opening twice is not a valid transition
    assert api.post(f"{URL}{draft_period.id}/open/").status_code == 409

    calculate_payroll(employee_id=master_data["emp"].id, period_id=draft_period.id, worked_days=30,
                      finalize=False)
    r = api.post(f"{URL}{draft_period.id}/close/")
    assert r.status_code == 409
    assert r.json()["errors"]["pending_payrolls"] == 1

    calculate_payroll(employee_id=master_data["emp"].id, period_id=draft_period.id, worked_days=30)
    r = api.post(f"{URL}{draft_period.id}/close/")
    assert r.status_code == 200, r.content
    assert r.json()["data"]["status"] == "closed"
    assert Decimal(r.json()["data"]["total_net"]) == Decimal("2760000")

    r = api.post(f"{URL}{draft_period.id}/reopen/")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "open"

@pytest.mark.django_db
def test_summary_and_payrolls(api, master_data, open_period):
    calculate_payroll(employee_id=master_data["emp"].id, period_id=open_period.id, worked_days=30)

    r = api.get(f"{URL}{open_period.id}/summary/")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["totals"]["payrolls"] == 1
    assert Decimal(data["totals"]["net_salary"]) == Decimal("2760000")
    assert data["status_breakdown"]["calculated"]["count"] == 1

    r = api.get(f"{URL}{open_period.id}/payrolls/")
    assert r.status_code == 200
    assert r.json()["data"]["count"] == 1

@pytest.mark.django_db
def test_active_and_current(api, draft_period):
    assert api.get(f"{URL}active/").json()["data"] == []
    api.post(f"{URL}{draft_period.id}/open/")
    active = api.get(f"{URL}active/").json()["data"]
    assert [p["id"] for p in active] == [draft_period.id]

    # no period contains today, so the latest open one is returned
    r = api.get(f"{URL}current/")
    assert r.status_code == 200
    assert r.json()["data"]["id"] == draft_period.id

@pytest.mark.django_db
def test_current_without_periods(api):
    r = api.get(f"{URL}current/")
    assert r.status_code == 200
    assert r.json()["data"] is None

@pytest.mark.django_db
def test_list_filters_and_delete(api, draft_period):
    api.post(URL, MARCH, format="json")
    r = api.get(f"{URL}?year=2024&month=3")
    assert r.json()["data"]["count"] == 1

    assert api.delete(f"{URL}{draft_period.id}/").status_code == 204
    assert api.get(f"{URL}{draft_period.id}/").status_code == 404
