from conftest import make_department, make_employee, stored_count


def test_create_employee_bumps_department_counter(client, auth):
    d = make_department(client, auth)
    e = make_employee(client, auth, d["id"], "E-1", salary="12000", hireDate="2024-03-15")
    assert e["status"] == "Probation"
    assert e["salary"] == 12000
    assert e["hireDate"] == "2024-03-15"
    assert e["department"]["code"] == "ENG"
    assert stored_count(d["id"]) == 1


def test_create_employee_validation(client, auth):
    d = make_department(client, auth)
    r = client.post("/api/employees", json={"name": "X", "departmentId": d["id"]}, headers=auth)
    assert r.status_code == 400
    assert r.get_json()["code"] == "validation_error"

    r = client.post("/api/employees", headers=auth, json={
        "name": "X", "employeeId": "E-9", "email": "x@ems.local", "position": "P",
        "departmentId": d["id"], "salary": -5,
    })
    assert r.status_code == 400

    r = client.post("/api/employees", headers=auth, json={
        "name": "X", "employeeId": "E-9", "email": "x@ems.local", "position": "P",
        "departmentId": d["id"], "status": "Retired",
    })
    assert r.status_code == 400


def test_create_employee_unknown_department(client, auth):
    r = client.post("/api/employees", headers=auth, json={
        "name": "X", "employeeId": "E-9", "email": "x@ems.local", "position": "P", "departmentId": 404,
    })
    assert r.status_code == 400
    assert r.get_json()["code"] == "reference_violation"


def test_duplicate_employee_code_and_email(client, auth):
    d = make_department(client, auth)
    make_employee(client, auth, d["id"], "E-1", email="one@ems.local")
    r = client.post("/api/employees", headers=auth, json={
        "name": "Y", "employeeId": "E-1", "email": "two@ems.local", "position": "P", "departmentId": d["id"],
    })
    assert r.status_code == 400
    assert r.get_json()["code"] == "duplicate_key"
    r = client.post("/api/employees", headers=auth, json={
        "name": "Y", "employeeId": "E-2", "email": "ONE@ems.local", "position": "P", "departmentId": d["id"],
    })
    assert r.status_code == 400


def test_supervisor_must_share_department(client, auth):
    eng = make_department(client, auth)
    hr = make_department(client, auth, name="Human Resources", code="HR")
    boss = make_employee(client, auth, eng["id"], "E-1")

    r = client.post("/api/employees", headers=auth, json={
        "name": "Z", "employeeId": "E-2", "email": "z@ems.local", "position": "P",
        "departmentId": hr["id"], "supervisorId": boss["id"],
    })
    assert r.status_code == 400
    assert r.get_json()["code"] == "reference_violation"
    assert stored_count(hr["id"]) == 0

    ok = make_employee(client, auth, eng["id"], "E-3", supervisorId=boss["id"])
    assert ok["supervisor"]["id"] == boss["id"]


def test_employee_cannot_supervise_self(client, auth):
    d = make_department(client, auth)
    e = make_employee(client, auth, d["id"], "E-1")
    r = client.put(f"/api/employees/{e['id']}", headers=auth, json={"supervisorId": e["id"]})
    assert r.status_code == 400
    assert r.get_json()["code"] == "reference_violation"


def test_update_moves_counter_and_clears_supervisor(client, auth):
    eng = make_department(client, auth)
    hr = make_department(client, auth, name="Human Resources", code="HR")
    boss = make_employee(client, auth, eng["id"], "E-1")
    e = make_employee(client, auth, eng["id"], "E-2", supervisorId=boss["id"])

    r = client.put(f"/api/employees/{e['id']}", headers=auth, json={"departmentId": hr["id"], "position": "Recruiter"})
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["departmentId"] == hr["id"]
    assert data["supervisorId"] is None
    assert data["position"] == "Recruiter"
    assert stored_count(eng["id"]) == 1
    assert stored_count(hr["id"]) == 1


def test_update_same_department_leaves_counter(client, auth):
    d = make_department(client, auth)
    e = make_employee(client, auth, d["id"], "E-1")
    r = client.put(f"/api/employees/{e['id']}", headers=auth, json={"departmentId": d["id"], "status": "active"})
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "Active"
    assert stored_count(d["id"]) == 1


def test_get_employee_with_subordinates(client, auth):
    d = make_department(client, auth)
    boss = make_employee(client, auth, d["id"], "E-1")
    make_employee(client, auth, d["id"], "E-2", supervisorId=boss["id"])
    r = client.get(f"/api/employees/{boss['id']}", headers=auth)
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["employee"]["employeeId"] == "E-1"
    assert [s["employeeId"] for s in data["subordinates"]] == ["E-2"]


def test_list_employees_filters(client, auth):
    eng = make_department(client, auth)
    hr = make_department(client, auth, name="Human Resources", code="HR")
    make_employee(client, auth, eng["id"], "E-1", name="Alice", status="Active")
    make_employee(client, auth, eng["id"], "E-2", name="Bob")
    make_employee(client, auth, hr["id"], "E-3", name="Carol", status="Active")

    r = client.get(f"/api/employees?department={eng['id']}", headers=auth)
    assert {e["employeeId"] for e in r.get_json()["data"]["employees"]} == {"E-1", "E-2"}

    r = client.get("/api/employees?status=Active", headers=auth)
    assert {e["employeeId"] for e in r.get_json()["data"]["employees"]} == {"E-1", "E-3"}

    r = client.get("/api/employees?search=car", headers=auth)
    assert [e["name"] for e in r.get_json()["data"]["employees"]] == ["Carol"]

    r = client.get("/api/employees?department=abc", headers=auth)
    assert r.status_code == 400


def test_delete_blocked_by_subordinates(client, auth):
    d = make_department(client, auth)
    boss = make_employee(client, auth, d["id"], "E-1")
    sub = make_employee(client, auth, d["id"], "E-2", supervisorId=boss["id"])

    r = client.delete(f"/api/employees/{boss['id']}", headers=auth)
    assert r.status_code == 400
    assert r.get_json()["code"] == "has_dependents"
    assert stored_count(d["id"]) == 2

    assert client.delete(f"/api/employees/{sub['id']}", headers=auth).status_code == 200
    assert client.delete(f"/api/employees/{boss['id']}", headers=auth).status_code == 200
    assert stored_count(d["id"]) == 0
    assert client.get(f"/api/employees/{boss['id']}", headers=auth).status_code == 404


def test_delete_blocked_for_department_manager(client, auth):
    d = make_department(client, auth)
    m = make_employee(client, auth, d["id"], "E-1")
    client.put(f"/api/departments/{d['id']}", headers=auth, json={"managerId": m["id"]})

    r = client.delete(f"/api/employees/{m['id']}", headers=auth)
    assert r.status_code == 400
    assert r.get_json()["code"] == "is_department_manager"

    client.put(f"/api/departments/{d['id']}", headers=auth, json={"managerId": None})
    assert client.delete(f"/api/employees/{m['id']}", headers=auth).status_code == 200


def test_employee_code_reusable_after_delete(client, auth):
    d = make_department(client, auth)
    e = make_employee(client, auth, d["id"], "E-1")
    client.delete(f"/api/employees/{e['id']}", headers=auth)
    again = make_employee(client, auth, d["id"], "E-1")
    assert again["id"] != e["id"]


def test_malformed_employee_id(client, auth):
    r = client.get("/api/employees/0", headers=auth)
    assert r.status_code == 400
    assert r.get_json()["code"] == "malformed_identifier"


def test_delete_allowed_once_subordinates_reassigned(client, auth):
    d = make_department(client, auth)
    boss = make_employee(client, auth, d["id"], "E-1")
    sub = make_employee(client, auth, d["id"], "E-2", supervisorId=boss["id"])

    assert client.delete(f"/api/employees/{boss['id']}", headers=auth).status_code == 400

    r = client.put(f"/api/employees/{sub['id']}", headers=auth, json={"supervisorId": None})
    assert r.status_code == 200
    assert r.get_json()["data"]["supervisorId"] is None

    assert client.delete(f"/api/employees/{boss['id']}", headers=auth).status_code == 200
    assert stored_count(d["id"]) == 1


def test_moving_a_supervisor_leaves_subordinate_links(client, auth):
    eng = make_department(client, auth)
    hr = make_department(client, auth, name="Human Resources", code="HR")
    boss = make_employee(client, auth, eng["id"], "E-1")
    sub = make_employee(client, auth, eng["id"], "E-2", supervisorId=boss["id"])

    r = client.put(f"/api/employees/{boss['id']}", headers=auth, json={"departmentId": hr["id"]})
    assert r.status_code == 200

    stale = client.get(f"/api/employees/{sub['id']}", headers=auth).get_json()["data"]["employee"]
    assert stale["supervisorId"] == boss["id"]

    # the link survives the move but cannot be written again across departments
    r = client.put(f"/api/employees/{sub['id']}", headers=auth, json={"supervisorId": boss["id"]})
    assert r.status_code == 400
    assert r.get_json()["code"] == "reference_violation"
    r = client.put(f"/api/employees/{sub['id']}", headers=auth, json={"supervisorId": None})
    assert r.status_code == 200


def test_salary_must_be_finite(client, auth):
    d = make_department(client, auth)
    for bad in ("NaN", "inf", "-Infinity"):
        r = client.post("/api/employees", headers=auth, json={
            "name": "X", "employeeId": "E-9", "email": "x@ems.local", "position": "P",
            "departmentId": d["id"], "salary": bad,
        })
        assert r.status_code == 400, bad
        assert r.get_json()["code"] == "validation_error"
    e = make_employee(client, auth, d["id"], "E-1")
    r = client.put(f"/api/employees/{e['id']}", headers=auth, json={"salary": "nan"})
    assert r.status_code == 400


def test_non_text_fields_rejected(client, auth):
    d = make_department(client, auth)
    r = client.post("/api/employees", headers=auth, json={
        "name": {"first": "X"}, "employeeId": "E-9", "email": "x@ems.local", "position": "P",
        "departmentId": d["id"],
    })
    assert r.status_code == 400
    assert r.get_json()["code"] == "validation_error"

    e = make_employee(client, auth, d["id"], "E-1", phone=5551234)
    assert e["phone"] == "5551234"
