import re

import pytest

from emi_plan_web.app import SAVED_NOTICE, create_app


def plan_form(**overrides):
    form = {
        "loan_type": "Business Loan",
        "custom_loan_type": "",
        "loan_amount": "300,000",
        "bank_percent": "70",
        "own_percent": "30",
        "interest_per_annum": "9",
        "own_funds_interest_rate": "9",
        "loan_tenure": "7",
        "own_tenure": "2",
        "gst_percentage": "10",
        "revenue_name": ["Sales", "Grants"],
        "revenue_amount": ["20000", "1200"],
        "revenue_period": ["monthly", "yearly"],
        "expense_name": ["Staff Salary", "Rent"],
        "expense_amount": ["5000", "24000"],
        "expense_period": ["monthly", "yearly"],
        "action": "run",
    }
    form.update(overrides)
    return form


def test_index_shows_blank_form(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert 'name="loan_amount"' in body
    assert "Yearly Profit/Loss" not in body
    assert "Type of Loan must be selected." in body


def test_valid_plan_shows_results(client):
    response = client.post("/", data=plan_form())
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Yearly Profit/Loss" in body
    assert "Amortization Schedule" in body
    assert "Year 7" in body
    assert "$17,662.50" in body


def test_invalid_plan_shows_first_error_and_no_results(client):
    response = client.post("/", data=plan_form(own_percent="20"))
    body = response.get_data(as_text=True)
    assert "Bank and Own Funds percentages must add up to 100%." in body
    assert "Yearly Profit/Loss" not in body


def test_unreadable_number_suppresses_results(client):
    client.post("/", data=plan_form())
    response = client.post("/", data=plan_form(loan_amount="lots"))
    body = response.get_data(as_text=True)
    assert "Yearly Profit/Loss" not in body
    assert 'class="message error"' in body


def test_add_and_remove_line_items(client):
    client.post("/", data=plan_form(action="add_revenue"))
    with client.session_transaction() as sess:
        assert [item["name"] for item in sess["plan"]["revenues"]] == ["Sales", "Grants", "Others"]

    client.post("/", data=plan_form(action="remove_expense:0"))
    with client.session_transaction() as sess:
        # two expenses is the minimum
        assert len(sess["plan"]["expenses"]) == 2


def test_save_load_and_remove_plans(client, app):
    response = client.post("/", data=plan_form(action="save"))
    body = response.get_data(as_text=True)
    assert SAVED_NOTICE in body
    assert "Load Saved Plan" in body

    with client.session_transaction() as sess:
        token = sess["user_token"]
    store = app.extensions["plan_store"]
    saved = store.list_plans(token)
    assert len(saved) == 1

    client.post("/plans/new")
    with client.session_transaction() as sess:
        assert "plan" not in sess

    client.post("/plans/load", data={"plan_id": saved[0].id})
    with client.session_transaction() as sess:
        assert sess["plan"]["typeOfLoan"] == "Business Loan"

    client.post("/plans/remove", data={"plan_id": saved[0].id})
    assert store.list_plans(token) == []


def test_invalid_plan_is_not_saved(client, app):
    response = client.post("/", data=plan_form(action="save", loan_tenure="0"))
    assert SAVED_NOTICE not in response.get_data(as_text=True)
    with client.session_transaction() as sess:
        token = sess["user_token"]
    assert app.extensions["plan_store"].list_plans(token) == []


@pytest.mark.parametrize("kind", ["pl", "amortization", "complete"])
def test_pdf_exports(client, kind):
    client.post("/", data=plan_form())
    response = client.get(f"/export/{kind}")
    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert response.data.startswith(b"%PDF")


def test_latex_export(client):
    client.post("/", data=plan_form())
    response = client.get("/export/latex")
    assert response.status_code == 200
    assert "Test Brand" in response.get_data(as_text=True)


def test_export_rejects_invalid_or_unknown(client):
    assert client.get("/export/pl").status_code == 400
    client.post("/", data=plan_form())
    assert client.get("/export/xlsx").status_code == 404


def test_api_simulate(client):
    response = client.get("/api/simulate")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Type of Loan must be selected."

    client.post("/", data=plan_form())
    data = client.get("/api/simulate").get_json()
    assert data["loanPlan"]["loanAmount"] == 300000.0
    assert len(data["result"]["yearlyAvg"]) == 7


def test_access_gate():
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "DATABASE_URL": "sqlite://", "ACCESS_CODE": "letmein"}
    )
    client = app.test_client()

    response = client.get("/")
    assert response.status_code == 302
    assert "/login" in response.headers["Location"]

    response = client.post("/login?next=/", data={"access_code": "wrong"})
    assert "Invalid access code." in response.get_data(as_text=True)

    response = client.post("/login?next=/", data={"access_code": "letmein"})
    assert response.status_code == 302
    assert client.get("/").status_code == 200

    client.get("/logout")
    assert client.get("/").status_code == 302


def rendered_value(body, name):
    return re.search(rf'name="{name}" value="([^"]*)"', body).group(1)


def test_form_refills_inputs_at_full_precision(client):
    response = client.post(
        "/", data=plan_form(interest_per_annum="8.125", bank_percent="33.335", own_percent="66.665")
    )
    body = response.get_data(as_text=True)
    assert "Yearly Profit/Loss" in body
    rendered = {
        name: rendered_value(body, name)
        for name in ("loan_amount", "interest_per_annum", "bank_percent", "own_percent")
    }
    assert rendered == {
        "loan_amount": "300000",
        "interest_per_annum": "8.125",
        "bank_percent": "33.335",
        "own_percent": "66.665",
    }

    response = client.post("/", data=plan_form(action="add_revenue", **rendered))
    body = response.get_data(as_text=True)
    assert "Bank and Own Funds percentages must add up to 100%." not in body
    assert "Yearly Profit/Loss" in body
    with client.session_transaction() as sess:
        assert sess["plan"]["interestPerAnnum"] == 8.125
        assert sess["plan"]["bankPercent"] == 33.335


def test_full_schedule_toggle(client):
    long_plan = plan_form(loan_tenure="15")
    body = client.post("/", data=long_plan).get_data(as_text=True)
    assert "60 more rows truncated." in body
    assert "<td>180</td>" not in body
    assert 'name="show_full_schedule" value="1"' in body

    # the hidden field and the button are submitted together
    body = client.post("/", data=dict(long_plan, show_full_schedule=["0", "1"])).get_data(as_text=True)
    assert "<td>180</td>" in body
    assert "more rows truncated" not in body
    assert 'name="collapse_schedule"' in body

    body = client.post(
        "/", data=dict(long_plan, show_full_schedule="1", collapse_schedule="1")
    ).get_data(as_text=True)
    assert "60 more rows truncated." in body


@pytest.mark.parametrize("target", ["/\\evil.example", "//evil.example", "https://evil.example", "evil"])
def test_login_only_redirects_to_local_paths(target):
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "DATABASE_URL": "sqlite://", "ACCESS_CODE": "letmein"}
    )
    response = app.test_client().post(
        "/login", query_string={"next": target}, data={"access_code": "letmein"}
    )
    assert response.status_code == 302
    assert "evil" not in response.headers["Location"]


def test_login_follows_local_next():
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "DATABASE_URL": "sqlite://", "ACCESS_CODE": "letmein"}
    )
    response = app.test_client().post(
        "/login", query_string={"next": "/api/simulate"}, data={"access_code": "letmein"}
    )
    assert response.headers["Location"].endswith("/api/simulate")
