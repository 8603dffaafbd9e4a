"""HTTP surface: authentication, role checks and the main endpoints."""
from decimal import Decimal

from app.core.config import settings
from app.core.permissions import Role
from conftest import TEST_PASSWORD


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_login_sets_cookie_and_me_works(client, pharmacist):
    resp = client.post("/auth/login", json={"email": pharmacist.email, "password": TEST_PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["role"] == "pharmacist"
    assert "pharmacare_token" in resp.cookies

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {resp.json()['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == pharmacist.email


def test_bad_login_is_generic_401(client, pharmacist):
    resp = client.post("/auth/login", json={"email": pharmacist.email, "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_missing_or_garbage_token_is_401(client):
    assert client.get("/prescriptions").status_code == 401
    resp = client.get("/prescriptions", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_wrong_role_is_403_without_role_list(client, receptionist, headers_for, make_patient):
    patient = make_patient()
    resp = client.post(
        "/prescriptions",
        json={"patient_id": patient.id, "prescriber_name": "Dr. X", "items": []},
        headers=headers_for(receptionist),
    )
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Access denied"}


def test_check_interactions_always_200(client, receptionist, headers_for, make_patient, make_product):
    patient = make_patient(allergies=["diclofenac"])
    product = make_product("Diclofenac Gel 1%")
    h = headers_for(receptionist)

    assert client.post("/prescriptions/check-interactions", json={}, headers=h).json() == {"warnings": []}
    resp = client.post(
        "/prescriptions/check-interactions",
        json={"patient_id": patient.id, "product_ids": [product.id]},
        headers=h,
    )
    assert resp.status_code == 200
    assert resp.json() == {"warnings": ["ALLERGY ALERT: Patient is allergic to components in Diclofenac Gel 1%"]}


def test_create_prescription_endpoint(client, pharmacist, headers_for, make_patient, make_product):
    patient = make_patient(chronic_conditions=["hypertension"])
    product = make_product("Ibuprofen 400mg", selling_price=Decimal("4.00"), requires_prescription=True)
    h = headers_for(pharmacist)

    resp = client.post(
        "/prescriptions",
        json={
            "patient_id": patient.id,
            "prescriber_name": "Dr. Mutasa",
            "items": [{"product_id": product.id, "quantity": 3, "dosage": "1 tablet", "frequency": "tds"}],
        },
        headers=h,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["warnings"] == ["HYPERTENSION ALERT: Ibuprofen 400mg may increase blood pressure"]
    assert Decimal(body["prescription"]["total_amount"]) == Decimal("12.00")

    fetched = client.get(f"/prescriptions/{body['prescription']['id']}", headers=h).json()
    assert fetched["items"][0]["dosage"] == "1 tablet"
    assert fetched["ai_warnings"] == body["warnings"]


def test_prescription_errors_map_to_codes(client, pharmacist, headers_for, make_patient, make_product):
    h = headers_for(pharmacist)
    patient = make_patient()
    resp = client.post("/prescriptions", json={"patient_id": patient.id, "items": []}, headers=h)
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION"

    product = make_product("Tramadol 50mg", requires_prescription=True, is_controlled_substance=True)
    resp = client.post(
        "/prescriptions",
        json={"patient_id": 98765, "items": [{"product_id": product.id, "quantity": 1}]},
        headers=h,
    )
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Patient not found", "code": "NOT_FOUND"}

    resp = client.post(
        "/prescriptions",
        json={"patient_id": patient.id, "items": [{"product_id": product.id, "quantity": 0}]},
        headers=h,
    )
    assert resp.status_code == 422


def test_sale_endpoint_and_insufficient_payment(client, receptionist, headers_for, make_product):
    product = make_product("ORS Sachet", selling_price=Decimal("1.00"), vat_percentage=Decimal("0"))
    h = headers_for(receptionist)

    short = client.post(
        "/sales",
        json={"items": [{"product_id": product.id, "quantity": 5}], "payment_method": "cash", "amount_paid": "4.99"},
        headers=h,
    )
    assert short.status_code == 400
    assert short.json()["code"] == "INSUFFICIENT_PAYMENT"

    ok = client.post(
        "/sales",
        json={"items": [{"product_id": product.id, "quantity": 5}], "payment_method": "cash", "amount_paid": "10"},
        headers=h,
    )
    assert ok.status_code == 200
    receipt = ok.json()["receipt"]
    assert Decimal(receipt["total_amount"]) == Decimal("5.00")
    assert Decimal(receipt["change"]) == Decimal("5.00")

    listing = client.get("/sales", headers=h).json()
    assert [s["sale_number"] for s in listing] == [receipt["sale_number"]]


def test_pharmacist_cannot_sell(client, pharmacist, headers_for):
    resp = client.post("/sales", json={"items": [], "payment_method": "cash"}, headers=headers_for(pharmacist))
    assert resp.status_code == 403


def test_stock_movement_roles(client, make_user, headers_for, make_product):
    product = make_product("Zinc Tablets")
    body = {"product_id": product.id, "movement_type": "grn", "quantity": 40, "batch_number": "Z1"}

    assert client.post("/stock-movements", json=body, headers=headers_for(make_user(Role.RECEPTIONIST))).status_code == 403
    resp = client.post("/stock-movements", json=body, headers=headers_for(make_user(Role.STORE_MANAGER)))
    assert resp.status_code == 201
    assert resp.json()["delta"] == 40

    inventory = client.get("/inventory", headers=headers_for(make_user(Role.TECHNICIAN))).json()
    assert [(row["product_name"], row["quantity"]) for row in inventory] == [("Zinc Tablets", 40)]


def test_shift_endpoints(client, receptionist, headers_for):
    h = headers_for(receptionist)
    assert client.get("/shifts/current", headers=h).status_code == 404
    assert client.post("/shifts/open", json={"opening_cash": "500.00"}, headers=h).status_code == 200
    assert client.post("/shifts/open", json={"opening_cash": "500.00"}, headers=h).status_code == 409
    closed = client.post("/shifts/close", json={"closing_cash": "480.00"}, headers=h).json()
    assert Decimal(closed["cash_variance"]) == Decimal("-20.00")


def test_admin_creates_staff_and_audit_listing(client, make_user, headers_for, pharmacist):
    admin = make_user(Role.ADMINISTRATOR)
    resp = client.post(
        "/auth/users",
        json={
            "email": "new.tech@pharmacare.co.zw",
            "password": "Str0ng&Secret!",
            "first_name": "Nyasha",
            "last_name": "Gumbo",
            "role": "technician",
        },
        headers=headers_for(admin),
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "technician"

    assert client.post("/auth/users", json={}, headers=headers_for(pharmacist)).status_code == 403

    logs = client.get("/audit-logs", params={"entity_type": "user"}, headers=headers_for(pharmacist)).json()
    assert [(entry["action"], entry["entity_type"]) for entry in logs] == [("CREATE", "user")]


def test_patient_registration_and_listing(client, pharmacist, headers_for, make_user):
    h = headers_for(pharmacist)
    resp = client.post(
        "/patients",
        json={"first_name": "Chipo", "last_name": "Banda", "national_id": "63-123456A77",
              "allergies": ["Penicillin", " "], "chronic_conditions": ["Asthma"]},
        headers=h,
    )
    assert resp.status_code == 201
    assert resp.json()["allergies"] == ["Penicillin"]

    dup = client.post("/patients", json={"first_name": "A", "last_name": "B", "national_id": "63-123456A77"}, headers=h)
    assert dup.status_code == 400

    assert client.get("/patients", headers=headers_for(make_user(Role.RECEPTIONIST))).status_code == 403
    listing = client.get("/patients", params={"search": "banda"}, headers=h).json()
    assert [p["last_name"] for p in listing] == ["Banda"]


def test_suppliers_manufacturers_and_product_links(client, make_user, headers_for, receptionist):
    manager = headers_for(make_user(Role.STORE_MANAGER))

    supplier = client.post("/suppliers", json={"name": "Medsales Harare", "contact_person": "T. Dube",
                                               "email": "orders@medsales.co.zw"}, headers=manager)
    assert supplier.status_code == 201
    maker = client.post("/manufacturers", json={"name": "CAPS Pharmaceuticals", "country": "Zimbabwe"},
                        headers=manager)
    assert maker.status_code == 201
    assert client.post("/suppliers", json={"name": "Medsales Harare"}, headers=manager).status_code == 400
    assert client.post("/suppliers", json={"name": "Other"}, headers=headers_for(receptionist)).status_code == 403

    listing = client.get("/suppliers", headers=headers_for(receptionist)).json()
    assert [s["name"] for s in listing] == ["Medsales Harare"]
    assert client.get("/manufacturers", headers=headers_for(receptionist)).json()[0]["country"] == "Zimbabwe"

    product = client.post(
        "/products",
        json={"name": "Amoxil 500mg", "unit_price": "2.50", "selling_price": "4.80",
              "supplier_id": supplier.json()["id"], "manufacturer_id": maker.json()["id"]},
        headers=manager,
    )
    assert product.status_code == 201
    assert product.json()["supplier_id"] == supplier.json()["id"]

    bad = client.patch(f"/products/{product.json()['id']}", json={"supplier_id": 9999}, headers=manager)
    assert bad.status_code == 400
    assert bad.json()["detail"] == "Unknown supplier"


def test_new_product_takes_configured_vat(client, make_user, headers_for, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_VAT_PERCENTAGE", Decimal("14.5"))
    resp = client.post(
        "/products",
        json={"name": "Vitamin C 500mg", "unit_price": "1.00", "selling_price": "2.00"},
        headers=headers_for(make_user(Role.ADMINISTRATOR)),
    )
    assert resp.status_code == 201
    assert Decimal(resp.json()["vat_percentage"]) == Decimal("14.5")
