import re
from datetime import date

from generators.errors import RasterizationError
from helpers import build_invoice_data, generate_invoice_number
from models import db, Invoice, InvoiceItem


def _create(client, records, **overrides):
    payload = {
        "client_id": records["local_client_id"],
        "invoice_date": "2024-12-25",
        "items": [
            {"product_id": records["consulting_id"], "quantity": 1},
            {"product_id": records["hosting_id"], "quantity": 2, "unit_price": 250},
        ],
    }
    payload.update(overrides)
    return client.post("/invoices", json=payload)


# ─── Session ─────────────────────────────────────────────────────
def test_invoice_routes_require_login(client):
    assert client.get("/templates").status_code == 401
    assert client.get("/invoices/1/pdf").status_code == 401
    assert client.post("/invoices", json={}).status_code == 401


def test_login_logout_cycle(client):
    assert client.get("/session").get_json() == {"authenticated": False}
    bad = client.post("/login", json={"username": "admin", "password": "wrong"})
    assert bad.status_code == 401

    ok = client.post("/login", data={"username": "admin", "password": "secret"})
    assert ok.status_code == 200
    assert client.get("/session").get_json() == {"authenticated": True}

    client.post("/logout")
    assert client.get("/session").get_json() == {"authenticated": False}


def test_template_catalogue(auth_client):
    body = auth_client.get("/templates").get_json()
    assert body["default"] == "modern"
    assert [t["id"] for t in body["templates"]][:4] == ["modern", "classic", "minimal", "corporate"]
    assert len(body["templates"]) == 8


# ─── Invoice creation ────────────────────────────────────────────
def test_create_invoice_freezes_intra_state_split(auth_client, records):
    resp = _create(auth_client, records)
    assert resp.status_code == 201
    body = resp.get_json()
    assert re.fullmatch(r"INV-\d{6}-001", body["invoice_number"])
    assert body["subtotal"] == 1500.0
    assert body["total_gst"] == 270.0
    assert body["total_amount"] == 1770.0
    assert (body["cgst"], body["sgst"], body["igst"]) == (135.0, 135.0, 0.0)


def test_create_invoice_inter_state(auth_client, records, app):
    resp = _create(auth_client, records, client_id=records["remote_client_id"], discount=70)
    body = resp.get_json()
    assert body["igst"] == 270.0 and body["cgst"] == 0.0
    assert body["total_amount"] == 1700.0

    with app.app_context():
        invoice = db.session.get(Invoice, body["id"])
        assert invoice.place_of_supply == "Karnataka"
        assert [it.item_name for it in invoice.items] == ["Consulting", "Hosting"]
        assert invoice.items[0].hsn_sac == "998311"
        assert invoice.items[1].igst_amount == 90.0


def test_create_invoice_numbers_are_sequential(auth_client, records):
    first = _create(auth_client, records).get_json()["invoice_number"]
    second = _create(auth_client, records).get_json()["invoice_number"]
    assert int(second[-3:]) == int(first[-3:]) + 1


def test_create_invoice_rejects_bad_input(auth_client, records):
    assert _create(auth_client, records, client_id=999).status_code == 400
    assert _create(auth_client, records, items=[]).status_code == 400
    bad_qty = _create(auth_client, records, items=[{"item_name": "X", "unit_price": 1, "quantity": 0}])
    assert bad_qty.status_code == 400
    assert auth_client.post("/invoices", data="nope").status_code == 400


def test_duplicate_invoice_number_is_rejected(auth_client, records):
    assert _create(auth_client, records, invoice_number="INV-X").status_code == 201
    dup = _create(auth_client, records, invoice_number="INV-X")
    assert dup.status_code == 400
    assert "already exists" in dup.get_json()["error"]


def test_generate_invoice_number_month_sequence(app, records):
    with app.app_context():
        assert generate_invoice_number(date(2024, 12, 1)) == "INV-202412-001"
        invoice = Invoice(invoice_number="INV-202412-007", client_id=records["local_client_id"])
        db.session.add(invoice)
        db.session.commit()
        assert generate_invoice_number(date(2024, 12, 31)) == "INV-202412-008"
        assert generate_invoice_number(date(2025, 1, 1)) == "INV-202501-001"


def test_build_invoice_data_carries_frozen_split(auth_client, records, app):
    invoice_id = _create(auth_client, records).get_json()["id"]
    with app.app_context():
        data = build_invoice_data(db.session.get(Invoice, invoice_id))
    assert data.company.state == "Maharashtra"
    assert data.company.bank.ifsc == "SBIN0000001"
    assert data.client.display_name == "Kumar Traders"
    assert data.invoice.cgst == 135.0
    assert data.items[0].cgst_amount == 90.0
    assert data.check_totals() == []


# ─── Documents ───────────────────────────────────────────────────
def test_download_pdf(auth_client, records, rasterizer):
    invoice = _create(auth_client, records, invoice_number="2024/25/017").get_json()
    resp = auth_client.get(f"/invoices/{invoice['id']}/pdf?template=corporate")
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")
    assert "Invoice-2024_25_017.pdf" in resp.headers["Content-Disposition"]
    assert "TOTAL AMOUNT PAYABLE" in rasterizer.calls[0]["html"]


def test_download_pdf_uses_invoice_template(auth_client, records, rasterizer):
    invoice = _create(auth_client, records, template="extrape_invoice").get_json()
    assert auth_client.get(f"/invoices/{invoice['id']}/pdf").status_code == 200
    assert "25/12/2024" in rasterizer.calls[0]["html"]


def test_download_pdf_unknown_invoice(auth_client):
    assert auth_client.get("/invoices/12345/pdf").status_code == 404


def test_download_pdf_missing_data(auth_client, records, app, rasterizer):
    with app.app_context():
        invoice = Invoice(invoice_number="INV-EMPTY", client_id=records["local_client_id"])
        db.session.add(invoice)
        db.session.commit()
        invoice_id = invoice.id
    resp = auth_client.get(f"/invoices/{invoice_id}/pdf")
    assert resp.status_code == 422
    assert resp.get_json()["error"] == "Cannot generate PDF: missing data"
    assert rasterizer.calls == []


def test_download_pdf_rasterizer_failure(auth_client, records, rasterizer):
    invoice = _create(auth_client, records).get_json()
    rasterizer.error = RasterizationError("gotenberg down")
    resp = auth_client.get(f"/invoices/{invoice['id']}/pdf")
    assert resp.status_code == 502
    assert resp.get_json() == {"error": "Failed to generate PDF"}


def test_preview_returns_html(auth_client, records, app):
    invoice = _create(auth_client, records).get_json()
    with app.app_context():
        db.session.add(InvoiceItem(invoice_id=invoice["id"], position=9, item_name="Support <24x7>"))
        db.session.commit()
    resp = auth_client.get(f"/invoices/{invoice['id']}/preview?template=classic")
    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    html = resp.get_data(as_text=True)
    assert invoice["invoice_number"] in html
    assert "Support &lt;24x7&gt;" in html


def test_create_invoice_rejects_bad_discount(auth_client, records):
    # Consulting 1000 + Hosting 500, GST 270
    negative = _create(auth_client, records, discount=-5)
    assert negative.status_code == 400
    too_large = _create(auth_client, records, discount=1770.01)
    assert too_large.status_code == 400
    assert "must not exceed" in too_large.get_json()["error"]

    full = _create(auth_client, records, discount=1770)
    assert full.status_code == 201
    assert full.get_json()["total_amount"] == 0.0


def test_create_invoice_rejects_malformed_items(auth_client, records):
    assert _create(auth_client, records, items=[42]).status_code == 400
    assert _create(auth_client, records, items="Consulting").status_code == 400
    numeric_name = _create(auth_client, records, items=[{"item_name": 7, "unit_price": 10}])
    assert numeric_name.status_code == 400
    assert "invalid name" in numeric_name.get_json()["error"]


def test_negative_total_still_renders_words(auth_client, records, app, rasterizer):
    with app.app_context():
        invoice = Invoice(invoice_number="INV-NEG", client_id=records["local_client_id"],
                          subtotal=100.0, total_gst=18.0, discount=128.0, total_amount=-10.0)
        invoice.items.append(InvoiceItem(item_name="Refund adjustment", position=0,
                                         line_total=100.0, gst_amount=18.0))
        db.session.add(invoice)
        db.session.commit()
        invoice_id = invoice.id
    resp = auth_client.get(f"/invoices/{invoice_id}/pdf?template=corporate")
    assert resp.status_code == 200
    assert "Minus Rupees Ten Only" in rasterizer.calls[0]["html"]


# ─── Listing and deletion ────────────────────────────────────────
def test_list_invoices_newest_first(auth_client, records):
    first = _create(auth_client, records, invoice_date="2024-11-02").get_json()
    second = _create(auth_client, records, invoice_date="2024-12-25").get_json()
    resp = auth_client.get("/invoices")
    assert resp.status_code == 200
    listed = resp.get_json()["invoices"]
    assert [inv["id"] for inv in listed] == [second["id"], first["id"]]
    assert listed[0]["client"] == "Kumar Traders"
    assert listed[0]["invoice_date"] == "2024-12-25"


def test_list_invoices_search_and_status(auth_client, records):
    local = _create(auth_client, records, invoice_number="ACME-001", status="paid").get_json()
    remote = _create(auth_client, records, invoice_number="ACME-002",
                     client_id=records["remote_client_id"]).get_json()

    def ids(query):
        return [inv["id"] for inv in auth_client.get(f"/invoices?{query}").get_json()["invoices"]]

    assert ids("q=kumar") == [local["id"]]
    assert ids("q=ANITA") == [remote["id"]]
    assert ids("q=acme-002") == [remote["id"]]
    assert sorted(ids("q=acme")) == sorted([local["id"], remote["id"]])
    assert ids("q=acme rao") == [remote["id"]]
    assert ids("status=paid") == [local["id"]]
    assert ids("status=draft") == [remote["id"]]
    assert len(ids("status=all")) == 2
    assert auth_client.get("/invoices?status=cancelled").status_code == 400


def test_delete_invoice_removes_items(auth_client, records, app):
    invoice = _create(auth_client, records).get_json()
    resp = auth_client.delete(f"/invoices/{invoice['id']}")
    assert resp.status_code == 200
    assert resp.get_json() == {"deleted": invoice["id"]}
    with app.app_context():
        assert db.session.get(Invoice, invoice["id"]) is None
        assert InvoiceItem.query.filter_by(invoice_id=invoice["id"]).count() == 0
    assert auth_client.delete(f"/invoices/{invoice['id']}").status_code == 404


def test_listing_and_deletion_require_login(client):
    assert client.get("/invoices").status_code == 401
    assert client.delete("/invoices/1").status_code == 401
