from datetime import date

import pytest
from PIL import Image

from app import create_app
from generators.errors import RasterizationError
from generators.invoice_data import (
    BankDetails, ClientInfo, CompanyInfo, InvoiceData, InvoiceInfo, InvoiceStatus, LineItem,
)
from generators.rasterizer import Rasterizer
from models import db, Client, Company, Product


class FakeRasterizer(Rasterizer):
    """Returns a blank page image of a fixed CSS-pixel height and records its calls."""

    def __init__(self, height_css_px=1000):
        self.height_css_px = height_css_px
        self.calls = []
        self.error = None

    def rasterize(self, html, *, width_px, scale, background="#ffffff"):
        self.calls.append({"html": html, "width_px": width_px, "scale": scale})
        if self.error is not None:
            raise self.error
        return Image.new("RGB", (int(width_px * scale), int(self.height_css_px * scale)), background)


@pytest.fixture
def rasterizer():
    return FakeRasterizer()


@pytest.fixture
def app(rasterizer):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "ADMIN_USERNAME": "admin",
        "ADMIN_PASSWORD": "secret",
        "DEFAULT_INVOICE_TEMPLATE": "modern",
        "RASTER_SCALE": 2.0,
        "RASTERIZER": rasterizer,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    resp = client.post("/login", json={"username": "admin", "password": "secret"})
    assert resp.status_code == 200
    return client


@pytest.fixture
def records(app):
    """A company in Maharashtra, one local and one out-of-state client, two products."""
    with app.app_context():
        company = Company(
            company_name="Acme Technologies Pvt Ltd",
            address="12 MG Road, Pune",
            email="billing@acme.example",
            gstin="27AAAAA0000A1Z5",
            pan="AAAAA0000A",
            state="Maharashtra",
            bank_name="State Bank of India",
            bank_account_number="1234567890",
            bank_ifsc="SBIN0000001",
        )
        local = Client(name="Ravi Kumar", company_name="Kumar Traders", state="Maharashtra",
                       city="Mumbai", pin_code="400001", address="5 Marine Drive")
        remote = Client(name="Anita Rao", state="Karnataka", city="Bengaluru")
        consulting = Product(name="Consulting", hsn_sac="998311", unit_price=1000.0, gst_rate=18.0,
                             is_service=True)
        hosting = Product(name="Hosting", hsn_sac="998315", unit_price=500.0, gst_rate=18.0,
                          is_service=True)
        db.session.add_all([company, local, remote, consulting, hosting])
        db.session.commit()
        return {
            "company_id": company.id,
            "local_client_id": local.id,
            "remote_client_id": remote.id,
            "consulting_id": consulting.id,
            "hosting_id": hosting.id,
        }


# ─── InvoiceData samples ─────────────────────────────────────────
@pytest.fixture
def company_info():
    return CompanyInfo(
        company_name="Acme Technologies Pvt Ltd",
        address="12 MG Road, Pune",
        email="billing@acme.example",
        phone="+91 20 5555 0100",
        gstin="27AAAAA0000A1Z5",
        pan="AAAAA0000A",
        website="https://acme.example",
        state="Maharashtra",
        bank=BankDetails(bank_name="State Bank of India", account_number="1234567890",
                         ifsc="SBIN0000001"),
    )


@pytest.fixture
def items():
    return (
        LineItem(item_name="Consulting", hsn_sac="998311", quantity=1, unit_price=1000.0,
                 gst_rate=18.0, line_total=1000.0, gst_amount=180.0),
        LineItem(item_name="Hosting", hsn_sac="998315", quantity=1, unit_price=500.0,
                 gst_rate=18.0, line_total=500.0, gst_amount=90.0),
    )


@pytest.fixture
def invoice_info():
    return InvoiceInfo(
        invoice_number="INV-202412-001",
        invoice_date=date(2024, 12, 25),
        due_date=date(2025, 1, 24),
        status=InvoiceStatus.SENT,
        subtotal=1500.0,
        total_gst=270.0,
        total_amount=1770.0,
    )


@pytest.fixture
def invoice_data(invoice_info, company_info, items):
    return InvoiceData(
        invoice=invoice_info,
        client=ClientInfo(name="Ravi Kumar", company_name="Kumar Traders", state="Maharashtra",
                          city="Mumbai", pin_code="400001", address="5 Marine Drive"),
        company=company_info,
        items=items,
    )


@pytest.fixture
def bare_invoice_data():
    """Only the required fields; every optional part absent."""
    return InvoiceData(
        invoice=InvoiceInfo(invoice_number="INV-1"),
        client=ClientInfo(name="Walk-in"),
        items=[LineItem(item_name="Widget")],
    )
