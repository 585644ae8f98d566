from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime, date

db = SQLAlchemy()


class User(UserMixin, db.Model):
    """Login account for the invoicing back end"""
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    display_name = db.Column(db.String(200), nullable=True)
    email = db.Column(db.String(200), nullable=True)
    active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        return self.active


class Company(db.Model):
    """Issuing company profile (letterhead, GSTIN, bank details)"""
    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(200), nullable=False)
    address = db.Column(db.Text, nullable=True)
    email = db.Column(db.String(200), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    gstin = db.Column(db.String(15), nullable=True)
    pan = db.Column(db.String(10), nullable=True)
    state = db.Column(db.String(100), nullable=True)  # decides CGST/SGST vs IGST
    website = db.Column(db.String(300), nullable=True)
    logo_url = db.Column(db.String(500), nullable=True)
    bank_name = db.Column(db.String(200), nullable=True)
    bank_account_number = db.Column(db.String(50), nullable=True)
    bank_ifsc = db.Column(db.String(20), nullable=True)
    bank_account_name = db.Column(db.String(200), nullable=True)
    bank_account_type = db.Column(db.String(50), nullable=True)
    invoice_template = db.Column(db.String(50), nullable=True)  # preferred template id
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Client(db.Model):
    """Invoice recipient"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    company_name = db.Column(db.String(200), nullable=True)
    email = db.Column(db.String(200), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    pin_code = db.Column(db.String(10), nullable=True)
    gstin = db.Column(db.String(15), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    invoices = db.relationship('Invoice', back_populates='client', lazy='dynamic')


class Product(db.Model):
    """Catalogue entry used to prefill invoice lines"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    hsn_sac = db.Column(db.String(20), nullable=True)
    unit = db.Column(db.String(20), nullable=True)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    gst_rate = db.Column(db.Float, nullable=False, default=18.0)
    is_service = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Invoice(db.Model):
    """GST invoice"""
    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(50), unique=True, nullable=False)
    client_id = db.Column(db.Integer, db.ForeignKey('client.id'), nullable=False)
    company_id = db.Column(db.Integer, db.ForeignKey('company.id'), nullable=True)
    invoice_date = db.Column(db.Date, nullable=False, default=date.today)
    due_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), default='draft')  # draft, sent, paid, overdue
    subtotal = db.Column(db.Float, default=0.0)
    total_gst = db.Column(db.Float, default=0.0)
    discount = db.Column(db.Float, default=0.0)
    total_amount = db.Column(db.Float, default=0.0)
    # Tax split frozen at creation from the company/client states
    igst = db.Column(db.Float, nullable=True)
    cgst = db.Column(db.Float, nullable=True)
    sgst = db.Column(db.Float, nullable=True)
    place_of_supply = db.Column(db.String(100), nullable=True)
    gst_payable_reverse_charge = db.Column(db.Boolean, default=False)
    template = db.Column(db.String(50), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    client = db.relationship('Client', back_populates='invoices')
    company = db.relationship('Company')
    items = db.relationship('InvoiceItem', back_populates='invoice', cascade='all, delete-orphan',
                            order_by='InvoiceItem.position')


class InvoiceItem(db.Model):
    """Individual line on an invoice"""
    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoice.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=True)
    position = db.Column(db.Integer, default=0)
    item_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    hsn_sac = db.Column(db.String(20), nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=1)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    gst_rate = db.Column(db.Float, nullable=False, default=0.0)
    line_total = db.Column(db.Float, default=0.0)
    gst_amount = db.Column(db.Float, default=0.0)
    igst_amount = db.Column(db.Float, nullable=True)
    cgst_amount = db.Column(db.Float, nullable=True)
    sgst_amount = db.Column(db.Float, nullable=True)

    invoice = db.relationship('Invoice', back_populates='items')
    product = db.relationship('Product')
