from datetime import date
from models import db, Company, Client, Product, Invoice, InvoiceItem
from sqlalchemy import or_
from generators.gst import calculate_gst, calculate_invoice_totals, calculate_line_amounts, round_money, to_decimal
from generators.invoice_data import (
    BankDetails, ClientInfo, CompanyInfo, InvoiceData, InvoiceInfo, InvoiceStatus, LineItem,
)


def get_company():
    """The issuing company profile (there is at most one)"""
    return Company.query.order_by(Company.id).first()


# ─── Records → InvoiceData ───────────────────────────────────────
def company_info(company):
    if company is None:
        return None
    bank = BankDetails(
        bank_name=company.bank_name,
        account_number=company.bank_account_number,
        ifsc=company.bank_ifsc,
        account_name=company.bank_account_name,
        account_type=company.bank_account_type,
    )
    return CompanyInfo(
        company_name=company.company_name or '',
        address=company.address,
        email=company.email,
        phone=company.phone,
        gstin=company.gstin,
        pan=company.pan,
        logo_url=company.logo_url,
        website=company.website,
        state=company.state,
        bank=None if bank.is_empty else bank,
    )


def client_info(client):
    if client is None:
        return ClientInfo()
    return ClientInfo(
        name=client.name or '',
        company_name=client.company_name,
        email=client.email,
        phone=client.phone,
        address=client.address,
        gstin=client.gstin,
        state=client.state,
        city=client.city,
        pin_code=client.pin_code,
    )


def build_invoice_data(invoice, company=None):
    """
    Assemble the render input for an invoice record.
    Uses the invoice's own company if set, else the site company profile.
    Called per request; the result is never stored.
    """
    company = company or invoice.company or get_company()
    items = tuple(
        LineItem(
            item_name=it.item_name or '',
            description=it.description,
            hsn_sac=it.hsn_sac,
            quantity=it.quantity,
            unit_price=it.unit_price or 0.0,
            gst_rate=it.gst_rate or 0.0,
            line_total=it.line_total or 0.0,
            gst_amount=it.gst_amount or 0.0,
            igst_amount=it.igst_amount,
            cgst_amount=it.cgst_amount,
            sgst_amount=it.sgst_amount,
        )
        for it in invoice.items
    )
    info = InvoiceInfo(
        id=invoice.id,
        invoice_number=invoice.invoice_number or '',
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        status=InvoiceStatus.parse(invoice.status),
        subtotal=invoice.subtotal or 0.0,
        total_gst=invoice.total_gst or 0.0,
        total_amount=invoice.total_amount or 0.0,
        discount=invoice.discount or 0.0,
        notes=invoice.notes,
        reverse_charge=bool(invoice.gst_payable_reverse_charge),
        place_of_supply=invoice.place_of_supply,
        igst=invoice.igst,
        cgst=invoice.cgst,
        sgst=invoice.sgst,
    )
    return InvoiceData(
        invoice=info,
        client=client_info(invoice.client),
        company=company_info(company),
        items=items,
    )


# ─── Invoice listing ─────────────────────────────────────────────
def find_invoices(search=None, status=None):
    """
    Invoices matching every search term and the status, newest first.
    A term matches the invoice number, the client name or the client's company name.
    An empty status or 'all' means any status.
    """
    query = Invoice.query.join(Invoice.client)
    for term in (search or '').lower().split():
        query = query.filter(or_(
            Invoice.invoice_number.ilike(f'%{term}%'),
            Client.name.ilike(f'%{term}%'),
            Client.company_name.ilike(f'%{term}%'),
        ))

    status = (status or '').strip().lower()
    if status and status != 'all':
        if status not in {s.value for s in InvoiceStatus}:
            raise ValueError(f'Unknown status: {status}')
        query = query.filter(Invoice.status == status)

    return query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()).all()


def delete_invoice(invoice):
    """Remove an invoice together with its line items"""
    db.session.delete(invoice)
    db.session.commit()


# ─── Invoice creation ────────────────────────────────────────────
def generate_invoice_number(today=None):
    """
    Next free number of the form INV-YYYYMM-NNN.
    The sequence restarts every month.
    """
    today = today or date.today()
    prefix = f"INV-{today.strftime('%Y%m')}-"
    existing = Invoice.query.filter(Invoice.invoice_number.like(f"{prefix}%")).all()
    highest = 0
    for inv in existing:
        suffix = inv.invoice_number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:03d}"


def _parse_date(value, field):
    if value in (None, ''):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValueError(f"Invalid {field}: {value!r}")


def create_invoice(payload, company=None):
    """
    Create an invoice from a JSON payload.

    Each line may reference a product (``product_id``) whose name, description,
    HSN/SAC, price and GST rate fill in whatever the line leaves out. Line
    amounts and the CGST/SGST/IGST split are computed here and stored, so the
    document keeps its tax split even if the company or client state changes
    later.

    Raises ValueError (or InvalidArgumentError) on bad input.
    """
    company = company or get_company()
    client = db.session.get(Client, payload.get('client_id')) if payload.get('client_id') else None
    if client is None:
        raise ValueError('Unknown or missing client_id')

    raw_items = payload.get('items') or []
    if not isinstance(raw_items, list) or not raw_items:
        raise ValueError('An invoice needs at least one item')
    if not all(isinstance(raw, dict) for raw in raw_items):
        raise ValueError('Each item must be a JSON object')

    discount = to_decimal(payload.get('discount') or 0, 'discount')
    if discount < 0:
        raise ValueError('Discount must not be negative')

    number = (payload.get('invoice_number') or '').strip()
    if number and Invoice.query.filter_by(invoice_number=number).first():
        raise ValueError(f'Invoice number {number} already exists')

    supplier_state = company.state if company else None
    recipient_state = client.state

    invoice = Invoice(
        invoice_number=number or generate_invoice_number(),
        client=client,
        company=company,
        invoice_date=_parse_date(payload.get('invoice_date'), 'invoice_date') or date.today(),
        due_date=_parse_date(payload.get('due_date'), 'due_date'),
        status=InvoiceStatus.parse(payload.get('status')).value,
        discount=float(discount),
        notes=payload.get('notes'),
        gst_payable_reverse_charge=bool(payload.get('gst_payable_reverse_charge', False)),
        place_of_supply=payload.get('place_of_supply') or client.state,
        template=payload.get('template'),
    )

    igst = cgst = sgst = to_decimal(0)
    for position, raw in enumerate(raw_items):
        product = db.session.get(Product, raw['product_id']) if raw.get('product_id') else None
        if raw.get('product_id') and product is None:
            raise ValueError(f"Unknown product_id: {raw['product_id']}")

        name = raw.get('item_name') or (product.name if product else '')
        if not isinstance(name, str):
            raise ValueError(f'Item {position + 1} has an invalid name: {name!r}')
        if not name.strip():
            raise ValueError(f'Item {position + 1} has no name')
        unit_price = raw.get('unit_price', product.unit_price if product else None)
        gst_rate = raw.get('gst_rate', product.gst_rate if product else 0)
        quantity = raw.get('quantity', 1)

        line_total, gst_amount = calculate_line_amounts(quantity, unit_price, gst_rate)
        split = calculate_gst(line_total, gst_rate, supplier_state, recipient_state)
        igst += to_decimal(split.igst_amount)
        cgst += to_decimal(split.cgst_amount)
        sgst += to_decimal(split.sgst_amount)

        invoice.items.append(InvoiceItem(
            product=product,
            position=position,
            item_name=name.strip(),
            description=raw.get('description') or (product.description if product else None),
            hsn_sac=raw.get('hsn_sac') or (product.hsn_sac if product else None),
            quantity=quantity,
            unit_price=unit_price,
            gst_rate=gst_rate,
            line_total=line_total,
            gst_amount=gst_amount,
            igst_amount=split.igst_amount,
            cgst_amount=split.cgst_amount,
            sgst_amount=split.sgst_amount,
        ))

    totals = calculate_invoice_totals(
        ((it.line_total, it.gst_amount) for it in invoice.items), invoice.discount,
    )
    if totals.total_amount < 0:
        raise ValueError('Discount must not exceed the subtotal plus GST')
    invoice.subtotal = totals.subtotal
    invoice.total_gst = totals.total_gst
    invoice.total_amount = totals.total_amount
    invoice.igst = round_money(igst)
    invoice.cgst = round_money(cgst)
    invoice.sgst = round_money(sgst)

    db.session.add(invoice)
    db.session.commit()
    return invoice
