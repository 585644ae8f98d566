import io
import logging
from flask import Blueprint, Response, abort, current_app, jsonify, request, send_file
from flask_login import login_required
from models import db, Invoice
from helpers import build_invoice_data, create_invoice, delete_invoice, find_invoices
from generators.errors import InvoiceValidationError, RasterizationError

logger = logging.getLogger(__name__)

invoices_bp = Blueprint('invoices', __name__)


def _documents():
    return current_app.extensions['invoice_documents']


def _get_invoice_or_404(invoice_id):
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        abort(404)
    return invoice


def _template_for(invoice):
    """Explicit ?template= wins, then the invoice's, then the company's preference"""
    requested = request.args.get('template')
    if requested:
        return requested
    if invoice.template:
        return invoice.template
    if invoice.company and invoice.company.invoice_template:
        return invoice.company.invoice_template
    return None


def _summary(invoice):
    client = invoice.client
    return {
        'id': invoice.id,
        'invoice_number': invoice.invoice_number,
        'invoice_date': invoice.invoice_date.isoformat() if invoice.invoice_date else None,
        'due_date': invoice.due_date.isoformat() if invoice.due_date else None,
        'status': invoice.status,
        'client': client.company_name or client.name if client else None,
        'total_amount': invoice.total_amount,
    }


@invoices_bp.route('/templates')
@login_required
def templates():
    """Template catalogue for pickers and previews"""
    registry = _documents().registry
    return jsonify(
        default=registry.default_id,
        templates=[info.to_dict() for info in registry.catalog()],
    )


@invoices_bp.route('/invoices')
@login_required
def index():
    """Invoice list, filtered by ?q= search terms and ?status="""
    try:
        invoices = find_invoices(request.args.get('q'), request.args.get('status'))
    except ValueError as e:
        return jsonify(error=str(e)), 400
    return jsonify(invoices=[_summary(inv) for inv in invoices])


@invoices_bp.route('/invoices', methods=['POST'])
@login_required
def create():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify(error='Expected a JSON object'), 400
    try:
        invoice = create_invoice(payload)
    except (KeyError, ValueError) as e:
        db.session.rollback()
        return jsonify(error=str(e)), 400
    return jsonify(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        subtotal=invoice.subtotal,
        total_gst=invoice.total_gst,
        total_amount=invoice.total_amount,
        igst=invoice.igst,
        cgst=invoice.cgst,
        sgst=invoice.sgst,
    ), 201


@invoices_bp.route('/invoices/<int:invoice_id>', methods=['DELETE'])
@login_required
def delete(invoice_id):
    invoice = _get_invoice_or_404(invoice_id)
    delete_invoice(invoice)
    return jsonify(deleted=invoice_id)


@invoices_bp.route('/invoices/<int:invoice_id>/preview')
@login_required
def preview(invoice_id):
    invoice = _get_invoice_or_404(invoice_id)
    data = build_invoice_data(invoice)
    try:
        html = _documents().render_html(data, _template_for(invoice))
    except InvoiceValidationError as e:
        return jsonify(error=e.user_message, missing=e.missing), 422
    return Response(html, mimetype='text/html')


@invoices_bp.route('/invoices/<int:invoice_id>/pdf')
@login_required
def download_pdf(invoice_id):
    invoice = _get_invoice_or_404(invoice_id)
    data = build_invoice_data(invoice)
    for problem in data.check_totals():
        logger.warning("Invoice %s: %s", invoice.invoice_number, problem)
    try:
        doc = _documents().generate(data, _template_for(invoice))
    except InvoiceValidationError as e:
        return jsonify(error=e.user_message, missing=e.missing), 422
    except RasterizationError as e:
        return jsonify(error=e.user_message), 502
    return send_file(
        io.BytesIO(doc.content),
        mimetype=doc.mimetype,
        as_attachment=True,
        download_name=doc.filename,
    )
