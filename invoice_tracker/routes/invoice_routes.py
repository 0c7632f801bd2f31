from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest

from invoice_tracker import db
from invoice_tracker.models import Invoice, InvoiceState
from invoice_tracker.services.invoice_query import (
    SORT_LABELS,
    InvoiceNotFound,
    get_owned_invoice,
    query_invoices,
    resolve_sort,
)
from invoice_tracker.services.invoice_validation import FIELDS, validate_invoice
from invoice_tracker.services.lifecycle import mark_paid
from invoice_tracker.utils.clock import current_date
from invoice_tracker.utils.pagination import (
    PAGE_SIZE,
    build_pagination_args,
    get_page,
)

invoice = Blueprint("invoice", __name__)


@invoice.errorhandler(InvoiceNotFound)
def handle_not_found(error):
    return jsonify({"error": str(error)}), 404


@invoice.errorhandler(BadRequest)
def handle_bad_request(error):
    return jsonify({"error": error.description}), 400


def _submitted_fields() -> MultiDict:
    """Return the posted invoice fields from a form or JSON body."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise BadRequest("Expected a JSON object.")
        if isinstance(payload.get("invoice"), dict):
            payload = payload["invoice"]
        submitted = MultiDict()
        for name in FIELDS:
            if name in payload:
                value = payload[name]
                submitted.add(name, "" if value is None else str(value))
        return submitted
    return MultiDict(
        (name, value)
        for name, value in request.form.items(multi=True)
        if name in FIELDS
    )


@invoice.route("/invoices", methods=["GET"])
@login_required
def view_invoices():
    """List the current user's invoices with search, filter and sort."""
    today = current_date()
    search = request.args.get("search", "")
    state = request.args.get("state")
    sort = resolve_sort(request.args.get("sort"))
    page = query_invoices(
        current_user,
        search=search,
        state=state,
        sort=sort,
        page=get_page(),
        per_page=PAGE_SIZE,
    )
    return jsonify(
        {
            "invoices": [inv.to_dict(today) for inv in page.items],
            "page": page.page,
            "per_page": page.per_page,
            "total": page.total,
            "pages": page.pages,
            "has_next": page.has_next,
            "has_prev": page.has_prev,
            "search": search,
            "state": state if InvoiceState.parse(state) else None,
            "sort": sort,
            "sort_options": [list(option) for option in SORT_LABELS],
            "pagination_args": build_pagination_args(),
        }
    )


@invoice.route("/invoices/sort_options", methods=["GET"])
@login_required
def sort_options():
    return jsonify({"sort_options": [list(option) for option in SORT_LABELS]})


@invoice.route("/invoices", methods=["POST"])
@login_required
def create_invoice():
    """Create an invoice owned by the current user."""
    today = current_date()
    fields = _submitted_fields()
    # New invoices always start out as sent.
    fields.setlist("state", [InvoiceState.SENT.value])
    result = validate_invoice(fields, today=today)
    if not result.ok:
        return jsonify({"errors": result.errors}), 422

    new_invoice = result.apply_to(Invoice(user_id=current_user.id))
    db.session.add(new_invoice)
    db.session.commit()
    current_app.logger.info(
        "User %s created invoice %s", current_user.id, new_invoice.id
    )
    return jsonify({"invoice": new_invoice.to_dict(today)}), 201


@invoice.route("/invoices/<int:invoice_id>", methods=["GET"])
@login_required
def view_invoice(invoice_id):
    existing = get_owned_invoice(current_user, invoice_id)
    return jsonify({"invoice": existing.to_dict(current_date())})


@invoice.route("/invoices/<int:invoice_id>/edit", methods=["POST"])
@login_required
def edit_invoice(invoice_id):
    """Update an invoice; omitted fields keep their stored values."""
    today = current_date()
    existing = get_owned_invoice(current_user, invoice_id)
    candidate = MultiDict(existing.to_form_data())
    for name, values in _submitted_fields().lists():
        candidate.setlist(name, values)
    result = validate_invoice(candidate, today=today)
    if not result.ok:
        return jsonify({"errors": result.errors}), 422

    result.apply_to(existing)
    db.session.commit()
    current_app.logger.info(
        "User %s updated invoice %s", current_user.id, existing.id
    )
    return jsonify({"invoice": existing.to_dict(today)})


@invoice.route("/invoices/<int:invoice_id>/pay", methods=["POST"])
@login_required
def pay_invoice(invoice_id):
    """Record that the buyer paid."""
    existing = get_owned_invoice(current_user, invoice_id)
    mark_paid(existing)
    db.session.commit()
    current_app.logger.info(
        "User %s marked invoice %s as paid", current_user.id, existing.id
    )
    return jsonify({"invoice": existing.to_dict(current_date())})


@invoice.route("/invoices/<int:invoice_id>/delete", methods=["POST"])
@login_required
def delete_invoice(invoice_id):
    existing = get_owned_invoice(current_user, invoice_id)
    db.session.delete(existing)
    db.session.commit()
    current_app.logger.info(
        "User %s deleted invoice %s", current_user.id, invoice_id
    )
    return jsonify({"deleted": invoice_id})
