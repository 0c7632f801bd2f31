"""Compose the filtered, sorted and paginated invoice listing.

Each stage takes a ``Select`` and returns a narrowed or ordered one.
:func:`query_invoices` always applies them in the same order: owner,
search, state filter, sort, then pagination.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from sqlalchemy import Select, func

from invoice_tracker import db
from invoice_tracker.models import Invoice, InvoiceState, User
from invoice_tracker.utils.pagination import PAGE_SIZE


class InvoiceNotFound(LookupError):
    """Raised when an invoice does not exist or belongs to another account."""

    def __init__(self, invoice_id):
        super().__init__(f"Invoice {invoice_id} not found")
        self.invoice_id = invoice_id


SORT_OPTIONS = {
    "buyer_name_asc": ("buyer_name", "asc"),
    "buyer_name_desc": ("buyer_name", "desc"),
    "expiry_date_asc": ("expiry_date", "asc"),
    "expiry_date_desc": ("expiry_date", "desc"),
    "amount_asc": ("amount", "asc"),
    "amount_desc": ("amount", "desc"),
    "created_at_asc": ("created_at", "asc"),
    "created_at_desc": ("created_at", "desc"),
}

DEFAULT_SORT = "created_at_desc"

SORT_LABELS = (
    ("created_at_desc", "Newest First"),
    ("created_at_asc", "Oldest First"),
    ("buyer_name_asc", "Buyer Name (A-Z)"),
    ("buyer_name_desc", "Buyer Name (Z-A)"),
    ("expiry_date_asc", "Expiry Date (Oldest)"),
    ("expiry_date_desc", "Expiry Date (Newest)"),
    ("amount_asc", "Amount (Low to High)"),
    ("amount_desc", "Amount (High to Low)"),
)

_SORT_COLUMNS = {
    "buyer_name": func.lower(Invoice.buyer_name),
    "expiry_date": Invoice.expiry_date,
    "amount": Invoice.amount,
    "created_at": Invoice.created_at,
}


@dataclass
class InvoicePage:
    items: List[Invoice]
    page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


def is_valid_sort(sort_key: Optional[str]) -> bool:
    return sort_key in SORT_OPTIONS


def resolve_sort(sort_key: Optional[str]) -> str:
    """Return ``sort_key`` when recognised, otherwise :data:`DEFAULT_SORT`."""

    return sort_key if is_valid_sort(sort_key) else DEFAULT_SORT


def _owner_id(owner: User | int) -> int:
    return owner if isinstance(owner, int) else owner.id


def scope_to_owner(stmt: Select, owner: User | int) -> Select:
    return stmt.where(Invoice.user_id == _owner_id(owner))


def apply_search(stmt: Select, search: Optional[str]) -> Select:
    """Case-insensitive substring match on the buyer name.

    Whitespace-only text is no search; otherwise the text is matched as given.
    """

    if not search or not search.strip():
        return stmt
    return stmt.where(Invoice.buyer_name.icontains(search, autoescape=True))


def apply_state_filter(stmt: Select, state: Any) -> Select:
    """Restrict to one persisted state. Unknown values mean no filter."""

    parsed = InvoiceState.parse(state)
    if parsed is None:
        return stmt
    return stmt.where(Invoice.state == parsed)


def apply_sort(stmt: Select, sort_key: Optional[str]) -> Select:
    field_name, direction = SORT_OPTIONS[resolve_sort(sort_key)]
    column = _SORT_COLUMNS[field_name]
    # Invoice.id breaks ties so repeated queries return the same order.
    if direction == "desc":
        return stmt.order_by(column.desc(), Invoice.id.desc())
    return stmt.order_by(column.asc(), Invoice.id.asc())


def build_invoice_query(
    owner: User | int,
    search: Optional[str] = None,
    state: Any = None,
    sort: Optional[str] = None,
) -> Select:
    stmt = db.select(Invoice)
    stmt = scope_to_owner(stmt, owner)
    stmt = apply_search(stmt, search)
    stmt = apply_state_filter(stmt, state)
    return apply_sort(stmt, sort)


def query_invoices(
    owner: User | int,
    search: Optional[str] = None,
    state: Any = None,
    sort: Optional[str] = None,
    page: Optional[int] = 1,
    per_page: int = PAGE_SIZE,
) -> InvoicePage:
    """Return one page of ``owner``'s invoices.

    A page past the end is empty rather than an error.
    """

    if not page or page < 1:
        page = 1
    pagination = db.paginate(
        build_invoice_query(owner, search, state, sort),
        page=page,
        per_page=per_page,
        error_out=False,
        count=True,
    )
    return InvoicePage(
        items=list(pagination.items),
        page=page,
        per_page=per_page,
        total=pagination.total or 0,
    )


def get_owned_invoice(owner: User | int, invoice_id) -> Invoice:
    stmt = scope_to_owner(db.select(Invoice), owner).where(
        Invoice.id == invoice_id
    )
    invoice = db.session.execute(stmt).scalar_one_or_none()
    if invoice is None:
        raise InvoiceNotFound(invoice_id)
    return invoice


__all__ = [
    "DEFAULT_SORT",
    "InvoiceNotFound",
    "InvoicePage",
    "SORT_LABELS",
    "SORT_OPTIONS",
    "apply_search",
    "apply_sort",
    "apply_state_filter",
    "build_invoice_query",
    "get_owned_invoice",
    "is_valid_sort",
    "query_invoices",
    "resolve_sort",
    "scope_to_owner",
]
