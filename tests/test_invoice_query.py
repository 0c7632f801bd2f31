from datetime import date, datetime
from decimal import Decimal

import pytest

from invoice_tracker.models import InvoiceState
from invoice_tracker.services.invoice_query import (
    DEFAULT_SORT,
    SORT_LABELS,
    SORT_OPTIONS,
    InvoiceNotFound,
    get_owned_invoice,
    is_valid_sort,
    query_invoices,
    resolve_sort,
)


def _names(page):
    return [inv.buyer_name for inv in page.items]


def test_sort_options_cover_every_field_and_direction():
    assert set(SORT_OPTIONS) == {
        f"{field}_{direction}"
        for field in ("buyer_name", "expiry_date", "amount", "created_at")
        for direction in ("asc", "desc")
    }
    assert DEFAULT_SORT == "created_at_desc"
    assert {value for value, _ in SORT_LABELS} == set(SORT_OPTIONS)


@pytest.mark.parametrize("value", [None, "", "nonsense", "amount"])
def test_unknown_sort_resolves_to_default(value):
    assert not is_valid_sort(value)
    assert resolve_sort(value) == DEFAULT_SORT


def test_sort_by_buyer_name(owner, make_invoice):
    for name in ("Zeta", "Alpha", "Charlie"):
        make_invoice(owner, buyer_name=name)

    assert _names(query_invoices(owner, sort="buyer_name_asc")) == [
        "Alpha",
        "Charlie",
        "Zeta",
    ]
    assert _names(query_invoices(owner, sort="buyer_name_desc")) == [
        "Zeta",
        "Charlie",
        "Alpha",
    ]


def test_sort_by_amount_and_expiry(owner, make_invoice):
    make_invoice(owner, buyer_name="Mid", amount=Decimal("50.00"), expiry_date=date(2024, 3, 1))
    make_invoice(owner, buyer_name="Low", amount=Decimal("5.00"), expiry_date=date(2024, 5, 1))
    make_invoice(owner, buyer_name="High", amount=Decimal("500.00"), expiry_date=date(2024, 2, 15))

    assert _names(query_invoices(owner, sort="amount_asc")) == ["Low", "Mid", "High"]
    assert _names(query_invoices(owner, sort="amount_desc")) == ["High", "Mid", "Low"]
    assert _names(query_invoices(owner, sort="expiry_date_asc")) == ["High", "Mid", "Low"]
    assert _names(query_invoices(owner, sort="expiry_date_desc")) == ["Low", "Mid", "High"]


def test_default_sort_is_newest_first(owner, make_invoice):
    make_invoice(owner, buyer_name="Old", created_at=datetime(2024, 1, 1))
    make_invoice(owner, buyer_name="New", created_at=datetime(2024, 1, 3))
    make_invoice(owner, buyer_name="Middle", created_at=datetime(2024, 1, 2))

    expected = ["New", "Middle", "Old"]
    assert _names(query_invoices(owner)) == expected
    assert _names(query_invoices(owner, sort="bogus")) == expected
    assert _names(query_invoices(owner, sort="created_at_asc")) == expected[::-1]


def test_ties_are_broken_by_insertion_order(owner, make_invoice):
    same_time = datetime(2024, 1, 1, 12, 0)
    for name in ("First", "Second", "Third"):
        make_invoice(owner, buyer_name=name, created_at=same_time)

    assert _names(query_invoices(owner)) == ["Third", "Second", "First"]
    assert _names(query_invoices(owner, sort="created_at_asc")) == [
        "First",
        "Second",
        "Third",
    ]


def test_search_is_case_insensitive_substring(owner, make_invoice):
    make_invoice(owner, buyer_name="Acme Corporation")
    make_invoice(owner, buyer_name="ACME Labs")
    make_invoice(owner, buyer_name="Globex")

    assert sorted(_names(query_invoices(owner, search="acme"))) == [
        "ACME Labs",
        "Acme Corporation",
    ]
    assert _names(query_invoices(owner, search="lob")) == ["Globex"]


def test_search_text_is_matched_as_given(owner, make_invoice):
    make_invoice(owner, buyer_name="Acme")
    make_invoice(owner, buyer_name="Acme Labs")

    assert _names(query_invoices(owner, search="acme ")) == ["Acme Labs"]
    assert _names(query_invoices(owner, search=" acme")) == []


@pytest.mark.parametrize("search", [None, "", "   "])
def test_blank_search_is_a_no_op(owner, make_invoice, search):
    for _ in range(3):
        make_invoice(owner)
    assert query_invoices(owner, search=search).total == 3


def test_search_treats_wildcards_literally(owner, make_invoice):
    make_invoice(owner, buyer_name="100% Organic")
    make_invoice(owner, buyer_name="1000 Organic")
    assert _names(query_invoices(owner, search="100%")) == ["100% Organic"]


def test_state_filter_uses_persisted_state(owner, make_invoice):
    make_invoice(owner, buyer_name="Sent")
    make_invoice(owner, buyer_name="Paid", state=InvoiceState.PAID)
    make_invoice(owner, buyer_name="Overdue", state=InvoiceState.OVERDUE)

    assert _names(query_invoices(owner, state="paid")) == ["Paid"]
    assert _names(query_invoices(owner, state=InvoiceState.OVERDUE)) == ["Overdue"]
    assert _names(query_invoices(owner, state="sent")) == ["Sent"]


@pytest.mark.parametrize("state", ["archived", "", None, "1"])
def test_unknown_state_filter_returns_everything(owner, make_invoice, state):
    make_invoice(owner)
    make_invoice(owner, state=InvoiceState.PAID)
    unfiltered = _names(query_invoices(owner))
    assert _names(query_invoices(owner, state=state)) == unfiltered


def test_only_owner_invoices_are_listed(owner, other_owner, make_invoice):
    make_invoice(owner, buyer_name="Mine")
    make_invoice(other_owner, buyer_name="Theirs")

    assert _names(query_invoices(owner)) == ["Mine"]
    assert _names(query_invoices(other_owner.id)) == ["Theirs"]
    assert _names(query_invoices(owner, search="Theirs")) == []


def test_stages_compose(owner, other_owner, make_invoice):
    make_invoice(owner, buyer_name="Acme B", amount=Decimal("20.00"))
    make_invoice(owner, buyer_name="Acme A", amount=Decimal("10.00"))
    make_invoice(owner, buyer_name="Acme Paid", state=InvoiceState.PAID)
    make_invoice(owner, buyer_name="Other")
    make_invoice(other_owner, buyer_name="Acme Foreign")

    page = query_invoices(owner, search="acme", state="sent", sort="amount_desc")
    assert _names(page) == ["Acme B", "Acme A"]


def test_pagination(owner, make_invoice):
    for _ in range(15):
        make_invoice(owner)

    first = query_invoices(owner, page=1)
    second = query_invoices(owner, page=2)
    third = query_invoices(owner, page=3)

    assert len(first.items) == 10
    assert len(second.items) == 5
    assert third.items == []
    assert first.total == 15
    assert first.pages == 2
    assert first.has_next and not first.has_prev
    assert second.has_prev and not second.has_next
    assert not {inv.id for inv in first.items} & {inv.id for inv in second.items}


@pytest.mark.parametrize("page", [None, 0, -3])
def test_invalid_page_is_first_page(owner, make_invoice, page):
    make_invoice(owner)
    result = query_invoices(owner, page=page)
    assert result.page == 1
    assert len(result.items) == 1


def test_empty_collection(owner):
    page = query_invoices(owner)
    assert page.items == []
    assert page.total == 0
    assert page.pages == 0
    assert not page.has_next


def test_get_owned_invoice(owner, other_owner, make_invoice):
    mine = make_invoice(owner)
    theirs = make_invoice(other_owner)

    assert get_owned_invoice(owner, mine.id).id == mine.id
    with pytest.raises(InvoiceNotFound):
        get_owned_invoice(owner, theirs.id)
    with pytest.raises(InvoiceNotFound):
        get_owned_invoice(owner, 999_999)
