import pytest
from pydantic import ValidationError

from invoiceflow.invoices import apply_audit_stamp, build_invoice, merge_update, utcnow_iso
from invoiceflow.schemas import InvoiceCreate, InvoicePatch, InvoiceStatus

CREATED = "2024-01-01T09:00:00.000Z"
LATER = "2024-01-02T10:30:00.000Z"


def _create(**overrides) -> InvoiceCreate:
    body = {
        "senderName": "Alice",
        "company": "Acme",
        "invoiceNo": "INV-001",
        "date": "2024-01-01",
        "items": [{"description": "Freight", "price": 100, "vat": 0, "total": 0}],
    }
    body.update(overrides)
    return InvoiceCreate.model_validate(body)


def test_build_invoice_computes_amounts_and_stamps_creator() -> None:
    invoice = build_invoice(
        _create(invoiceDetailsAmount=50, paymentAmount=500),
        "invoice:1:abc",
        now=CREATED,
    )

    assert invoice.id == "invoice:1:abc"
    assert invoice.status is InvoiceStatus.DRAFT
    assert invoice.creator == "Alice"
    assert invoice.created_at == invoice.updated_at == CREATED
    assert invoice.items[0].vat == 20.0
    assert invoice.items[0].total == 120.0
    assert (invoice.subtotal, invoice.vat_total, invoice.total) == (100.0, 20.0, 120.0)
    assert (invoice.invoice_details_vat, invoice.invoice_details_total) == (10.0, 60.0)
    assert (invoice.payment_vat, invoice.payment_tevrikat, invoice.payment_total) == (100.0, 100.0, 500.0)
    assert invoice.sent_date is None


def test_client_totals_are_overwritten() -> None:
    invoice = build_invoice(_create(subtotal=999, total=1, paymentTotal=7), "invoice:1:abc")
    assert invoice.subtotal == 100.0
    assert invoice.total == 120.0
    assert invoice.payment_total == 0.0


def test_creator_and_sender_name_fill_each_other() -> None:
    assert _create(senderName="", creator="Bob").sender_name == "Bob"
    assert _create(creator=None).creator == "Alice"

    anonymous = _create(senderName="")
    assert anonymous.sender_name == ""
    assert anonymous.creator is None
    assert build_invoice(anonymous, "invoice:1:abc").to_record().get("creator") is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"items": []},
        {"company": ""},
        {"items": [{"price": -1}]},
        {"paymentAmount": -5},
        {"paymentAmount": 1e16},
        {"invoiceDetailsAmount": float("inf")},
        {"items": [{"price": float("nan")}]},
        {"id": "invoice:forged"},
        {"colour": "blue"},
    ],
)
def test_create_payload_rejects(overrides) -> None:
    with pytest.raises(ValidationError):
        _create(**overrides)


def test_to_record_uses_wire_names_and_omits_unset_stamps() -> None:
    record = build_invoice(_create(), "invoice:1:abc", now=CREATED).to_record()
    assert record["invoiceNo"] == "INV-001"
    assert record["vatTotal"] == 20.0
    assert record["createdAt"] == CREATED
    assert record["status"] == "draft"
    assert "sentDate" not in record
    assert "sender" not in record


def test_merge_update_recomputes_and_refreshes() -> None:
    invoice = build_invoice(_create(), "invoice:1:abc", now=CREATED)
    patch = InvoicePatch.model_validate(
        {"company": "Globex", "items": [{"price": 10}, {"price": 5.55}], "vatTotal": 0}
    )

    merged = merge_update(invoice, patch, now=LATER)

    assert merged.company == "Globex"
    assert merged.invoice_no == "INV-001"
    assert merged.id == invoice.id
    assert merged.created_at == CREATED
    assert merged.updated_at == LATER
    assert [item.vat for item in merged.items] == [2.0, 1.11]
    assert (merged.subtotal, merged.vat_total, merged.total) == (15.55, 3.11, 18.66)


def test_merge_update_raw_status_change_records_no_stamp() -> None:
    invoice = build_invoice(_create(), "invoice:1:abc", now=CREATED)
    merged = merge_update(invoice, InvoicePatch(status=InvoiceStatus.COMPLETED), now=LATER)
    assert merged.status is InvoiceStatus.COMPLETED
    assert merged.completer is None
    assert merged.completed_date is None


def test_repeated_edits_do_not_drift() -> None:
    invoice = build_invoice(_create(items=[{"price": 0.1}, {"price": 0.2}]), "invoice:1:abc")
    for _ in range(50):
        invoice = merge_update(invoice, InvoicePatch(contact="x"))
    assert (invoice.subtotal, invoice.vat_total, invoice.total) == (0.3, 0.06, 0.36)


@pytest.mark.parametrize("field", ["id", "createdAt", "updatedAt", "creator", "sentDate", "logger"])
def test_patch_rejects_read_only_fields(field) -> None:
    with pytest.raises(ValidationError):
        InvoicePatch.model_validate({field: "x"})


def test_apply_audit_stamp_sets_pair_once() -> None:
    invoice = build_invoice(_create(), "invoice:1:abc", now=CREATED)

    sent = apply_audit_stamp(invoice, InvoiceStatus.SENT, "Bob", now=LATER)
    assert sent.status is InvoiceStatus.SENT
    assert (sent.sender, sent.sent_date) == ("Bob", LATER)
    assert sent.updated_at == LATER

    again = apply_audit_stamp(sent, InvoiceStatus.SENT, "Carol", now="2024-02-01T00:00:00.000Z")
    assert (again.sender, again.sent_date) == ("Bob", LATER)
    assert again.updated_at == "2024-02-01T00:00:00.000Z"


def test_apply_audit_stamp_draft_has_no_pair() -> None:
    invoice = build_invoice(_create(), "invoice:1:abc", now=CREATED)
    back = apply_audit_stamp(invoice, InvoiceStatus.DRAFT, "Bob", now=LATER)
    assert back.status is InvoiceStatus.DRAFT
    assert back.creator == "Alice"


def test_utcnow_iso_format() -> None:
    value = utcnow_iso()
    assert value.endswith("Z")
    assert len(value) == len("2024-01-01T09:00:00.000Z")
