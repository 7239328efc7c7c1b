"""
Invoice record shapes.

Field names are snake_case in Python and camelCase on the wire; the stored
key-value documents use the wire form.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .money import MAX_AMOUNT


class InvoiceStatus(str, Enum):
    """Workflow position of an invoice."""

    DRAFT = "draft"
    SENT = "sent"
    IN_PROCESS = "in_process"
    COMPLETED = "completed"
    LOGGED = "logged"


class LifecycleAction(str, Enum):
    SEND = "send"
    ADVANCE = "advance"
    APPROVE = "approve"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InvoiceItem(CamelModel):
    description: str = ""
    price: float = Field(default=0, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    vat: float = 0
    total: float = 0


class DerivedAmounts(CamelModel):
    """
    Totals a client may echo back. They are accepted so that a full record can
    be resubmitted, but the server always recomputes them.
    """

    subtotal: Optional[float] = None
    vat_total: Optional[float] = None
    total: Optional[float] = None
    invoice_details_vat: Optional[float] = None
    invoice_details_total: Optional[float] = None
    payment_vat: Optional[float] = None
    payment_tevrikat: Optional[float] = None
    payment_total: Optional[float] = None


DERIVED_FIELDS = frozenset(DerivedAmounts.model_fields)


class InvoiceCreate(DerivedAmounts):
    """Body of ``POST /invoices``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    sender_name: str = ""
    creator: Optional[str] = None
    company: str = Field(min_length=1)
    invoice_no: str = Field(min_length=1)
    date: str = Field(min_length=1)

    invoice_description: str = ""
    additional_description: str = ""
    loading_company: str = ""
    loading_location: str = ""
    shipping_company: str = ""
    shipping_location: str = ""
    operator: str = ""
    sales_representative: str = ""
    supplier: str = ""
    license_plate: str = ""
    contact: str = ""
    delivery: str = ""
    payment_date: str = ""
    payment: str = ""

    items: list[InvoiceItem] = Field(min_length=1)
    invoice_details_amount: float = Field(default=0, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    payment_amount: float = Field(default=0, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    status: InvoiceStatus = InvoiceStatus.DRAFT

    @model_validator(mode="after")
    def _fill_actor(self) -> "InvoiceCreate":
        # the sender and the creator are the same person unless told otherwise
        if not self.sender_name and self.creator:
            self.sender_name = self.creator
        if not self.creator:
            self.creator = self.sender_name or None
        return self


class InvoicePatch(DerivedAmounts):
    """
    Body of ``PUT /invoices/{id}``.

    Only mutable fields are listed; anything else is rejected. Setting
    ``status`` here is a raw field change and records no audit stamp.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    sender_name: Optional[str] = None
    company: Optional[str] = Field(default=None, min_length=1)
    invoice_no: Optional[str] = Field(default=None, min_length=1)
    date: Optional[str] = Field(default=None, min_length=1)

    invoice_description: Optional[str] = None
    additional_description: Optional[str] = None
    loading_company: Optional[str] = None
    loading_location: Optional[str] = None
    shipping_company: Optional[str] = None
    shipping_location: Optional[str] = None
    operator: Optional[str] = None
    sales_representative: Optional[str] = None
    supplier: Optional[str] = None
    license_plate: Optional[str] = None
    contact: Optional[str] = None
    delivery: Optional[str] = None
    payment_date: Optional[str] = None
    payment: Optional[str] = None

    items: Optional[list[InvoiceItem]] = Field(default=None, min_length=1)
    invoice_details_amount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    payment_amount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    status: Optional[InvoiceStatus] = None

    def changes(self) -> dict:
        """Fields the client actually supplied, minus recomputed totals."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in DERIVED_FIELDS and getattr(self, name) is not None
        }


class Invoice(CamelModel):
    """A stored invoice."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    sender_name: str = ""
    company: str = ""
    invoice_no: str = ""
    date: str = ""

    invoice_description: str = ""
    additional_description: str = ""
    loading_company: str = ""
    loading_location: str = ""
    shipping_company: str = ""
    shipping_location: str = ""
    operator: str = ""
    sales_representative: str = ""
    supplier: str = ""
    license_plate: str = ""
    contact: str = ""
    delivery: str = ""
    payment_date: str = ""
    payment: str = ""

    invoice_details_amount: float = 0
    invoice_details_vat: float = 0
    invoice_details_total: float = 0

    items: list[InvoiceItem] = Field(default_factory=list)
    subtotal: float = 0
    vat_total: float = 0
    total: float = 0

    payment_amount: float = 0
    payment_vat: float = 0
    payment_tevrikat: float = 0
    payment_total: float = 0

    status: InvoiceStatus = InvoiceStatus.DRAFT

    # Audit trail
    creator: Optional[str] = None
    sender: Optional[str] = None
    processor: Optional[str] = None
    completer: Optional[str] = None
    logger: Optional[str] = None
    sent_date: Optional[str] = None
    process_date: Optional[str] = None
    completed_date: Optional[str] = None
    approved_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_record(self) -> dict:
        """Wire/storage form: camelCase keys, unset audit fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TransitionRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    status: InvoiceStatus
    actor: str = Field(min_length=1)


class ActionRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    actor: str = Field(min_length=1)
