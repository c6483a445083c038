"""
Plain value types shared by the posting engine and the report engine.

Models snapshot themselves into these (``as_source_document()``) so that
posting rules and aggregations run on in-memory data only.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple, Union

# Ledger source tags
SOURCE_BANK_TRANSACTION = "Bank Transaction"
SOURCE_JOURNAL_ENTRY = "Journal Entry"
SOURCE_SALES_INVOICE = "Sales Invoice"
SOURCE_PURCHASE_BILL = "Purchase Bill"
SOURCE_SALES_INVOICE_PAYMENT = "Sales Invoice Payment"
SOURCE_PURCHASE_BILL_PAYMENT = "Purchase Bill Payment"

# Counterparty kinds
CUSTOMER = "Customer"
VENDOR = "Vendor"

# Placeholder values in the counterparty column that never name a real contact
ASK_MY_ACCOUNTANT = "Ask My Accountant"
NON_COUNTERPARTIES = {"", "-", ASK_MY_ACCOUNTANT.lower()}

BANK_GL_PREFIX = "Bank - "


def clean_counterparty(name):
    """Trimmed counterparty name, or None for blanks and placeholders."""
    if name is None:
        return None
    trimmed = str(name).strip()
    if trimmed.lower() in NON_COUNTERPARTIES:
        return None
    return trimmed


def bank_gl_account_name(bank_name):
    """GL account that represents a bank: "Chase" → "Bank - Chase"."""
    name = (bank_name or "").strip()
    if name.lower().startswith(BANK_GL_PREFIX.lower()):
        return name
    return f"{BANK_GL_PREFIX}{name}"


@dataclass(frozen=True)
class PostingData:
    """A ledger row about to be written (or read back for reporting)."""
    date: date
    description: str
    source: str
    source_doc_id: str
    gl_account: str
    debit_amount: Optional[Decimal] = None
    credit_amount: Optional[Decimal] = None
    customer: Optional[str] = None
    vendor: Optional[str] = None

    @property
    def net_amount(self):
        return (self.debit_amount or Decimal("0")) - (self.credit_amount or Decimal("0"))


# ---------- Source document variants ----------
@dataclass(frozen=True)
class BankTxnDoc:
    doc_id: str
    date: date
    description: str
    bank_name: str
    counterparty: Optional[str] = None
    # Categorized counter-account; None means an uncategorized, single-leg row
    gl_account: Optional[str] = None
    amount_paid: Optional[Decimal] = None
    amount_received: Optional[Decimal] = None

    @property
    def bank_gl_account(self):
        return bank_gl_account_name(self.bank_name)


@dataclass(frozen=True)
class JournalLineDoc:
    date: date
    description: str
    gl_account: str
    debit_amount: Optional[Decimal] = None
    credit_amount: Optional[Decimal] = None
    counterparty: Optional[str] = None
    counterparty_type: str = VENDOR


@dataclass(frozen=True)
class JournalSetDoc:
    doc_id: str
    reference: Optional[str]
    lines: Tuple[JournalLineDoc, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DocumentLine:
    """Invoice / bill line item (amount = quantity * unit_price)."""
    description: str
    gl_account: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


@dataclass(frozen=True)
class InvoiceDoc:
    doc_id: str
    date: date
    number: Optional[str]
    customer_name: str
    total_amount: Decimal
    lines: Tuple[DocumentLine, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BillDoc:
    doc_id: str
    date: date
    number: Optional[str]
    vendor_name: str
    total_amount: Decimal
    lines: Tuple[DocumentLine, ...] = field(default_factory=tuple)


SourceDocument = Union[BankTxnDoc, JournalSetDoc, InvoiceDoc, BillDoc]
