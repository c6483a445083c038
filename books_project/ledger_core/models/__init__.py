from .account import AC_TYPES, BALANCE_SHEET, FS_CHOICES, PROFIT_AND_LOSS, Account, default_fs_for_type
from .auditlog import AuditLog
from .banking import BankTransaction
from .bill import PurchaseBill, PurchaseBillLine
from .company import Company
from .contact import CONTACT_TYPES, Contact
from .invoice import SalesInvoice, SalesInvoiceLine
from .journal import JournalEntry, JournalEntryLine
from .ledger import POSTING_SOURCES, LedgerPosting
from .source import PAID, UNPAID, BilledDocument, DocumentLineItem, SourceDocument

__all__ = [
    "AC_TYPES", "BALANCE_SHEET", "FS_CHOICES", "PROFIT_AND_LOSS",
    "Account", "default_fs_for_type",
    "AuditLog",
    "BankTransaction",
    "PurchaseBill", "PurchaseBillLine",
    "Company",
    "CONTACT_TYPES", "Contact",
    "SalesInvoice", "SalesInvoiceLine",
    "JournalEntry", "JournalEntryLine",
    "POSTING_SOURCES", "LedgerPosting",
    "PAID", "UNPAID", "BilledDocument", "DocumentLineItem", "SourceDocument",
]
