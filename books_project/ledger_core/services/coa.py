"""Chart of Accounts registry."""
import logging

from django.db import transaction

from ..domain.normalizer import AccountIndex
from ..models import Account, default_fs_for_type

logger = logging.getLogger(__name__)

# (gl_account, ac_type, sub_type, account_number)
DEFAULT_CHART_OF_ACCOUNTS = [
    ("Cash on Hand", "Current Asset", "Cash", "1000"),
    ("Accounts Receivable", "Current Asset", "Receivables", "1100"),
    ("Inventory", "Current Asset", "Inventory", "1200"),
    ("Equipment", "Non Current Asset", "Fixed Assets", "1500"),
    ("Accounts Payable", "Current Liability", "Payables", "2000"),
    ("Credit Card", "Current Liability", "Credit Card", "2100"),
    ("Long-term Loan", "Non Current Liability", "Loans", "2500"),
    ("Owner's Capital", "Equity", "Capital", "3000"),
    ("Sales Revenue", "Direct Income", "Sales", "4000"),
    ("Service Revenue", "Direct Income", "Sales", "4100"),
    ("Interest Income", "Indirect Income", "Other Income", "4500"),
    ("Cost of Goods Sold", "Direct Expense", "Cost of Sales", "5000"),
    ("Rent Expense", "Indirect Expense", "Operating Expenses", "6000"),
    ("Utilities", "Indirect Expense", "Operating Expenses", "6100"),
    ("Office Supplies", "Indirect Expense", "Operating Expenses", "6200"),
    ("Bank Fees", "Indirect Expense", "Operating Expenses", "6300"),
]


def list_accounts(company):
    """Fresh CoA snapshot (never cached between operations)."""
    return list(Account.objects.for_company(company).order_by("gl_account"))


def account_index(company):
    return AccountIndex(list_accounts(company))


def upsert_account(company, gl_account, *, ac_type, fs=None, sub_type="", account_number=None):
    """
    Create or update the account named ``gl_account``.
    ``fs`` defaults to what the type implies; an explicit mismatch is
    kept and flagged later by the reports.
    """
    name = (gl_account or "").strip()
    account = Account.objects.for_company(company).filter(gl_account=name).first()
    if account is None:
        account = Account(company=company, gl_account=name)
    account.ac_type = ac_type
    account.fs = fs or default_fs_for_type(ac_type)
    account.sub_type = sub_type or ""
    account.account_number = account_number
    account.full_clean()
    account.save()
    if account.has_fs_mismatch:
        logger.info("Account %r saved with FS %r for type %r", name, account.fs, ac_type)
    return account


def delete_account(company, gl_account):
    """Remove an account; its postings stay in the ledger as unclassified."""
    deleted, _ = Account.objects.for_company(company).filter(gl_account=gl_account).delete()
    return deleted > 0


@transaction.atomic
def seed_chart_of_accounts(company, rows=DEFAULT_CHART_OF_ACCOUNTS):
    """Add the rows that are missing; existing accounts are left as they are."""
    existing = set(
        Account.objects.for_company(company).values_list("gl_account", flat=True))
    created = []
    for gl_account, ac_type, sub_type, number in rows:
        if gl_account in existing:
            continue
        created.append(upsert_account(
            company, gl_account, ac_type=ac_type, sub_type=sub_type, account_number=number))
    logger.info("Seeded %d accounts for company %s", len(created), company.pk)
    return created
