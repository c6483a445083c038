import datetime
from decimal import Decimal

from ledger_core.models import (Account, BankTransaction, Company,
                                JournalEntry, JournalEntryLine, PurchaseBill,
                                PurchaseBillLine, SalesInvoice,
                                SalesInvoiceLine, default_fs_for_type)

D = Decimal

# gl_account → ac_type (fs follows from the type)
BASIC_CHART = {
    "Bank - Chase": "Current Asset",
    "Accounts Receivable": "Current Asset",
    "Accounts Payable": "Current Liability",
    "Owner's Capital": "Equity",
    "Sales Revenue": "Direct Income",
    "Rent Expense": "Indirect Expense",
    "Office Supplies": "Indirect Expense",
}


def make_company(name="Test Co", with_chart=True):
    company = Company.objects.create(
        name=name,
        default_ar_gl_account="Accounts Receivable",
        default_ap_gl_account="Accounts Payable",
    )
    if with_chart:
        for gl_account, ac_type in BASIC_CHART.items():
            make_account(company, gl_account, ac_type)
    return company


def make_account(company, gl_account, ac_type, fs=None):
    return Account.objects.create(
        company=company, gl_account=gl_account, ac_type=ac_type,
        fs=fs or default_fs_for_type(ac_type))


def make_journal(company, lines, reference=None, day=datetime.date(2024, 1, 15)):
    """lines: (gl_account, debit, credit) tuples."""
    journal = JournalEntry.objects.create(company=company, reference=reference)
    for gl_account, debit, credit in lines:
        JournalEntryLine.objects.create(
            company=company, journal=journal, date=day,
            description=f"{gl_account} line", gl_account=gl_account,
            debit_amount=D(debit) if debit else None,
            credit_amount=D(credit) if credit else None,
        )
    journal.refresh_from_db()
    return journal


def make_invoice(company, lines, number="INV-1", customer="Acme Corp",
                 day=datetime.date(2024, 1, 10)):
    """lines: (gl_account, quantity, unit_price) tuples."""
    invoice = SalesInvoice.objects.create(
        company=company, date=day, number=number, customer_name=customer)
    for gl_account, qty, price in lines:
        SalesInvoiceLine.objects.create(
            company=company, invoice=invoice, description=f"{gl_account} item",
            gl_account=gl_account, quantity=D(qty), unit_price=D(price))
    # line signals recalculated the total and bumped the version
    invoice.refresh_from_db()
    return invoice


def make_bill(company, lines, number="B-1", vendor="Landlord LLC",
              day=datetime.date(2024, 1, 12)):
    bill = PurchaseBill.objects.create(
        company=company, date=day, number=number, vendor_name=vendor)
    for gl_account, qty, price in lines:
        PurchaseBillLine.objects.create(
            company=company, bill=bill, description=f"{gl_account} item",
            gl_account=gl_account, quantity=D(qty), unit_price=D(price))
    bill.refresh_from_db()
    return bill


def make_bank_txn(company, paid=None, received=None, gl_account=None,
                  counterparty="Acme Corp", bank_name="Chase",
                  day=datetime.date(2024, 1, 20)):
    return BankTransaction.objects.create(
        company=company, date=day, description="Statement row",
        bank_name=bank_name, counterparty=counterparty, gl_account=gl_account,
        amount_paid=D(paid) if paid else None,
        amount_received=D(received) if received else None,
    )
