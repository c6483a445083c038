import datetime

from django.core.exceptions import ValidationError
from django.test import TestCase

from ledger_core.exceptions import UnresolvedAccountError
from ledger_core.models import PAID, UNPAID, AuditLog, LedgerPosting
from ledger_core.services.payment import (mark_bill_paid, mark_bill_unpaid,
                                          mark_invoice_paid,
                                          mark_invoice_unpaid)
from ledger_core.services.posting import post_document, unpost_document

from .helpers import D, make_bill, make_company, make_invoice

PAY_DAY = datetime.date(2024, 2, 1)


def net(company, gl_account):
    rows = LedgerPosting.objects.for_company(company).filter(gl_account=gl_account)
    return sum((r.net_amount for r in rows), D("0"))


class InvoicePaymentTests(TestCase):

    def setUp(self):
        self.company = make_company()
        self.invoice = make_invoice(self.company, [("Sales Revenue", "3", "100")])
        post_document(self.company, self.invoice)

    def test_mark_paid_settles_receivable(self):
        rows = mark_invoice_paid(self.company, self.invoice, PAY_DAY, "Chase", actor_id="bob")

        self.assertEqual(len(rows), 2)
        self.assertEqual(self.invoice.payment_status, PAID)
        self.assertEqual(self.invoice.payment_date, PAY_DAY)
        self.assertEqual(self.invoice.paid_bank_gl_account, "Bank - Chase")
        self.assertEqual(net(self.company, "Accounts Receivable"), D("0"))
        self.assertEqual(net(self.company, "Bank - Chase"), D("300"))

        bank = LedgerPosting.objects.for_company(self.company).get(gl_account="Bank - Chase")
        self.assertEqual(bank.source, "Sales Invoice Payment")
        self.assertEqual(bank.date, PAY_DAY)
        self.assertEqual(bank.customer, "Acme Corp")
        self.assertTrue(AuditLog.objects.filter(action="mark_paid", actor_id="bob").exists())

    def test_full_account_name_is_accepted(self):
        mark_invoice_paid(self.company, self.invoice, PAY_DAY, "bank - chase")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_bank_gl_account, "Bank - Chase")

    def test_cannot_pay_twice(self):
        mark_invoice_paid(self.company, self.invoice, PAY_DAY, "Chase")
        with self.assertRaises(ValidationError):
            mark_invoice_paid(self.company, self.invoice, PAY_DAY, "Chase")
        self.assertEqual(LedgerPosting.objects.for_company(self.company).count(), 4)

    def test_draft_invoice_cannot_be_paid(self):
        draft = make_invoice(self.company, [("Sales Revenue", "1", "50")], number="INV-2")
        with self.assertRaises(ValidationError):
            mark_invoice_paid(self.company, draft, PAY_DAY, "Chase")
        draft.refresh_from_db()
        self.assertEqual(draft.payment_status, UNPAID)

    def test_unknown_bank_leaves_invoice_unpaid(self):
        with self.assertRaises(UnresolvedAccountError):
            mark_invoice_paid(self.company, self.invoice, PAY_DAY, "Wells")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.payment_status, UNPAID)
        self.assertEqual(LedgerPosting.objects.for_company(self.company).count(), 2)

    def test_mark_unpaid_removes_only_payment_postings(self):
        mark_invoice_paid(self.company, self.invoice, PAY_DAY, "Chase")
        self.assertEqual(mark_invoice_unpaid(self.company, self.invoice), 2)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.payment_status, UNPAID)
        self.assertIsNone(self.invoice.payment_date)
        self.assertIsNone(self.invoice.paid_bank_gl_account)
        self.assertTrue(self.invoice.is_ledger_approved)
        sources = set(LedgerPosting.objects.for_company(self.company).values_list("source", flat=True))
        self.assertEqual(sources, {"Sales Invoice"})

    def test_unpost_also_reverses_payment(self):
        mark_invoice_paid(self.company, self.invoice, PAY_DAY, "Chase")
        self.assertEqual(unpost_document(self.company, self.invoice), 4)

        self.invoice.refresh_from_db()
        self.assertFalse(self.invoice.is_ledger_approved)
        self.assertEqual(self.invoice.payment_status, UNPAID)
        self.assertFalse(LedgerPosting.objects.for_company(self.company).exists())


class BillPaymentTests(TestCase):

    def setUp(self):
        self.company = make_company()
        self.bill = make_bill(self.company, [("Rent Expense", "1", "800")])
        post_document(self.company, self.bill)

    def test_mark_paid_settles_payable(self):
        mark_bill_paid(self.company, self.bill, PAY_DAY, "Bank - Chase")

        self.assertEqual(net(self.company, "Accounts Payable"), D("0"))
        self.assertEqual(net(self.company, "Bank - Chase"), D("-800"))
        payment_rows = LedgerPosting.objects.for_company(self.company).filter(
            source="Purchase Bill Payment")
        self.assertEqual(payment_rows.count(), 2)
        self.assertTrue(all(r.vendor == "Landlord LLC" for r in payment_rows))
        self.assertTrue(all(r.description == "Payment made for Bill #B-1" for r in payment_rows))

    def test_mark_unpaid(self):
        mark_bill_paid(self.company, self.bill, PAY_DAY, "Chase")
        mark_bill_unpaid(self.company, self.bill)
        self.assertEqual(self.bill.payment_status, UNPAID)
        self.assertEqual(net(self.company, "Accounts Payable"), D("-800"))
