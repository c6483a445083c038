from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase

from ledger_core.exceptions import (AlreadyPostedDifferentPayload,
                                    ConcurrentModificationError, StoreError,
                                    UnresolvedAccountError)
from ledger_core.models import (AuditLog, BankTransaction, Contact,
                                LedgerPosting)
from ledger_core.services.posting import (post_document, post_documents,
                                          unpost_document)

from .helpers import (D, make_bank_txn, make_company, make_invoice,
                      make_journal)

CAPITAL = [("Bank - Chase", "500", None), ("Owner's Capital", None, "500")]


def ledger_totals(company):
    rows = LedgerPosting.objects.for_company(company)
    debit = sum((r.debit_amount or Decimal("0") for r in rows), Decimal("0"))
    credit = sum((r.credit_amount or Decimal("0") for r in rows), Decimal("0"))
    return debit, credit


class PostDocumentTests(TestCase):

    def setUp(self):
        self.company = make_company()

    def test_post_journal_writes_balanced_postings(self):
        journal = make_journal(self.company, CAPITAL)
        result = post_document(self.company, journal, actor_id="alice")

        rows = LedgerPosting.objects.for_company(self.company)
        self.assertEqual(rows.count(), 2)
        self.assertEqual(len(result.postings), 2)
        self.assertEqual(ledger_totals(self.company), (D("500"), D("500")))
        self.assertTrue(all(r.source_doc_id == journal.source_doc_id for r in rows))
        self.assertTrue(all(r.created_by == "alice" for r in rows))

        journal.refresh_from_db()
        self.assertTrue(journal.is_ledger_approved)
        self.assertIsNotNone(journal.ledger_fingerprint)
        self.assertTrue(AuditLog.objects.filter(action="post", actor_id="alice").exists())

    def test_gl_names_take_chart_spelling(self):
        journal = make_journal(self.company, [("bank - chase", "10", None), ("OWNER'S CAPITAL", None, "10")])
        post_document(self.company, journal)
        names = set(LedgerPosting.objects.for_company(self.company).values_list("gl_account", flat=True))
        self.assertEqual(names, {"Bank - Chase", "Owner's Capital"})

    def test_failed_write_leaves_no_trace(self):
        journal = make_journal(self.company, CAPITAL)
        with mock.patch.object(LedgerPosting.objects, "bulk_create",
                               side_effect=DatabaseError("disk full")):
            with self.assertRaises(StoreError):
                post_document(self.company, journal)

        journal.refresh_from_db()
        self.assertFalse(journal.is_ledger_approved)
        self.assertFalse(LedgerPosting.objects.for_company(self.company).exists())
        self.assertFalse(AuditLog.objects.filter(action="post").exists())

    def test_unpost_removes_everything_and_is_idempotent(self):
        journal = make_journal(self.company, CAPITAL)
        post_document(self.company, journal)

        self.assertEqual(unpost_document(self.company, journal), 2)
        self.assertFalse(journal.is_ledger_approved)
        self.assertIsNone(journal.ledger_fingerprint)
        self.assertFalse(LedgerPosting.objects.for_company(self.company).exists())

        self.assertEqual(unpost_document(self.company, journal), 0)
        self.assertEqual(AuditLog.objects.filter(action="unpost").count(), 1)

    def test_repost_after_unpost(self):
        journal = make_journal(self.company, CAPITAL)
        first = post_document(self.company, journal)
        unpost_document(self.company, journal)
        second = post_document(self.company, journal)

        self.assertEqual(LedgerPosting.objects.for_company(self.company).count(), 2)
        self.assertEqual(
            [(p.gl_account, p.debit_amount, p.credit_amount) for p in first.postings],
            [(p.gl_account, p.debit_amount, p.credit_amount) for p in second.postings],
        )

    def test_posting_twice_without_changes_is_a_no_op(self):
        journal = make_journal(self.company, CAPITAL)
        post_document(self.company, journal)
        again = post_document(self.company, journal)

        self.assertTrue(again.already_posted)
        self.assertEqual(len(again.postings), 2)
        self.assertEqual(LedgerPosting.objects.for_company(self.company).count(), 2)

    def test_changed_payload_after_posting_is_rejected(self):
        txn = make_bank_txn(self.company, paid="40", gl_account="Office Supplies")
        post_document(self.company, txn)
        # queryset update leaves the version alone, like an out-of-band edit
        BankTransaction.objects.filter(pk=txn.pk).update(amount_paid=D("45"))

        with self.assertRaises(AlreadyPostedDifferentPayload):
            post_document(self.company, txn)
        self.assertEqual(ledger_totals(self.company), (D("40"), D("40")))

    def test_stale_instance_is_rejected(self):
        txn = make_bank_txn(self.company, paid="40", gl_account="Office Supplies")
        stale = BankTransaction.objects.get(pk=txn.pk)
        txn.description = "Edited elsewhere"
        txn.save()

        with self.assertRaises(ConcurrentModificationError):
            post_document(self.company, stale)
        self.assertFalse(LedgerPosting.objects.for_company(self.company).exists())

    def test_unresolved_account_blocks_posting(self):
        journal = make_journal(self.company, [("Travel", "20", None), ("Bank - Chase", None, "20")])
        with self.assertRaises(UnresolvedAccountError) as ctx:
            post_document(self.company, journal)
        self.assertEqual(ctx.exception.names, ["Travel"])
        journal.refresh_from_db()
        self.assertFalse(journal.is_ledger_approved)

    def test_unbalanced_journal_is_rejected(self):
        journal = make_journal(self.company, [("Rent Expense", "100", None), ("Bank - Chase", None, "50")])
        with self.assertRaises(ValidationError):
            post_document(self.company, journal)
        self.assertFalse(LedgerPosting.objects.for_company(self.company).exists())

    def test_uncategorized_bank_row_posts_one_leg(self):
        txn = make_bank_txn(self.company, paid="40")
        result = post_document(self.company, txn)
        self.assertEqual(len(result.postings), 1)
        self.assertEqual(result.postings[0].gl_account, "Bank - Chase")
        self.assertEqual(result.postings[0].credit_amount, D("40"))

    def test_invoice_posting_creates_missing_customer(self):
        invoice = make_invoice(self.company, [("Sales Revenue", "2", "150")])
        result = post_document(self.company, invoice)

        self.assertEqual(result.contacts_created, ["Acme Corp"])
        self.assertTrue(Contact.objects.for_company(self.company)
                        .filter(name="Acme Corp", contact_type="Customer").exists())
        receivable = LedgerPosting.objects.for_company(self.company).get(gl_account="Accounts Receivable")
        self.assertEqual(receivable.debit_amount, D("300"))
        self.assertEqual(ledger_totals(self.company), (D("300"), D("300")))

    def test_existing_contact_is_reused(self):
        Contact.objects.create(company=self.company, name="acme corp", contact_type="Customer")
        invoice = make_invoice(self.company, [("Sales Revenue", "1", "10")])
        result = post_document(self.company, invoice)
        self.assertEqual(result.contacts_created, [])
        self.assertEqual(Contact.objects.for_company(self.company).count(), 1)

    def test_contact_lookup_failure_does_not_block_posting(self):
        invoice = make_invoice(self.company, [("Sales Revenue", "2", "40")])
        with mock.patch("ledger_core.services.contacts.find_by_name",
                        side_effect=DatabaseError("contacts down")):
            result = post_document(self.company, invoice)

        self.assertEqual(result.contacts_created, [])
        invoice.refresh_from_db()
        self.assertTrue(invoice.is_ledger_approved)
        self.assertEqual(LedgerPosting.objects.for_company(self.company).count(), 2)
        self.assertEqual(ledger_totals(self.company), (D("80"), D("80")))

    def test_zero_amount_line_must_name_a_real_account(self):
        invoice = make_invoice(self.company, [("Sales Revenue", "1", "100"),
                                              ("Nonexistent Account", "0", "5")])
        with self.assertRaises(UnresolvedAccountError) as ctx:
            post_document(self.company, invoice)
        self.assertEqual(ctx.exception.names, ["Nonexistent Account"])
        self.assertFalse(LedgerPosting.objects.for_company(self.company).exists())

    def test_document_of_another_company_is_rejected(self):
        other = make_company("Other Co")
        journal = make_journal(other, CAPITAL)
        with self.assertRaises(ValidationError):
            post_document(self.company, journal)
        self.assertFalse(LedgerPosting.objects.exists())

    def test_posted_documents_are_frozen(self):
        invoice = make_invoice(self.company, [("Sales Revenue", "1", "10")])
        post_document(self.company, invoice)

        line = invoice.lines.get()
        line.quantity = D("3")
        with self.assertRaises(ValidationError):
            line.save()
        with self.assertRaises(ValidationError):
            invoice.delete()


class PostDocumentsBatchTests(TestCase):

    def setUp(self):
        self.company = make_company()

    def test_bad_documents_are_skipped(self):
        good = make_journal(self.company, CAPITAL, reference="JE-1")
        bad = make_journal(self.company, [("Travel", "5", None), ("Bank - Chase", None, "5")], reference="JE-2")
        txn = make_bank_txn(self.company, received="75", gl_account="Sales Revenue")

        result = post_documents(self.company, [good, bad, txn])

        self.assertEqual([r.document.pk for r in result.posted], [good.pk, txn.pk])
        self.assertEqual(len(result.skipped), 1)
        self.assertEqual(result.skipped[0].doc_id, bad.source_doc_id)
        self.assertIn("Travel", result.skipped[0].reason)

    def test_ledger_stays_balanced_across_documents(self):
        post_documents(self.company, [
            make_journal(self.company, CAPITAL),
            make_invoice(self.company, [("Sales Revenue", "3", "99.99")]),
            make_bank_txn(self.company, paid="12.50", gl_account="Office Supplies"),
        ])
        debit, credit = ledger_totals(self.company)
        self.assertEqual(debit, credit)
        self.assertEqual(debit, D("500") + D("299.97") + D("12.50"))
