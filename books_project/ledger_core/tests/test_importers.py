from django.test import TestCase

from ledger_core.models import JournalEntry, LedgerPosting
from ledger_core.services.importers import import_journal_rows
from ledger_core.services.posting import post_document

from .helpers import D, make_company


def row(set_id, gl_account, debit="", credit="", **extra):
    values = {
        "journal_set_id": set_id,
        "date": "2024-01-05",
        "description": f"{set_id} line",
        "gl_account": gl_account,
        "debit": debit,
        "credit": credit,
    }
    values.update(extra)
    return values


class ImportJournalRowsTests(TestCase):

    def setUp(self):
        self.company = make_company()

    def test_valid_sets_are_created_and_bad_ones_rejected(self):
        rows = [
            row("JE-1", "bank - chase", debit="1,000.00"),
            row("JE-1", "Owner's Capital", credit="1000", date="01/05/2024"),
            row("JE-2", "Rent Expense", debit="100"),
            row("JE-2", "Bank - Chase", credit="90"),
        ]
        result = import_journal_rows(self.company, rows, actor_id="carol")

        self.assertEqual(len(result.created), 1)
        entry = result.created[0]
        self.assertEqual(entry.reference, "JE-1")
        self.assertFalse(entry.is_ledger_approved)
        self.assertEqual(
            list(entry.lines.order_by("id").values_list("gl_account", flat=True)),
            ["Bank - Chase", "Owner's Capital"],
        )

        self.assertEqual([r.journal_set_id for r in result.rejected], ["JE-2"])
        self.assertIn("difference 10.00", result.rejected[0].errors[-1])
        self.assertEqual(JournalEntry.objects.for_company(self.company).count(), 1)

    def test_existing_reference_is_rejected(self):
        rows = [row("JE-1", "Bank - Chase", debit="5"), row("JE-1", "Owner's Capital", credit="5")]
        import_journal_rows(self.company, rows)
        again = import_journal_rows(self.company, rows)

        self.assertEqual(again.created, [])
        self.assertEqual(again.rejected[0].errors, ["Journal set 'JE-1' already exists."])

    def test_bad_cells_are_reported_per_line(self):
        rows = [
            row("JE-9", "Bank - Chase", debit="abc"),
            row("JE-9", "Owner's Capital", credit="5", date="2024-13-45"),
        ]
        result = import_journal_rows(self.company, rows)
        errors = result.rejected[0].errors
        self.assertTrue(any(e.startswith("Line 1: Invalid amount") for e in errors))
        self.assertTrue(any(e.startswith("Line 2: invalid date") for e in errors))

    def test_imported_entry_posts_with_counterparty(self):
        rows = [
            row("JE-3", "Bank - Chase", debit="250", vendor_or_customer="Acme Corp",
                contact_type="Customer"),
            row("JE-3", "Sales Revenue", credit="250", vendor_or_customer="Acme Corp",
                contact_type="customer"),
        ]
        entry = import_journal_rows(self.company, rows).created[0]
        post_document(self.company, entry)

        rows = LedgerPosting.objects.for_company(self.company)
        self.assertEqual(rows.count(), 2)
        self.assertTrue(all(r.customer == "Acme Corp" and r.vendor is None for r in rows))
        self.assertEqual(sum(r.net_amount for r in rows), D("0"))

    def test_set_failing_model_validation_is_rejected_alone(self):
        long_text = "x" * 401
        rows = [
            row("JE-1", "Bank - Chase", debit="5"),
            row("JE-1", "Owner's Capital", credit="5"),
            row("JE-2", "Bank - Chase", debit="7", description=long_text),
            row("JE-2", "Owner's Capital", credit="7", description=long_text),
        ]
        result = import_journal_rows(self.company, rows)

        self.assertEqual([e.reference for e in result.created], ["JE-1"])
        self.assertEqual([r.journal_set_id for r in result.rejected], ["JE-2"])
        self.assertTrue(result.rejected[0].errors)
        self.assertEqual(
            list(JournalEntry.objects.for_company(self.company).values_list("reference", flat=True)),
            ["JE-1"],
        )
