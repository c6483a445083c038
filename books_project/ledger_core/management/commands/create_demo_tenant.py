import datetime
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from ledger_core.domain.documents import bank_gl_account_name
from ledger_core.models import (BankTransaction, Company, JournalEntry,
                                JournalEntryLine, LedgerPosting, PurchaseBill,
                                PurchaseBillLine, SalesInvoice,
                                SalesInvoiceLine)
from ledger_core.services.coa import seed_chart_of_accounts, upsert_account
from ledger_core.services.payment import mark_invoice_paid
from ledger_core.services.posting import post_documents


class Command(BaseCommand):
    help = (
        "Create a demo tenant (company), its chart of accounts, and sample posted documents."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",  # Define flag
            default="Demo Company",
            help="Name of the demo company to create.",
        )
        parser.add_argument(
            "--bank-name", default="Demo Bank", help="Bank the sample transactions go through."
        )
        parser.add_argument(
            "--actor", default="demo", help="Actor id recorded on postings and audit entries."
        )

    @transaction.atomic
    def handle(self, *args, **options):
        # Read arguments from add_arguments()
        company_name = options["company_name"]
        bank_name = options["bank_name"]
        actor = options["actor"]

        # 1. Company (get_or_create returns (object, created))
        company, created = Company.objects.get_or_create(
            name=company_name,
            defaults={
                "default_ar_gl_account": "Accounts Receivable",
                "default_ap_gl_account": "Accounts Payable",
            },
        )
        self.stdout.write(self.style.SUCCESS(f"Company: {company} ({company.slug})"))

        if not created and LedgerPosting.objects.for_company(company).exists():
            self.stdout.write(self.style.WARNING("Demo data already present; nothing to do."))
            return

        # 2. Chart of accounts (+ the bank's own GL account)
        seed_chart_of_accounts(company)
        bank_gl = bank_gl_account_name(bank_name)
        upsert_account(company, bank_gl, ac_type="Current Asset", sub_type="Bank")
        self.stdout.write(self.style.SUCCESS("Seeded chart of accounts"))

        today = datetime.date.today()
        month_start = today.replace(day=1)

        # 3. Opening capital (journal entry set)
        journal = JournalEntry.objects.create(
            company=company, reference="JE-0001", description="Owner investment", created_by=actor)
        JournalEntryLine.objects.create(
            company=company, journal=journal, date=month_start,
            description="Owner investment", gl_account=bank_gl,
            debit_amount=Decimal("10000.00"))
        JournalEntryLine.objects.create(
            company=company, journal=journal, date=month_start,
            description="Owner investment", gl_account="Owner's Capital",
            credit_amount=Decimal("10000.00"))

        # 4. Sales invoice
        invoice = SalesInvoice.objects.create(
            company=company, date=today, number="INV-0001",
            customer_name="Acme Corp", created_by=actor)
        SalesInvoiceLine.objects.create(
            company=company, invoice=invoice, description="Consulting",
            gl_account="Service Revenue", quantity=Decimal("10"), unit_price=Decimal("100"))
        SalesInvoiceLine.objects.create(
            company=company, invoice=invoice, description="Widgets",
            gl_account="Sales Revenue", quantity=Decimal("4"), unit_price=Decimal("50"))

        # 5. Purchase bill
        bill = PurchaseBill.objects.create(
            company=company, date=today, number="B-100",
            vendor_name="Landlord LLC", created_by=actor)
        PurchaseBillLine.objects.create(
            company=company, bill=bill, description="Office rent",
            gl_account="Rent Expense", unit_price=Decimal("800"))

        # 6. Categorized bank transaction
        bank_tx = BankTransaction.objects.create(
            company=company, date=today, description="Monthly service charge",
            bank_name=bank_name, counterparty=bank_name, gl_account="Bank Fees",
            amount_paid=Decimal("25.00"), created_by=actor)

        # Totals were recalculated by the line signals; reload before posting
        documents = [journal, invoice, bill, bank_tx]
        for doc in documents:
            doc.refresh_from_db()

        result = post_documents(company, documents, actor_id=actor)
        for skipped in result.skipped:
            self.stdout.write(self.style.ERROR(f"Skipped {skipped.doc_id}: {skipped.reason}"))
        self.stdout.write(self.style.SUCCESS(f"Posted {len(result.posted)} documents"))

        if invoice.is_ledger_approved:
            mark_invoice_paid(company, invoice, today, bank_name, actor_id=actor)
            self.stdout.write(self.style.SUCCESS(f"Marked invoice {invoice.number} paid"))

        self.stdout.write(self.style.SUCCESS("Demo tenant setup complete!"))
