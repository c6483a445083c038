import datetime
from unittest import mock

from django.test import TestCase

from ledger_core.exceptions import (ReportGenerationError,
                                    ReportParameterError, StoreError)
from ledger_core.models import AuditLog
from ledger_core.services import reports
from ledger_core.services.posting import post_documents
from ledger_core.services.reports import (ReportSession,
                                          account_transaction_report,
                                          agenerate_report,
                                          contact_transaction_report,
                                          generate_report)

from .helpers import D, make_bill, make_company, make_invoice, make_journal


class GenerateReportTests(TestCase):

    def setUp(self):
        self.company = make_company()
        post_documents(self.company, [
            make_journal(self.company, [("Bank - Chase", "5000", None), ("Owner's Capital", None, "5000")]),
            make_invoice(self.company, [("Sales Revenue", "10", "100")]),
            make_bill(self.company, [("Rent Expense", "1", "300")]),
        ])

    def test_profit_and_loss(self):
        result = generate_report(self.company, "profit-and-loss", "2024-01-01", "2024-01-31",
                                 actor_id="dana")
        self.assertEqual(result.report.total_income, D("1000"))
        self.assertEqual(result.report.total_expenses, D("300"))
        self.assertEqual(result.report.net_profit_loss, D("700"))
        self.assertTrue(AuditLog.objects.filter(action="generate_report", actor_id="dana").exists())

    def test_balance_sheet_balances(self):
        result = generate_report(self.company, "balance-sheet", "2024-01-01", "2024-01-31")
        report = result.report
        self.assertEqual(report.total_assets, D("6000"))
        self.assertEqual(report.liabilities.total, D("300"))
        self.assertEqual(report.equity.total, D("5700"))
        self.assertEqual(report.difference, D("0"))
        self.assertEqual(result.warnings, [])

    def test_balance_sheet_carries_earlier_activity(self):
        result = generate_report(self.company, "balance-sheet", "2024-02-01", "2024-02-29")
        self.assertEqual(result.report.total_assets, D("6000"))

        pnl = generate_report(self.company, "profit-and-loss", "2024-02-01", "2024-02-29")
        self.assertEqual(pnl.report.net_profit_loss, D("0"))

    def test_reports_see_new_postings(self):
        before = generate_report(self.company, "profit-and-loss", "2024-01-01", "2024-01-31")
        post_documents(self.company, [make_invoice(self.company, [("Sales Revenue", "1", "50")], number="INV-2")])
        after = generate_report(self.company, "profit-and-loss", "2024-01-01", "2024-01-31")
        self.assertEqual(after.report.net_profit_loss - before.report.net_profit_loss, D("50"))

    def test_monthly_columns(self):
        result = generate_report(self.company, "profit-and-loss", "2023-12-01", "2024-01-31", "monthly")
        self.assertEqual([p.label for p in result.report.periods], ["Dec 2023", "Jan 2024"])
        self.assertEqual(result.report.net_profit_loss_by_period, (D("0"), D("700")))

    def test_parameter_errors_are_collected(self):
        with self.assertRaises(ReportParameterError) as ctx:
            generate_report(self.company, "cash-flow", "2024-02-01", "2024-01-01", "weekly")
        self.assertEqual(ctx.exception.messages, [
            "Unknown report type: 'cash-flow'.",
            "Unknown granularity: 'weekly'.",
            "End date cannot be before start date.",
        ])

    def test_range_is_limited(self):
        with self.assertRaises(ReportParameterError) as ctx:
            generate_report(self.company, "profit-and-loss", "2019-01-01", "2024-12-31")
        self.assertIn("no more than 1096 days", ctx.exception.messages[0])

    def test_invalid_date(self):
        with self.assertRaises(ReportParameterError):
            generate_report(self.company, "profit-and-loss", "2024/01/01", "2024-01-31")

    def test_engine_failure_is_wrapped(self):
        with mock.patch.object(reports.engine, "build_report", side_effect=ArithmeticError("overflow")):
            with self.assertRaises(ReportGenerationError):
                generate_report(self.company, "profit-and-loss", "2024-01-01", "2024-01-31")

    def test_store_failure_propagates(self):
        with mock.patch.object(reports.DjangoLedgerStore, "query", side_effect=StoreError("db down")):
            with self.assertRaises(StoreError):
                generate_report(self.company, "balance-sheet", "2024-01-01", "2024-01-31")

    async def test_async_entry_point(self):
        result = await agenerate_report(self.company, "profit-and-loss",
                                        datetime.date(2024, 1, 1), datetime.date(2024, 1, 31))
        self.assertEqual(result.report.net_profit_loss, D("700"))


class TransactionReportTests(TestCase):

    def setUp(self):
        self.company = make_company()
        post_documents(self.company, [
            make_journal(self.company, [("Bank - Chase", "5000", None), ("Owner's Capital", None, "5000")]),
            make_journal(self.company, [("Rent Expense", "800", None), ("Bank - Chase", None, "800")],
                         day=datetime.date(2024, 1, 20)),
            make_invoice(self.company, [("Sales Revenue", "2", "100")]),
        ])

    def test_account_listing_has_running_balance(self):
        lines = account_transaction_report(self.company, "bank - chase", "2024-01-01", "2024-01-31")
        self.assertEqual([line.balance for line in lines], [D("5000"), D("4200")])

    def test_contact_listing(self):
        lines = contact_transaction_report(self.company, "acme corp", "Customer", "2024-01-01", "2024-01-31")
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[-1].balance, D("0"))

    def test_listing_parameters(self):
        with self.assertRaises(ReportParameterError):
            account_transaction_report(self.company, " ", "2024-01-01", "2024-01-31")
        with self.assertRaises(ReportParameterError):
            contact_transaction_report(self.company, "Acme Corp", "Partner", "2024-01-01", "2024-01-31")


class ReportSessionTests(TestCase):

    def setUp(self):
        self.company = make_company()

    def test_success_then_error_keeps_last_result(self):
        session = ReportSession(self.company)
        self.assertEqual(session.state, "idle")

        result = session.run("profit-and-loss", "2024-01-01", "2024-01-31")
        self.assertEqual(session.state, "computed")
        self.assertIs(session.result, result)

        self.assertIsNone(session.run("profit-and-loss", "2024-02-01", "2024-01-01"))
        self.assertEqual(session.state, "error")
        self.assertIsInstance(session.error, ReportParameterError)
        self.assertIs(session.result, result)


class ReportTypeNameTests(TestCase):

    def setUp(self):
        self.company = make_company()
        post_documents(self.company, [make_invoice(self.company, [("Sales Revenue", "1", "400")])])

    def test_canonical_names_and_url_slugs_are_accepted(self):
        pnl = generate_report(self.company, "ProfitAndLoss", "2024-01-01", "2024-01-31", "summary")
        sheet = generate_report(self.company, "BalanceSheet", "2024-01-01", "2024-01-31", "summary")
        slug = generate_report(self.company, "profit-and-loss", "2024-01-01", "2024-01-31", "summary")

        self.assertEqual(pnl.report.type, "ProfitAndLoss")
        self.assertEqual(pnl.report.net_profit_loss, D("400"))
        self.assertEqual(sheet.report.type, "BalanceSheet")
        self.assertEqual(sheet.report.total_assets, D("400"))
        self.assertEqual(slug.report.net_profit_loss, pnl.report.net_profit_loss)
        # audit entries record the canonical name whichever spelling was used
        self.assertEqual(
            list(AuditLog.objects.filter(action="generate_report").order_by("pk")
                 .values_list("object_id", flat=True)),
            ["ProfitAndLoss", "BalanceSheet", "ProfitAndLoss"],
        )
