"""
Profit & Loss and Balance Sheet aggregation.

Pure functions over a ledger snapshot (postings) and a Chart of Accounts
snapshot (accounts). Postings need ``date``, ``gl_account``,
``debit_amount`` and ``credit_amount``; accounts need ``gl_account``,
``ac_type``, ``fs`` and optionally ``sub_type`` / ``account_number``.
Model instances and plain records both work.

Balances follow the debit-positive convention (debit - credit) and are
flipped for display on the credit-natured sections (income, liabilities,
equity).
"""
from collections import OrderedDict, defaultdict
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from ..domain.normalizer import AccountIndex
from .periods import SUMMARY, Period, get_periods

ZERO = Decimal("0.00")

PROFIT_AND_LOSS = "Profit and Loss"
BALANCE_SHEET = "Balance Sheet"

REPORT_PROFIT_AND_LOSS = "ProfitAndLoss"
REPORT_BALANCE_SHEET = "BalanceSheet"
REPORT_TYPES = (REPORT_PROFIT_AND_LOSS, REPORT_BALANCE_SHEET)
# URL slugs naming the same reports
REPORT_TYPE_ALIASES = {
    "profit-and-loss": REPORT_PROFIT_AND_LOSS,
    "balance-sheet": REPORT_BALANCE_SHEET,
}


def report_type_for(value):
    """Canonical report type for a name or URL slug, or None if unknown."""
    if value in REPORT_TYPES:
        return value
    return REPORT_TYPE_ALIASES.get(value)

NOT_IN_COA = "Not found in Chart of Accounts."
DEFAULT_TOLERANCE = Decimal("0.01")
DEFAULT_RETAINED_EARNINGS_LABEL = "Retained Earnings"


# =============================================================================
# Result types
# =============================================================================
@dataclass(frozen=True)
class ClassificationIssue:
    name: str
    reason: str


@dataclass(frozen=True)
class AccountLine:
    gl_account: str
    ac_type: str
    fs: str
    sub_type: str = ""
    account_number: Optional[str] = None
    period_balances: Tuple[Decimal, ...] = ()
    total_balance: Decimal = ZERO
    # True for the computed Retained Earnings line (no CoA row behind it)
    is_synthetic: bool = False

    @property
    def balance(self):
        return self.total_balance


@dataclass(frozen=True)
class ReportSection:
    title: str
    accounts: Tuple[AccountLine, ...] = ()
    period_totals: Tuple[Decimal, ...] = ()
    total: Decimal = ZERO


@dataclass(frozen=True)
class ProfitAndLossReport:
    format: str
    periods: Tuple[Period, ...]
    income: ReportSection
    expenses: ReportSection
    net_profit_loss_by_period: Tuple[Decimal, ...]
    net_profit_loss: Decimal
    type: str = "ProfitAndLoss"

    @property
    def total_income(self):
        return self.income.total

    @property
    def total_expenses(self):
        return self.expenses.total


@dataclass(frozen=True)
class BalanceSheetReport:
    format: str
    periods: Tuple[Period, ...]
    assets: ReportSection
    liabilities: ReportSection
    equity: ReportSection
    total_liabilities_and_equity_by_period: Tuple[Decimal, ...]
    total_liabilities_and_equity: Decimal
    type: str = "BalanceSheet"

    @property
    def total_assets(self):
        return self.assets.total

    @property
    def difference(self):
        return self.assets.total - self.total_liabilities_and_equity


@dataclass(frozen=True)
class ReportResult:
    report: object
    unclassified_gl_accounts: List[ClassificationIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self):
        """JSON-friendly dict (dates as ISO strings, amounts as strings)."""
        return _jsonable(asdict(self))


def _jsonable(value):
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


# =============================================================================
# Helpers
# =============================================================================
def is_income(ac_type):
    return "Income" in (ac_type or "")


def is_expense(ac_type):
    return "Expense" in (ac_type or "")


def is_asset(ac_type):
    return "Asset" in (ac_type or "")


def is_liability(ac_type):
    return "Liability" in (ac_type or "")


def is_equity(ac_type):
    return "Equity" in (ac_type or "")


def _net(posting):
    return (posting.debit_amount or ZERO) - (posting.credit_amount or ZERO)


class _IssueLog:
    """Ordered, de-duplicated classification issues."""

    def __init__(self):
        self._issues = OrderedDict()

    def add(self, name, reason):
        self._issues.setdefault((name, reason), ClassificationIssue(name, reason))

    def as_list(self):
        return list(self._issues.values())


def _balances_by_account(postings, index, periods, cumulative):
    """
    Per-account period balances keyed by canonical CoA name.

    Returns (resolved, unresolved): resolved maps canonical name to a
    list of balances per period; unresolved does the same for raw
    ledger names that are not in the chart. Ledger spellings that
    normalize to the same account are merged.
    """
    resolved = defaultdict(lambda: [ZERO] * len(periods))
    unresolved = defaultdict(lambda: [ZERO] * len(periods))
    first_start = periods[0].start_date
    last_end = periods[-1].end_date

    for posting in postings:
        day = posting.date
        if day > last_end or (not cumulative and day < first_start):
            continue
        canonical = index.canonical(posting.gl_account)
        target = resolved[canonical] if canonical else unresolved[posting.gl_account]
        amount = _net(posting)
        for i, period in enumerate(periods):
            # Balance Sheet columns are cumulative through each period end
            if (cumulative and day <= period.end_date) or (not cumulative and period.contains(day)):
                target[i] += amount
    return resolved, unresolved


def _flip(amount, sign):
    return -amount if sign < 0 else amount


def _line(account, balances, total, sign=1, is_synthetic=False):
    return AccountLine(
        gl_account=account.gl_account,
        ac_type=account.ac_type,
        fs=account.fs,
        sub_type=getattr(account, "sub_type", "") or "",
        account_number=getattr(account, "account_number", None),
        period_balances=tuple(_flip(b, sign) for b in balances),
        total_balance=_flip(total, sign),
        is_synthetic=is_synthetic,
    )


def _section(title, lines, period_count, last_period_total=False):
    shown = [line for line in lines
             if line.is_synthetic or any(b != 0 for b in line.period_balances)]
    shown.sort(key=lambda line: line.gl_account.lower())
    period_totals = tuple(
        sum((line.period_balances[i] for line in lines), ZERO) for i in range(period_count)
    )
    if last_period_total:
        total = period_totals[-1] if period_totals else ZERO
    else:
        total = sum(period_totals, ZERO)
    return ReportSection(title=title, accounts=tuple(shown), period_totals=period_totals, total=total)


def _periods(start, end, granularity):
    periods = get_periods(start, end, granularity)
    if not periods:
        raise ValueError("Report start date must be on or before its end date")
    return periods


def _report_format(granularity):
    return "summary" if granularity == SUMMARY else "columnar"


# =============================================================================
# Profit & Loss
# =============================================================================
def build_profit_and_loss(postings, accounts, start, end, granularity=SUMMARY):
    """Income and expenses within [start, end], optionally split into periods."""
    periods = _periods(start, end, granularity)
    index = AccountIndex(accounts)
    issues = _IssueLog()

    resolved, unresolved = _balances_by_account(postings, index, periods, cumulative=False)
    for name, balances in unresolved.items():
        if any(b != 0 for b in balances):
            issues.add(name, NOT_IN_COA)

    income, expenses = [], []
    for name, balances in resolved.items():
        account = index.resolve(name)
        total = sum(balances, ZERO)
        non_zero = any(b != 0 for b in balances)
        if is_income(account.ac_type) or is_expense(account.ac_type):
            if non_zero and account.fs != PROFIT_AND_LOSS:
                issues.add(account.gl_account,
                           f"Type is {account.ac_type}, but FS mapping is not {PROFIT_AND_LOSS}.")
            if is_income(account.ac_type):
                income.append(_line(account, balances, total, sign=-1))
            else:
                expenses.append(_line(account, balances, total))
        elif non_zero and account.fs == PROFIT_AND_LOSS:
            # Balance-sheet type mapped to P&L: flagged and left out
            issues.add(account.gl_account,
                       f"FS mapping is {PROFIT_AND_LOSS}, but type is '{account.ac_type}'.")

    income_section = _section("Income", income, len(periods))
    expense_section = _section("Expenses", expenses, len(periods))
    net_by_period = tuple(
        i - e for i, e in zip(income_section.period_totals, expense_section.period_totals)
    )
    report = ProfitAndLossReport(
        format=_report_format(granularity),
        periods=tuple(periods),
        income=income_section,
        expenses=expense_section,
        net_profit_loss_by_period=net_by_period,
        net_profit_loss=income_section.total - expense_section.total,
    )
    return ReportResult(report=report, unclassified_gl_accounts=issues.as_list())


# =============================================================================
# Balance Sheet
# =============================================================================
def build_balance_sheet(postings, accounts, start, end, granularity=SUMMARY,
                        tolerance=DEFAULT_TOLERANCE,
                        retained_earnings_label=DEFAULT_RETAINED_EARNINGS_LABEL):
    """
    Cumulative position at ``end`` (or at each period end when columnar).

    Net income/expense to date is carried into a computed Retained
    Earnings equity line. It is added alongside any Retained Earnings
    account in the chart, never merged with it.
    """
    periods = _periods(start, end, granularity)
    index = AccountIndex(accounts)
    issues = _IssueLog()
    count = len(periods)

    resolved, unresolved = _balances_by_account(postings, index, periods, cumulative=True)
    for name, balances in unresolved.items():
        if any(b != 0 for b in balances):
            issues.add(name, NOT_IN_COA)

    assets, liabilities, equity = [], [], []
    retained = [ZERO] * count
    for name, balances in resolved.items():
        account = index.resolve(name)
        last = balances[-1]
        non_zero = any(b != 0 for b in balances)
        ac_type = account.ac_type
        if is_asset(ac_type) or is_liability(ac_type) or is_equity(ac_type):
            if non_zero and account.fs != BALANCE_SHEET:
                issues.add(account.gl_account,
                           f"Type is {ac_type}, but FS mapping is not {BALANCE_SHEET}.")
            if is_asset(ac_type):
                assets.append(_line(account, balances, last))
            elif is_liability(ac_type):
                liabilities.append(_line(account, balances, last, sign=-1))
            else:
                equity.append(_line(account, balances, last, sign=-1))
        elif is_income(ac_type) or is_expense(ac_type):
            if non_zero and account.fs != PROFIT_AND_LOSS:
                issues.add(account.gl_account,
                           f"Type is {ac_type}, but FS mapping is not {PROFIT_AND_LOSS}.")
            for i, b in enumerate(balances):
                retained[i] -= b

    equity.append(AccountLine(
        gl_account=retained_earnings_label,
        ac_type="Equity",
        fs=BALANCE_SHEET,
        sub_type="Retained Earnings",
        period_balances=tuple(retained),
        total_balance=retained[-1],
        is_synthetic=True,
    ))

    asset_section = _section("Assets", assets, count, last_period_total=True)
    liability_section = _section("Liabilities", liabilities, count, last_period_total=True)
    equity_section = _section("Equity", equity, count, last_period_total=True)
    total_le_by_period = tuple(
        li + eq for li, eq in zip(liability_section.period_totals, equity_section.period_totals)
    )

    warnings = []
    for i, period in enumerate(periods):
        difference = asset_section.period_totals[i] - total_le_by_period[i]
        if abs(difference) > tolerance:
            where = "" if count == 1 else f" for {period.label}"
            warnings.append(
                f"Assets and Liabilities + Equity do not balance{where}. Difference: {difference:.2f}"
            )

    report = BalanceSheetReport(
        format=_report_format(granularity),
        periods=tuple(periods),
        assets=asset_section,
        liabilities=liability_section,
        equity=equity_section,
        total_liabilities_and_equity_by_period=total_le_by_period,
        total_liabilities_and_equity=total_le_by_period[-1],
    )
    return ReportResult(report=report, unclassified_gl_accounts=issues.as_list(), warnings=warnings)


def build_report(report_type, postings, accounts, start, end, granularity=SUMMARY, **options):
    kind = report_type_for(report_type)
    if kind == REPORT_PROFIT_AND_LOSS:
        return build_profit_and_loss(postings, accounts, start, end, granularity)
    if kind == REPORT_BALANCE_SHEET:
        return build_balance_sheet(postings, accounts, start, end, granularity, **options)
    raise ValueError(f"Unknown report type: {report_type!r}")
