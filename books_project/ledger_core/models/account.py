from django.db import models
from ..managers import TenantManager
from .company import Company

# Choice Lists
AC_TYPES = [
    # Used in Account model to classify general ledger accounts
    ("Direct Income", "Direct Income"),
    ("Indirect Income", "Indirect Income"),
    ("Direct Expense", "Direct Expense"),
    ("Indirect Expense", "Indirect Expense"),
    ("Non Current Asset", "Non Current Asset"),
    ("Current Asset", "Current Asset"),
    ("Current Liability", "Current Liability"),
    ("Non Current Liability", "Non Current Liability"),
    ("Equity", "Equity"),
]

PROFIT_AND_LOSS = "Profit and Loss"
BALANCE_SHEET = "Balance Sheet"

# Which financial statement an account's balance flows into
FS_CHOICES = [
    (PROFIT_AND_LOSS, PROFIT_AND_LOSS),
    (BALANCE_SHEET, BALANCE_SHEET),
]


def default_fs_for_type(ac_type):
    """Income/Expense → Profit and Loss; Asset/Liability/Equity → Balance Sheet."""
    if not ac_type:
        return None
    if "Income" in ac_type or "Expense" in ac_type:
        return PROFIT_AND_LOSS
    if "Asset" in ac_type or "Liability" in ac_type or "Equity" in ac_type:
        return BALANCE_SHEET
    return None


class Account(models.Model):
    """
    Ledger account entry in Chart of Accounts.
    - gl_account (display name) is unique per company; postings refer to it by name
    - ac_type: determines the report section (Income, Expense, Asset, ...)
    - fs: which statement the account belongs to; a mismatch with ac_type
      is kept as entered and flagged when reports are generated
    """

    company = models.ForeignKey(  # Each account belongs to one company
        Company,  # All reports must filter by company_id to prevent data leaks
        on_delete=models.CASCADE,
        related_name="accounts",
    )
    gl_account = models.CharField(
        max_length=200
    )  # Human-readable name → "Cash on Hand", "Rent Expense".
    sub_type = models.CharField(max_length=200, blank=True, default="")

    # Classify account into one of the 9 accounting types
    ac_type = models.CharField(
        max_length=30,
        choices=AC_TYPES,
    )
    fs = models.CharField(
        max_length=20,
        choices=FS_CHOICES,
    )
    account_number = models.CharField(max_length=32, null=True, blank=True)
    created_at = models.DateTimeField(
        auto_now_add=True
    )  # Track when the account was created.

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [  # Optimize queries
            # For reports grouped by ac_type
            models.Index(fields=["company", "ac_type"]),
            models.Index(fields=["company", "gl_account"]),
        ]

        """ Each company defines its own chart of accounts.
               Names repeat across companies but must be unique within one. """
        constraints = [
            models.UniqueConstraint(
                fields=["company", "gl_account"], name="uq_company_gl_account"
            )
        ]

    def __str__(self):
        # Make accounts readable in debugging
        if self.account_number:
            return f"{self.account_number} – {self.gl_account}"
        return self.gl_account

    @property
    def default_fs(self):
        return default_fs_for_type(self.ac_type)

    @property
    def has_fs_mismatch(self):
        """True when the FS mapping disagrees with what the type implies."""
        expected = self.default_fs
        return expected is not None and self.fs != expected
