from django.core.exceptions import ValidationError


class LedgerError(Exception):
    """Base for posting failures that are reported per source document."""

    def __init__(self, message, doc_id=None):
        self.doc_id = str(doc_id) if doc_id is not None else None
        super().__init__(message)


class UnresolvedAccountError(LedgerError):
    """Raised when a document references GL accounts missing from the Chart of Accounts."""

    def __init__(self, names, doc_id=None):
        self.names = sorted(set(names))
        missing = ", ".join(f"'{n}'" for n in self.names)
        super().__init__(f"Missing GL account(s): {missing}", doc_id=doc_id)


class ImbalanceError(LedgerError):
    """Raised when a document's postings fail the double-entry balance check."""

    def __init__(self, total_debit, total_credit, doc_id=None):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = total_debit - total_credit
        super().__init__(
            f"Postings not balanced: debits={total_debit}, credits={total_credit}",
            doc_id=doc_id,
        )


class AlreadyPostedDifferentPayload(LedgerError):
    """Raised when a posted document is posted again with a different payload."""
    pass


class ConcurrentModificationError(LedgerError):
    """Raised when the document changed between read and commit."""
    pass


class StoreError(LedgerError):
    """Raised when the ledger store fails to read or write."""
    pass


# ---------- Validation family ----------
# Subclass Django's ValidationError so views and callers
# can handle every input problem the same way
class JournalValidationError(ValidationError):
    """Journal entry set failed the balancer rules (all messages collected)."""
    pass


class DocumentValidationError(ValidationError):
    """Source document shape is invalid (totals, amounts, missing lines)."""
    pass


class ReportParameterError(ValidationError):
    """Report request parameters are invalid."""
    pass


class ReportGenerationError(Exception):
    """Base exception for report generation failures."""
    pass
