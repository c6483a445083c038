from django.db import models

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):         # Add queryset helper
        return self.filter(company=company) # Apply filter


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager):

    def get_queryset(self): # ensure every model gets TenantQuerySet(so .for_company() is always available)
        return TenantQuerySet(self.model, using=self._db)

    def for_company(self, company): # can call for_company() directly on objects
        return self.get_queryset().for_company(company)


# Source documents (bank rows, journal sets, invoices, bills)
# additionally filter by their ledger approval flag
class SourceDocumentQuerySet(TenantQuerySet):
    def approved(self):
        return self.filter(is_ledger_approved=True)

    def pending(self):
        return self.filter(is_ledger_approved=False)


class SourceDocumentManager(TenantManager):
    def get_queryset(self):
        return SourceDocumentQuerySet(self.model, using=self._db)

    def approved(self):
        return self.get_queryset().approved()

    def pending(self):
        return self.get_queryset().pending()
    # Enables query:
    # SalesInvoice.objects.for_company(company).pending()


# Ledger rows grouped by their originating document
class LedgerPostingQuerySet(TenantQuerySet):
    def for_source(self, source_doc_id, source=None):
        qs = self.filter(source_doc_id=str(source_doc_id))
        if source:
            qs = qs.filter(source=source)
        return qs


class LedgerPostingManager(TenantManager):
    def get_queryset(self):
        return LedgerPostingQuerySet(self.model, using=self._db)

    def for_source(self, source_doc_id, source=None):
        return self.get_queryset().for_source(source_doc_id, source=source)
