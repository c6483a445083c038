from django.core.exceptions import ValidationError
from django.db.models.signals import post_delete, post_save, pre_delete
from django.dispatch import receiver

from .models import (BankTransaction, JournalEntry, PurchaseBill,
                     PurchaseBillLine, SalesInvoice, SalesInvoiceLine)

""" Block deleting a document whose postings are in the ledger. """


# pre_delete signal auto-fires just before Django deletes a model instance
@receiver(pre_delete, sender=BankTransaction)
@receiver(pre_delete, sender=JournalEntry)
@receiver(pre_delete, sender=SalesInvoice)
@receiver(pre_delete, sender=PurchaseBill)
def prevent_delete_posted_document(sender, instance, **kwargs):
    if instance.is_ledger_approved:
        raise ValidationError(
            f"Cannot delete a posted {sender.__name__}; unpost it first.")


@receiver(pre_delete, sender=SalesInvoiceLine)
@receiver(pre_delete, sender=PurchaseBillLine)
def prevent_delete_posted_line(sender, instance, **kwargs):
    parent_model = sender._meta.get_field(sender.parent_field).related_model
    parent_id = getattr(instance, f"{sender.parent_field}_id")
    if parent_model.objects.filter(pk=parent_id, is_ledger_approved=True).exists():
        raise ValidationError(
            f"Cannot delete {sender.__name__}: parent document is posted.")


"""
    Recalculate invoice / bill totals when a line is added/updated/removed.
    Use update via model methods to keep validation/consistency.
"""


@receiver((post_save, post_delete), sender=SalesInvoiceLine)
@receiver((post_save, post_delete), sender=PurchaseBillLine)
def document_line_changed(sender, instance, **kwargs):
    parent_model = sender._meta.get_field(sender.parent_field).related_model
    try:
        doc = parent_model.objects.get(pk=getattr(instance, f"{sender.parent_field}_id"))
    except parent_model.DoesNotExist:
        return
    # recompute and save only the changed fields to reduce churn
    doc.recalc_totals()
    doc.save(update_fields=["total_amount"])
