import logging

from celery import shared_task
from django.core.exceptions import ObjectDoesNotExist, ValidationError

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def post_documents_task(company_id, refs, actor_id=None):
    """
    Post a batch of documents in the background.

    ``refs`` is a list of ``{"kind": "sales-invoice", "id": 12}`` dicts.
    Each document posts in its own transaction; failures are reported
    back, not raised.
    """
    # import models lazily to avoid circular imports at module import time
    from .models import Company
    from .services.posting import get_document, post_documents

    company = Company.objects.get(pk=company_id)
    documents = []
    missing = []
    for ref in refs:
        try:
            documents.append(get_document(company, ref["kind"], ref["id"]))
        except (KeyError, ObjectDoesNotExist, ValidationError) as exc:
            # unknown kind or id: report it with the rest
            logger.warning("Cannot load %s %s for company %s: %s",
                           ref.get("kind"), ref.get("id"), company_id, exc)
            missing.append({"kind": ref.get("kind"), "id": ref.get("id"), "reason": str(exc)})

    result = post_documents(company, documents, actor_id=actor_id)
    logger.info("Batch posting for company %s: %d posted, %d skipped, %d not found",
                company_id, len(result.posted), len(result.skipped), len(missing))
    return {
        "posted": [r.document.source_doc_id for r in result.posted],
        "skipped": [{"doc_id": s.doc_id, "reason": s.reason} for s in result.skipped],
        "missing": missing,
    }
