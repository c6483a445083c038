from django.core.exceptions import ValidationError
from django.http import Http404, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .exceptions import (ConcurrentModificationError, LedgerError,
                         ReportGenerationError, StoreError)
from .models import Company
from .services.posting import (DOCUMENT_MODELS, get_document, post_document,
                               unpost_document)
from .services.reports import generate_report

ACTOR_HEADER = "HTTP_X_ACTOR_ID"  # "X-Actor-Id" as seen in request.META


def _actor(request):
    return request.META.get(ACTOR_HEADER) or None


def _error(exc):
    # Map domain failures to HTTP: bad input 400, stale write 409, store down 503
    if isinstance(exc, ValidationError):
        return JsonResponse({"ok": False, "errors": exc.messages}, status=400)
    if isinstance(exc, StoreError):
        return JsonResponse({"ok": False, "errors": [str(exc)]}, status=503)
    if isinstance(exc, ConcurrentModificationError):
        return JsonResponse({"ok": False, "errors": [str(exc)], "doc_id": exc.doc_id}, status=409)
    if isinstance(exc, LedgerError):
        return JsonResponse({"ok": False, "errors": [str(exc)], "doc_id": exc.doc_id}, status=400)
    return JsonResponse({"ok": False, "errors": [str(exc)]}, status=500)


def _company(value):
    # Accept the company's id or its slug
    if value and str(value).isdigit():
        return get_object_or_404(Company, pk=int(value))
    return get_object_or_404(Company, slug=value or "")


@require_GET
def report_view(request, report_type):
    company = _company(request.GET.get("company"))
    try:
        result = generate_report(
            company,
            report_type,
            request.GET.get("start"),
            request.GET.get("end"),
            request.GET.get("granularity") or "summary",
            actor_id=_actor(request),
        )
    except (ValidationError, StoreError, ReportGenerationError) as exc:
        return _error(exc)
    return JsonResponse({"ok": True, **result.to_dict()})


def _document_for(company_value, kind, pk):
    if kind not in DOCUMENT_MODELS:
        raise Http404(f"Unknown document kind: {kind}")
    company = _company(company_value)
    try:
        return company, get_document(company, kind, pk)
    except DOCUMENT_MODELS[kind].DoesNotExist:
        raise Http404(f"No {kind} {pk} in this company") from None


@csrf_exempt
@require_POST
def post_document_view(request, kind, pk):
    company, document = _document_for(request.GET.get("company"), kind, pk)
    try:
        result = post_document(company, document, actor_id=_actor(request))
    except (ValidationError, LedgerError) as exc:
        return _error(exc)
    return JsonResponse({
        "ok": True,
        "doc_id": document.source_doc_id,
        "already_posted": result.already_posted,
        "postings": len(result.postings),
        "contacts_created": result.contacts_created,
    })


@csrf_exempt
@require_POST
def unpost_document_view(request, kind, pk):
    company, document = _document_for(request.GET.get("company"), kind, pk)
    try:
        deleted = unpost_document(company, document, actor_id=_actor(request))
    except (ValidationError, LedgerError) as exc:
        return _error(exc)
    return JsonResponse({"ok": True, "doc_id": document.source_doc_id, "postings_deleted": deleted})
