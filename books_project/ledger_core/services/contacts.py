import logging

from django.db import DatabaseError, transaction
from django.core.exceptions import ValidationError

from ..models import Contact

logger = logging.getLogger(__name__)


def find_by_name(company, name, contact_type=None):
    """Case-insensitive lookup on the trimmed name."""
    qs = Contact.objects.for_company(company).filter(name__iexact=(name or "").strip())
    if contact_type:
        qs = qs.filter(contact_type=contact_type)
    return qs.first()


def create_contact(company, name, contact_type, *, actor_id=None, **details):
    return Contact.objects.create(
        company=company,
        name=name,
        contact_type=contact_type,
        created_by=actor_id,
        **details,
    )


def ensure_contact(company, name, contact_type, *, actor_id=None):
    """
    Create the contact if it does not exist yet.
    Returns True when a contact was created. Failures are logged, not
    raised: a missing contact never undoes a ledger write.
    """
    if not (name or "").strip():
        return False
    try:
        # own savepoint so a failure leaves the caller's transaction usable
        with transaction.atomic():
            if find_by_name(company, name, contact_type) is not None:
                return False
            create_contact(company, name.strip(), contact_type, actor_id=actor_id)
    except (DatabaseError, ValidationError) as exc:
        logger.warning("Could not create %s contact %r: %s", contact_type, name, exc)
        return False
    return True
