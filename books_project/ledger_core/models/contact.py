from django.db import models

from ..domain.documents import CUSTOMER, VENDOR
from ..managers import TenantManager
from .company import Company

CONTACT_TYPES = [
    (CUSTOMER, "Customer"),  # receives invoices (AR side)
    (VENDOR, "Vendor"),      # sends bills (AP side)
]


# ---------- Contact ----------
class Contact(models.Model):
    # Multi-tenant: every contact belongs to a single company.
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="contacts")

    # The contact’s legal or trade name, as it appears on documents
    name = models.CharField(max_length=200)
    contact_type = models.CharField(max_length=10, choices=CONTACT_TYPES)

    # Optional details, usually filled in later from the contacts page
    email = models.EmailField(null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    contact_number = models.CharField(max_length=50, null=True, blank=True)

    # Actor who created it (None for contacts created while posting in the background)
    created_by = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"]),
        ]

        # Enforce uniqueness per tenant
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name", "contact_type"], name="uq_company_contact_name_type"
            ),
        ]

    # Display contact name in admin/UI
    def __str__(self):
        return f"{self.name} ({self.contact_type})"

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
