from django.db import models
from django.utils.text import slugify


# ---------- Tenant / Company ----------
class Company(models.Model):

    """Tenant / Organization (the scope every ledger operation runs in)"""
    # Store company’s full display name
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two companies can have the same slug
    )

    # Designated control accounts used when posting invoices and bills.
    # Stored as GL account names and resolved against the
    # Chart of Accounts at posting time, like every other GL reference.
    default_ar_gl_account = models.CharField(
        max_length=200, blank=True, default="",
        help_text="Accounts Receivable GL account debited by sales invoices",
    )
    default_ap_gl_account = models.CharField(
        max_length=200, blank=True, default="",
        help_text="Accounts Payable GL account credited by purchase bills",
    )

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)

    # Meta options
    class Meta:
        verbose_name_plural = "companies"

    # String Representation
    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # Derive slug from name when not supplied ("Test Co" → "test-co")
        if not self.slug:
            base = slugify(self.name) or "company"
            slug = base
            i = 1
            # If plain slug is taken, append -1, -2, etc.
            while Company.objects.filter(slug=slug).exists():
                slug = f"{base}-{i}"
                i += 1
            self.slug = slug
        return super().save(*args, **kwargs)
