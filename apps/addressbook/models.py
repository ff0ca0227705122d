"""
AddressBook Models - Customer postal addresses
Tables: Addresses
Dependency: Links to ShopCore via User
"""
from django.db import models, transaction
from django.db.models import Q

from apps.core.models import BaseModel
from apps.core.utils import phone_validator, postal_code_validator


class AddressQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)

    def for_type(self, address_type):
        """Addresses usable as the given type ('both' addresses always qualify)."""
        if not address_type or address_type == 'all':
            return self
        return self.filter(Q(type=address_type) | Q(type=Address.TYPE_BOTH))

    def overlapping(self, address_type):
        """
        Addresses sharing a default scope with the given type: the same type,
        any 'both' address, and every address when the type is 'both'.
        """
        if address_type == Address.TYPE_BOTH:
            return self
        return self.filter(Q(type=address_type) | Q(type=Address.TYPE_BOTH))


class Address(BaseModel):
    """
    Postal address owned by a user. At most one active default per
    overlapping type scope.
    """
    TYPE_SHIPPING = 'shipping'
    TYPE_BILLING = 'billing'
    TYPE_BOTH = 'both'

    TYPE_CHOICES = [
        (TYPE_SHIPPING, 'Shipping'),
        (TYPE_BILLING, 'Billing'),
        (TYPE_BOTH, 'Shipping & Billing'),
    ]

    user = models.ForeignKey('shopcore.User', on_delete=models.CASCADE, related_name='addresses')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_BOTH)
    title = models.CharField(max_length=50)
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    company = models.CharField(max_length=100, blank=True, default='')
    phone = models.CharField(max_length=15, validators=[phone_validator])
    address_line1 = models.CharField(max_length=200)
    address_line2 = models.CharField(max_length=200, blank=True, default='')
    city = models.CharField(max_length=50)
    state = models.CharField(max_length=50)
    postal_code = models.CharField(max_length=5, validators=[postal_code_validator])
    country = models.CharField(max_length=50, default='Turkey')
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    objects = AddressQuerySet.as_manager()

    class Meta:
        db_table = 'addressbook_addresses'
        verbose_name = 'Address'
        verbose_name_plural = 'Addresses'
        ordering = ['-is_default', '-created_at']
        indexes = [
            models.Index(fields=['user', 'is_default']),
            models.Index(fields=['user', 'type']),
            models.Index(fields=['user', 'is_active']),
        ]

    def __str__(self):
        return f"{self.title} - {self.full_name} ({self.city})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def formatted_address(self):
        parts = [
            self.address_line1,
            self.address_line2,
            self.city,
            self.state,
            self.postal_code,
            self.country,
        ]
        return ', '.join(part for part in parts if part)

    def save(self, *args, **kwargs):
        # Only one default per overlapping type scope, cleared in the same transaction
        with transaction.atomic():
            if self.is_default and self.is_active:
                (
                    Address.objects.active()
                    .filter(user_id=self.user_id, is_default=True)
                    .overlapping(self.type)
                    .exclude(pk=self.pk)
                    .update(is_default=False)
                )
            super().save(*args, **kwargs)
