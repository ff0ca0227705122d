"""
PayGuard Models - Payment Methods
Tables: PaymentMethods
"""
from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from apps.core.models import BaseModel


class PaymentMethodQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)


class PaymentMethod(BaseModel):
    """
    Static catalog entry for a way of paying, with its processing fee rule.
    A negative percentage fee is a discount (e.g. bank transfer).
    """
    TYPE_CHOICES = [
        ('credit-card', 'Credit Card'),
        ('cash-on-delivery', 'Cash on Delivery'),
        ('bank-transfer', 'Bank Transfer'),
        ('digital-wallet', 'Digital Wallet'),
    ]

    SECURITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    CARD_CHOICES = ['visa', 'mastercard', 'american-express', 'discover', 'troy']

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    icon = models.CharField(max_length=20, blank=True, default='')
    color = models.CharField(max_length=20, default='#6366f1')
    is_active = models.BooleanField(default=True, db_index=True)
    is_popular = models.BooleanField(default=False)
    processing_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Flat fee per order"
    )
    processing_fee_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(Decimal('-100')), MaxValueValidator(Decimal('100'))],
        help_text="Percentage of the order amount; negative values are discounts"
    )
    min_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))]
    )
    max_amount = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    supported_cards = models.JSONField(default=list, blank=True)
    features = models.JSONField(default=list, blank=True)
    restrictions = models.JSONField(default=list, blank=True)
    processing_time = models.CharField(max_length=50, default='Instant')
    security_level = models.CharField(max_length=10, choices=SECURITY_CHOICES, default='high')

    objects = PaymentMethodQuerySet.as_manager()

    class Meta:
        db_table = 'payguard_payment_methods'
        verbose_name = 'Payment Method'
        verbose_name_plural = 'Payment Methods'
        ordering = ['-is_popular', 'name']
        indexes = [
            models.Index(fields=['type', 'is_active']),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"

