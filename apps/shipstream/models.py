"""
ShipStream Models - Shipping Methods
Tables: ShippingMethods

Regional pricing and weight rules are embedded lists on the method:
    regional_pricing: [{"region", "cities", "price_multiplier", "additional_days"}]
    weight_rules:     [{"max_weight", "additional_price"}]
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import BaseModel
from apps.core.utils import cutoff_time_validator


class ShippingMethodQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)


class ShippingMethod(BaseModel):
    """
    Static catalog entry describing how an order can be delivered and
    what it costs.
    """
    TYPE_CHOICES = [
        ('standard', 'Standard'),
        ('fast', 'Fast'),
        ('express', 'Express'),
        ('same-day', 'Same Day'),
    ]

    DAY_CHOICES = [
        'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday',
    ]

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    base_price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))]
    )
    free_shipping_threshold = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))]
    )
    estimated_days_min = models.PositiveIntegerField()
    estimated_days_max = models.PositiveIntegerField()
    regional_pricing = models.JSONField(default=list, blank=True)
    weight_rules = models.JSONField(default=list, blank=True)
    icon = models.CharField(max_length=20, blank=True, default='')
    color = models.CharField(max_length=20, default='#6366f1')
    is_active = models.BooleanField(default=True, db_index=True)
    is_popular = models.BooleanField(default=False)
    features = models.JSONField(default=list, blank=True)
    restrictions = models.JSONField(default=list, blank=True)
    available_days = models.JSONField(default=list, blank=True)
    cutoff_time = models.CharField(
        max_length=5, default='15:00', help_text="HH:MM", validators=[cutoff_time_validator]
    )
    min_order_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))]
    )
    max_order_value = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)

    objects = ShippingMethodQuerySet.as_manager()

    class Meta:
        db_table = 'shipstream_shipping_methods'
        verbose_name = 'Shipping Method'
        verbose_name_plural = 'Shipping Methods'
        ordering = ['base_price', 'name']
        indexes = [
            models.Index(fields=['type', 'is_active']),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"

    def save(self, *args, **kwargs):
        # Checked on every save, not only in full_clean()
        cutoff_time_validator(self.cutoff_time)
        super().save(*args, **kwargs)

