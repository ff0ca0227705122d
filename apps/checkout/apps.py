from django.apps import AppConfig


class CheckoutConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.checkout'
    verbose_name = 'Checkout - Cart & Checkout Wizard'
