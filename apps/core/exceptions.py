"""
Custom exceptions for the Storefront backend

Every domain error carries the HTTP status it maps to; the API exception
handler turns them into JSON error bodies.
"""


class StorefrontException(Exception):
    """Base exception for all Storefront errors"""
    status_code = 500

    def __init__(self, message: str, code: str = "STOREFRONT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationException(StorefrontException):
    """Exception raised for missing or malformed input"""
    status_code = 400

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR"
        )


class AuthenticationRequired(StorefrontException):
    """Exception raised when an operation needs a signed-in user"""
    status_code = 401

    def __init__(self, message: str = "User email required", login_url: str = None):
        self.login_url = login_url
        super().__init__(
            message=message,
            code="AUTHENTICATION_REQUIRED"
        )


class NotFoundError(StorefrontException):
    """Exception raised when a user, address, product or review does not exist"""
    status_code = 404

    def __init__(self, resource: str, identifier: str = None):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND"
        )


class DuplicateReviewError(StorefrontException):
    """Exception raised when a user reviews the same product twice"""
    status_code = 400

    def __init__(self, message: str = "You have already reviewed this product"):
        super().__init__(
            message=message,
            code="DUPLICATE_REVIEW"
        )


class PricingException(StorefrontException):
    """Exception raised by shipping or payment rule evaluation"""
    status_code = 400

    def __init__(self, message: str, code: str = "PRICING_ERROR"):
        super().__init__(message=message, code=code)


class InactiveMethodError(PricingException):
    """Exception raised when pricing a method that is switched off"""
    def __init__(self, method_name: str, kind: str = "Shipping"):
        self.method_name = method_name
        super().__init__(
            message=f"{kind} method is not active",
            code="INACTIVE_METHOD"
        )


class OrderValueOutOfRangeError(PricingException):
    """Exception raised when the order value falls outside a method's bounds"""
    def __init__(self, message: str, bound=None):
        self.bound = bound
        super().__init__(
            message=message,
            code="ORDER_VALUE_OUT_OF_RANGE"
        )


class CheckoutTransitionError(StorefrontException):
    """Exception raised for a checkout wizard move that is not allowed"""
    status_code = 400

    def __init__(self, message: str, step: str = "unknown"):
        self.step = step
        super().__init__(
            message=message,
            code="CHECKOUT_TRANSITION_ERROR"
        )
