# storefront/domain/errors.py
"""Wyjatki domenowe. Routery tlumacza je na kody HTTP."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""


class EmailAlreadyRegistered(StorefrontError, ValueError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"The email {email} has already been taken.")


class InvalidSignature(StorefrontError, PermissionError):
    def __init__(self):
        super().__init__("Invalid or expired verification link.")


class PendingVerificationNotFound(StorefrontError, LookupError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"No pending verification found for {email}.")


class VerificationExpired(StorefrontError):
    def __init__(self, email: str):
        self.email = email
        super().__init__("Verification link has expired. Please request a new one.")


class InvalidStatusTransition(StorefrontError, ValueError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}.")


class OrderNotFound(StorefrontError, LookupError):
    pass


class InvalidAddress(StorefrontError, ValueError):
    pass
