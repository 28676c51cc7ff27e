# storefront/domain/errors.py


class StorefrontError(Exception):
    """Bazowy wyjatek domeny sklepu."""


class ValidationError(StorefrontError):
    """Bledne lub brakujace dane wejsciowe (np. nieistniejacy produkt, quantity < 1)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    @property
    def errors(self) -> dict:
        return {self.field: self.message}


class StockError(ValidationError):
    """Za malo towaru na magazynie."""


class AuthorizationError(StorefrontError):
    """Operacja na cudzym koszyku."""


class NotFoundError(StorefrontError):
    pass


class CheckoutError(StorefrontError):
    pass


class EmptyCartError(CheckoutError, ValidationError):
    def __init__(self, message: str = "Your cart is empty. Please add items before checkout."):
        ValidationError.__init__(self, "cart", message)


class InsufficientStockError(CheckoutError, StockError):
    def __init__(self, messages: list[str]):
        StockError.__init__(self, "stock", " ".join(messages))
        self.messages = messages


class CheckoutInProgressError(CheckoutError):
    pass


class DeliveryError(StorefrontError):
    """Blad transportu poczty (mail API)."""
