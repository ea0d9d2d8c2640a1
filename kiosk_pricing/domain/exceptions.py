"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidPricingSettingsError(DomainException):
    """Pricing settings rows are malformed or violate an invariant"""

    pass


class InvalidTierError(DomainException):
    """Discount tier definition is malformed"""

    pass


class InvalidReminderError(DomainException):
    """Recharge reminder cycle definition is inconsistent"""

    pass


class NotificationDeliveryError(DomainException):
    """Notification webhook failed after all retries"""

    pass
