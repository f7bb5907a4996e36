"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Priced entity (registration, category, plan) does not exist"""

    pass


class InvalidDiscountCodeError(DomainException):
    """Discount code does not resolve to an active, currently valid code"""

    pass


class InvalidArgumentError(DomainException, ValueError):
    """Caller passed a negative amount, a zero count or a non-integer value"""

    pass


class DuplicateUsageError(DomainException):
    """Usage for this user, registration and code was already recorded"""

    pass


class SeasonalCapExceededError(DomainException):
    """Recording the usage would overrun the category's season cap"""

    pass


class CodeUsageLimitExceededError(DomainException):
    """User has already used the code as many times as its usage limit allows"""

    pass


class NothingToPayOffError(DomainException):
    """Payment plan has no planned installments left"""

    pass


class SchedulerWebhookError(DomainException):
    """Scheduling collaborator could not be notified"""

    pass
