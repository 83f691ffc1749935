"""Exceptions for order building and option symbols."""

from src.exceptions import (
    MalformedInputError,
    SchwabValidationError,
    UnsupportedOperationError,
)


class InvalidQuantityError(SchwabValidationError):
    """Quantity is not a positive integer."""

    pass


class InvalidPriceError(SchwabValidationError):
    """Price is negative or not numeric."""

    pass


class InvalidStrikePriceError(SchwabValidationError):
    """Strike is non-positive, non-numeric or does not fit the symbol format."""

    pass


class InvalidContractTypeError(SchwabValidationError):
    """Contract type is not one of C, CALL, P or PUT."""

    pass


class InvalidUnderlyingError(SchwabValidationError):
    """Underlying symbol is empty or longer than six characters."""

    pass


class IncompleteOrderError(SchwabValidationError):
    """
    Order fields are inconsistent with its strategy type.

    OCO and TRIGGER orders need child strategies, SINGLE orders need
    at least one leg, and child strategies are only allowed on OCO
    and TRIGGER orders.
    """

    pass


class MalformedOptionSymbolError(MalformedInputError):
    """String is not a valid 21-character option symbol."""

    pass


class MissingOrderStrategyTypeError(MalformedInputError):
    """Historical order has no orderStrategyType."""

    pass


class UnknownLegTypeError(MalformedInputError):
    """Historical order leg has an unrecognized orderLegType."""

    pass


class UnsupportedChildStrategyError(UnsupportedOperationError):
    """Historical orders with child strategies cannot be reconstructed."""

    pass
