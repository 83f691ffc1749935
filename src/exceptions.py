"""
Shared exception taxonomy for the Schwab client.

Every error raised by this package derives from SchwabError. The four
categories below are subclassed by the orders, oauth and schwab packages:

- SchwabValidationError: bad constructor or setter input
- MalformedInputError: input that cannot be parsed (symbols, token files)
- UnsupportedOperationError: a request the library knowingly cannot serve
- SchwabAPIError: non-2xx upstream response (see src.schwab.exceptions)
"""


class SchwabError(Exception):
    """Base exception for all errors raised by this package."""

    pass


class SchwabValidationError(SchwabError, ValueError):
    """Invalid argument passed to a constructor, setter or request method."""

    pass


class MalformedInputError(SchwabError, ValueError):
    """Input that does not follow the expected format."""

    pass


class UnsupportedOperationError(SchwabError):
    """Operation that is recognized but not supported."""

    pass
