"""Custom exceptions for the Tokenomy SDK.

Every public operation either returns a fully valid domain object or raises
exactly one TokenomyError subclass. All of them live here to avoid circular
imports between the api and trade modules.
"""


class TokenomyError(Exception):
    """Base exception for all SDK errors."""


class ValidationError(TokenomyError, ValueError):
    """Raised locally, before any network call, when a request is invalid."""


class InvalidPairError(ValidationError):
    """Raised when the pair name is empty."""


class InvalidTradeTypeError(ValidationError):
    """Raised when a trade type is not ask or bid, or mismatches the endpoint."""


class InvalidTradeMethodError(ValidationError):
    """Raised when a trade method is not limit or market."""


class InvalidAmountError(ValidationError):
    """Raised when an amount is missing or not positive."""


class InvalidPriceError(ValidationError):
    """Raised when a price is invalid for the trade method."""


class InvalidTradeIDError(ValidationError):
    """Raised when a trade ID is missing or not positive."""


class InvalidRequestIDError(ValidationError):
    """Raised when a withdraw request ID is empty."""


class InvalidAssetError(ValidationError):
    """Raised when an asset name is empty."""


class InvalidAddressError(ValidationError):
    """Raised when a withdraw wallet address is empty."""


class UnsupportedParameterError(ValidationError):
    """Raised when a parameter is not accepted by the target endpoint."""


class InvalidAmountFormatError(ValidationError):
    """Raised when a string cannot be parsed as an exact amount."""


class AuthenticationRequiredError(TokenomyError):
    """Raised when a private call is attempted without token and secret."""


class AuthenticationError(TokenomyError):
    """Raised when verifying the token and secret against the server fails."""


class TransportError(TokenomyError):
    """Raised when the transport cannot complete a request."""


class ProtocolError(TokenomyError):
    """Raised when a response body cannot be decoded into the expected shape."""


class ApiError(TokenomyError):
    """Error reported by the exchange with HTTP status >= 400.

    Args:
        status_code: HTTP status code of the response.
        code: The exchange's own error code from the envelope.
        message: The exchange's error message.
    """

    def __init__(self, status_code: int, code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message
