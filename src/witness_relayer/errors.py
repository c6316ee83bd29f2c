"""
Error types for the witness relayer.

Infrastructure errors (connection, RPC) are retried at the unit where they
occurred. Semantic errors are raised for a single event, which is dropped.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Coarse category used when logging relay failures."""
    CONNECTION = "connection"
    RPC = "rpc"
    PARSE = "parse"
    VALIDATION = "validation"
    SIGNING = "signing"
    SUBMISSION = "submission"


class RelayerError(Exception):
    def __init__(self, message: str, code: ErrorCode | None = None):
        super().__init__(message)
        self.code = code or ErrorCode.RPC


class ChainConnectionError(RelayerError):
    """Raised when a chain session cannot be opened or was lost."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONNECTION)


class RPCError(RelayerError):
    """Raised when a nonce or block query cannot complete."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.RPC)


class ParseError(RelayerError):
    """Raised when an event attribute has a malformed value."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PARSE)


class IncompleteMessageError(ParseError):
    """Raised when required event attributes are missing."""


class InvalidNetworkError(RelayerError):
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.VALIDATION)


class InvalidRecipientError(RelayerError):
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.VALIDATION)


class SpoofedNativeAssetError(RelayerError):
    """Raised when the native asset symbol is paired with a token contract."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.VALIDATION)


class SigningError(RelayerError):
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SIGNING)


class SubmissionError(RelayerError):
    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SUBMISSION)


class ScanStalledError(RPCError):
    """Raised when one block height keeps failing to fetch."""

    def __init__(self, height: int, attempts: int):
        super().__init__(
            f"Block {height} could not be fetched after {attempts} attempts"
        )
        self.height = height
        self.attempts = attempts
