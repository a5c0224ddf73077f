"""
Errors raised by the contract reads pipeline.

Every error a handler can hit derives from ContractReadsError, so a handler
can stop on any of them without catching programming errors.
"""


class ContractReadsError(RuntimeError):
    pass


class ConfigurationError(ContractReadsError):
    pass


class SAPRequestError(ContractReadsError):
    """Transport-level failure talking to SAP (connection, DNS, TLS, timeout)."""


class ConversionError(ContractReadsError):
    """The response body could not be turned into records."""


class PublishError(ContractReadsError):
    """The outbound channel did not accept a message."""


class EmptyParentResultError(ContractReadsError):
    """A dependent fetch was requested but the parent fetch returned no records."""

    def __init__(self, function: str, key: str):
        self.function = function
        self.key = key
        super().__init__(
            f"{function} returned no records for {key!r}; dependent resources cannot be resolved"
        )
