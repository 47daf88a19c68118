"""
Error taxonomy of the endpoint.

Handlers raise these where the problem is detected; the dispatcher turns them
into SOAP faults. ``fault_code`` is the SOAP 1.1 faultcode (without prefix),
``error_code`` the numeric code carried in the fault detail.
"""

from typing import Dict, Optional


class EndpointError(Exception):
    fault_code = "Server"
    error_code = "500"

    def __init__(self, message: str, detail: Optional[Dict[str, object]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class MalformedRequest(EndpointError):
    """Client-supplied data failed structural validation."""

    fault_code = "Client.MalformedRequest"
    error_code = "400"


class UnsupportedOperation(MalformedRequest):
    """No route matches the payload root or the SOAPAction."""

    fault_code = "Client.UnsupportedOperation"


class NotFound(EndpointError):
    """The request was valid but no record matches it."""

    fault_code = "Client.NotFound"
    error_code = "404"


class SecurityFailure(EndpointError):
    """An interceptor refused the message before it reached the endpoint."""

    fault_code = "Client.FailedAuthentication"
    error_code = "401"


class InternalFailure(EndpointError):
    fault_code = "Server"
    error_code = "500"


class TransportError(Exception):
    """The remote endpoint could not be reached or answered with garbage."""


class RemoteFault(Exception):
    """A SOAP fault returned by a remote endpoint."""

    def __init__(
        self,
        fault_code: str,
        message: str,
        error_code: Optional[str] = None,
        detail: Optional[Dict[str, str]] = None,
    ):
        super().__init__(f"{fault_code}: {message}")
        self.fault_code = fault_code
        self.message = message
        self.error_code = error_code
        self.detail = detail or {}

    @property
    def is_not_found(self) -> bool:
        return self.fault_code.endswith(NotFound.fault_code)

    @property
    def is_client_error(self) -> bool:
        return self.fault_code.split(":")[-1].startswith("Client")
