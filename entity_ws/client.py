"""
Client for the getEntity operation over HTTP(S).

Uses http.client directly; pass an SSL context built with
``config.build_client_ssl_context()`` to talk to an mTLS endpoint.
"""

import http.client
import logging
import ssl
from typing import Optional
from urllib.parse import urlsplit

from . import mapper
from .errors import MalformedRequest, TransportError
from .models import EntityRecord, LookupRequest
from .security import add_username_token
from .soap import CONTENT_TYPE, build_envelope, parse_soap_response, serialize

logger = logging.getLogger(__name__)


def build_request_envelope(entity_id: int, username: Optional[str] = None, password: str = "") -> str:
    """Request envelope, with a UsernameToken header when a username is given."""
    envelope = build_envelope(mapper.to_wire_request(LookupRequest(id=entity_id)))
    if username:
        add_username_token(envelope, username, password)
    return serialize(envelope)


class EntityClient:
    def __init__(
        self,
        url: str,
        ssl_context: Optional[ssl.SSLContext] = None,
        timeout: float = 10.0,
        username: Optional[str] = None,
        password: str = "",
    ):
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise ValueError(f"Unsupported endpoint URL: {url}")
        self.url = url
        self.scheme = parts.scheme
        self.host = parts.hostname
        self.port = parts.port
        self.path = parts.path or "/"
        self.ssl_context = ssl_context
        self.timeout = timeout
        self.username = username
        self.password = password

    def _connection(self) -> http.client.HTTPConnection:
        if self.scheme == "https":
            context = self.ssl_context or ssl.create_default_context()
            return http.client.HTTPSConnection(self.host, self.port, timeout=self.timeout, context=context)
        return http.client.HTTPConnection(self.host, self.port, timeout=self.timeout)

    def send_soap_request(self, soap_xml: str, soap_action: str = mapper.ACTION) -> str:
        headers = {
            "Content-Type": CONTENT_TYPE,
            "SOAPAction": f'"{soap_action}"',
        }
        conn = self._connection()
        try:
            conn.request("POST", self.path, body=soap_xml.encode("utf-8"), headers=headers)
            response = conn.getresponse()
            resp_data = response.read().decode("utf-8")
        except (OSError, http.client.HTTPException, UnicodeDecodeError) as e:
            raise TransportError(f"Error communicating with SOAP WS at {self.url}: {e}") from e
        finally:
            conn.close()
        logger.debug("SOAP response status=%s: %s", response.status, resp_data[:200])
        return resp_data

    def get_entity(self, entity_id: int) -> EntityRecord:
        """Fetch one entity; raises RemoteFault when the endpoint answers with a fault."""
        soap_rsp = self.send_soap_request(build_request_envelope(entity_id, self.username, self.password))
        payload = parse_soap_response(soap_rsp)
        try:
            return mapper.from_wire_response(payload)
        except MalformedRequest as e:
            raise TransportError(f"Unexpected response payload: {e.message}") from e
