"""
Message-level security hooks.

Interceptors see the whole envelope: request hooks run before the payload is
routed, response hooks run on the envelope about to be sent. Only the
WS-Security UsernameToken (PasswordText) profile and the response Timestamp
are handled here; signatures and encryption are left to a dedicated toolkit
plugged in as another interceptor.
"""

import hmac
import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from . import config
from .errors import SecurityFailure
from .soap import SOAP_PREFIX, header

logger = logging.getLogger(__name__)

WSSE_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"
WSU_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd"
PASSWORD_TEXT = (
    "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-username-token-profile-1.0#PasswordText"
)

ET.register_namespace("wsse", WSSE_NS)
ET.register_namespace("wsu", WSU_NS)


class EndpointInterceptor:
    """Base interceptor; both hooks do nothing."""

    def handle_request(self, envelope: ET.Element, soap_action: str) -> None:
        pass

    def handle_response(self, envelope: ET.Element) -> None:
        pass


def security_header(envelope: ET.Element, create: bool = False) -> Optional[ET.Element]:
    hdr = header(envelope, create=create)
    if hdr is None:
        return None
    security = hdr.find(f"{{{WSSE_NS}}}Security")
    if security is None and create:
        security = ET.SubElement(hdr, f"{{{WSSE_NS}}}Security")
        security.set(f"{SOAP_PREFIX}mustUnderstand", "1")
    return security


def add_username_token(envelope: ET.Element, username: str, password: str) -> ET.Element:
    """Append a UsernameToken with a PasswordText password to the envelope."""
    token = ET.SubElement(security_header(envelope, create=True), f"{{{WSSE_NS}}}UsernameToken")
    ET.SubElement(token, f"{{{WSSE_NS}}}Username").text = username
    pw = ET.SubElement(token, f"{{{WSSE_NS}}}Password")
    pw.set("Type", PASSWORD_TEXT)
    pw.text = password
    return envelope


class UsernameTokenInterceptor(EndpointInterceptor):
    """Rejects requests without a UsernameToken matching the configured credentials."""

    def __init__(self, username: str, password: str):
        if not username:
            raise ValueError("UsernameTokenInterceptor needs a username")
        self.username = username
        self.password = password

    def handle_request(self, envelope, soap_action):
        security = security_header(envelope)
        token = security.find(f"{{{WSSE_NS}}}UsernameToken") if security is not None else None
        if token is None:
            raise SecurityFailure("Missing WS-Security UsernameToken")

        pw = token.find(f"{{{WSSE_NS}}}Password")
        if pw is not None and pw.get("Type", PASSWORD_TEXT) != PASSWORD_TEXT:
            raise SecurityFailure(f"Unsupported password type {pw.get('Type')}")

        username = token.findtext(f"{{{WSSE_NS}}}Username", default="")
        password = (pw.text or "") if pw is not None else ""
        user_ok = hmac.compare_digest(username.encode("utf-8"), self.username.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), self.password.encode("utf-8"))
        if not (user_ok and pass_ok):
            logger.warning("Rejected UsernameToken for user %r", username)
            raise SecurityFailure("The security token could not be authenticated")


class TimestampInterceptor(EndpointInterceptor):
    """Stamps outgoing envelopes with a wsu:Timestamp."""

    def __init__(self, ttl: int = 300):
        self.ttl = ttl

    def handle_response(self, envelope):
        now = datetime.now(timezone.utc)
        timestamp = ET.SubElement(security_header(envelope, create=True), f"{{{WSU_NS}}}Timestamp")
        ET.SubElement(timestamp, f"{{{WSU_NS}}}Created").text = _format(now)
        ET.SubElement(timestamp, f"{{{WSU_NS}}}Expires").text = _format(now + timedelta(seconds=self.ttl))


def _format(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def interceptors_from_config() -> List[EndpointInterceptor]:
    """UsernameToken check when credentials are configured, timestamps when enabled."""
    interceptors: List[EndpointInterceptor] = []
    if config.WSS_USERNAME:
        interceptors.append(UsernameTokenInterceptor(config.WSS_USERNAME, config.WSS_PASSWORD))
    if config.WSS_TIMESTAMP:
        interceptors.append(TimestampInterceptor(config.WSS_TIMESTAMP_TTL))
    return interceptors
