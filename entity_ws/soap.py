"""
SOAP 1.1 envelope helpers.

Builds and parses envelopes with ElementTree. Faults carry an
``ErrorResponse`` detail element with ``error_code``, ``error_message`` and
any extra fields of the error.
"""

import re
import xml.etree.ElementTree as ET
from typing import Dict, Optional, Tuple

from .errors import MalformedRequest, RemoteFault, TransportError

SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_PREFIX = "{%s}" % SOAP_NS

CONTENT_TYPE = "text/xml; charset=utf-8"

# characters outside the XML 1.0 Char production
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

ET.register_namespace("soap", SOAP_NS)


def is_xml_text(value: str) -> bool:
    """True when the string can be written as XML 1.0 character data."""
    return _XML_ILLEGAL.search(value) is None


def split_tag(tag: str) -> Tuple[str, str]:
    """Return (namespace, local name) of a Clark-notation tag."""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag


def build_envelope(body_el: ET.Element) -> ET.Element:
    envelope = ET.Element(f"{SOAP_PREFIX}Envelope")
    body = ET.SubElement(envelope, f"{SOAP_PREFIX}Body")
    body.append(body_el)
    return envelope


def serialize(envelope: ET.Element) -> str:
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True).decode()


def soap_envelope(body_el: ET.Element) -> str:
    """Wrap an XML element inside a SOAP Envelope/Body."""
    return serialize(build_envelope(body_el))


def header(envelope: ET.Element, create: bool = False) -> Optional[ET.Element]:
    """Return the soap:Header of an envelope, inserting it first when asked."""
    el = envelope.find(f"{SOAP_PREFIX}Header")
    if el is None and create:
        el = ET.Element(f"{SOAP_PREFIX}Header")
        envelope.insert(0, el)
    return el


def parse_envelope(xml_text: str) -> ET.Element:
    """Parse the text and check it is a SOAP envelope."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MalformedRequest(f"Invalid XML: {e}") from e

    if root.tag != f"{SOAP_PREFIX}Envelope":
        raise MalformedRequest("Message is not a SOAP Envelope")
    return root


def body_payload(envelope: ET.Element) -> ET.Element:
    """Return first element inside <soap:Body>."""
    body = envelope.find(f"{SOAP_PREFIX}Body")
    if body is None or len(body) == 0:
        raise MalformedRequest("No SOAP Body found")
    return list(body)[0]


def parse_soap(xml_text: str) -> ET.Element:
    """Return first element inside <soap:Body>."""
    return body_payload(parse_envelope(xml_text))


def soap_fault(fault_code: str, message: str, error_code: str, extra: Optional[Dict[str, object]] = None) -> str:
    """Build a SOAP fault envelope with an ErrorResponse detail."""
    fault = ET.Element(f"{SOAP_PREFIX}Fault")
    # faultcode/faultstring/detail are unqualified per SOAP 1.1
    ET.SubElement(fault, "faultcode").text = f"soap:{fault_code}"
    ET.SubElement(fault, "faultstring").text = message
    detail = ET.SubElement(fault, "detail")
    err = ET.SubElement(detail, "ErrorResponse")
    ET.SubElement(err, "error_code").text = error_code
    ET.SubElement(err, "error_message").text = message
    if extra:
        for k, v in extra.items():
            ET.SubElement(err, k).text = str(v)
    return soap_envelope(fault)


def parse_soap_response(xml_text: str) -> ET.Element:
    """Return the payload of a response envelope, raising RemoteFault for faults."""
    if not xml_text.strip().startswith("<"):
        raise TransportError(f"Response is not XML: {xml_text[:200]}")
    try:
        payload = parse_soap(xml_text)
    except MalformedRequest as e:
        raise TransportError(f"{e.message}: {xml_text[:200]}") from e

    if payload.tag == f"{SOAP_PREFIX}Fault":
        err = payload.find("detail/ErrorResponse")
        extra = {}
        if err is not None:
            extra = {el.tag: el.text or "" for el in err if el.tag not in ("error_code", "error_message")}
        raise RemoteFault(
            payload.findtext("faultcode", default="soap:Server"),
            payload.findtext("faultstring", default=""),
            payload.findtext("detail/ErrorResponse/error_code"),
            extra,
        )
    return payload
