"""
Mapping between the wire payloads of the getEntity operation and the domain
types. Wire elements are built field by field.
"""

import re
import xml.etree.ElementTree as ET

from .errors import MalformedRequest
from .models import EntityRecord, LookupRequest
from .soap import is_xml_text, split_tag

ENTITY_NS = "http://example.com/entity-ws/entity"
REQUEST = "getEntityRequest"
RESPONSE = "getEntityResponse"
ACTION = f"{ENTITY_NS}/getEntity"

ET.register_namespace("ent", ENTITY_NS)

# lexical space of xs:int, ASCII digits only
_INT_RE = re.compile(r"[+-]?[0-9]+")
INT_MAX = 2**31 - 1


def _q(local: str) -> str:
    return f"{{{ENTITY_NS}}}{local}"


def _parse_id(text: str) -> int:
    text = (text or "").strip(" \t\r\n")
    if not text:
        raise MalformedRequest("Missing required field: id")
    if not _INT_RE.fullmatch(text):
        raise MalformedRequest(f"Field id must be an integer, got {text!r}")
    entity_id = int(text)
    if entity_id > INT_MAX:
        raise MalformedRequest(f"Field id out of range, got {entity_id}")
    if entity_id < 0:
        raise MalformedRequest(f"Field id must be non-negative, got {entity_id}")
    return entity_id


def _child(parent: ET.Element, local: str):
    """Find a child by local name, qualified in ENTITY_NS or unqualified."""
    el = parent.find(_q(local))
    if el is None:
        el = parent.find(local)
    return el


def to_domain_request(element: ET.Element) -> LookupRequest:
    namespace, local = split_tag(element.tag)
    if (namespace, local) != (ENTITY_NS, REQUEST):
        raise MalformedRequest(f"Expected {{{ENTITY_NS}}}{REQUEST}, got {element.tag}")

    id_el = _child(element, "id")
    if id_el is None:
        raise MalformedRequest("Missing required field: id")
    return LookupRequest(id=_parse_id(id_el.text))


def to_wire_request(request: LookupRequest) -> ET.Element:
    el = ET.Element(_q(REQUEST))
    ET.SubElement(el, _q("id")).text = str(request.id)
    return el


def to_wire_response(record: EntityRecord) -> ET.Element:
    if not is_xml_text(record.name):
        raise ValueError(f"Name of entity {record.id} cannot be written as XML")
    response = ET.Element(_q(RESPONSE))
    entity = ET.SubElement(response, _q("entity"))
    ET.SubElement(entity, _q("id")).text = str(record.id)
    ET.SubElement(entity, _q("name")).text = record.name
    return response


def from_wire_response(element: ET.Element) -> EntityRecord:
    if element.tag != _q(RESPONSE):
        raise MalformedRequest(f"Expected {{{ENTITY_NS}}}{RESPONSE}, got {element.tag}")
    entity = _child(element, "entity")
    if entity is None:
        raise MalformedRequest("Response carries no entity")
    id_el = _child(entity, "id")
    name_el = _child(entity, "name")
    return EntityRecord(
        id=_parse_id(id_el.text if id_el is not None else ""),
        name=(name_el.text or "") if name_el is not None else "",
    )
