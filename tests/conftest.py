import xml.etree.ElementTree as ET

import pytest

from entity_ws import mapper
from entity_ws.endpoint import build_dispatcher
from entity_ws.models import EntityRecord
from entity_ws.soap import SOAP_NS
from entity_ws.store import InMemoryEntityStore


class CountingStore(InMemoryEntityStore):
    """Store that records every lookup."""

    def __init__(self, records=()):
        super().__init__(records)
        self.calls = []

    def find_by_id(self, entity_id):
        self.calls.append(entity_id)
        return super().find_by_id(entity_id)


def request_xml(id_text="1", namespace=mapper.ENTITY_NS, local=mapper.REQUEST):
    """Hand-written envelope, the way an external client would send it."""
    id_el = "" if id_text is None else f"<ent:id>{id_text}</ent:id>"
    return (
        f'<soap:Envelope xmlns:soap="{SOAP_NS}" xmlns:ent="{namespace}">'
        f"<soap:Body><ent:{local}>{id_el}</ent:{local}></soap:Body>"
        f"</soap:Envelope>"
    )


def fault_of(xml_text):
    """Return (faultcode, error_code) of a fault envelope."""
    fault = ET.fromstring(xml_text).find(f"{{{SOAP_NS}}}Body/{{{SOAP_NS}}}Fault")
    assert fault is not None, xml_text
    return fault.findtext("faultcode"), fault.findtext("detail/ErrorResponse/error_code")


@pytest.fixture
def store():
    return CountingStore([EntityRecord(id=1, name="Test")])


@pytest.fixture
def empty_store():
    return CountingStore()


@pytest.fixture
def dispatcher(store):
    return build_dispatcher(store)
