import http.client
import xml.etree.ElementTree as ET

import pytest

from entity_ws import client as client_module
from entity_ws import mapper
from entity_ws.client import EntityClient, build_request_envelope
from entity_ws.errors import RemoteFault, TransportError
from entity_ws.models import EntityRecord
from entity_ws.security import WSSE_NS
from entity_ws.soap import soap_envelope, soap_fault


class FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    def read(self):
        return self._body.encode("utf-8")


class FakeConnection:
    sent = []

    def __init__(self, host, port=None, timeout=None, **kwargs):
        self.host = host
        self.port = port
        self.kwargs = kwargs

    def request(self, method, path, body=None, headers=None):
        FakeConnection.sent.append((method, path, body.decode("utf-8"), headers))

    def getresponse(self):
        return self.response

    def close(self):
        pass


@pytest.fixture
def fake_http(monkeypatch):
    FakeConnection.sent = []

    def install(status, body):
        FakeConnection.response = FakeResponse(status, body)
        monkeypatch.setattr(client_module.http.client, "HTTPConnection", FakeConnection)

    return install


def test_get_entity(fake_http, dispatcher):
    # answer with whatever the real dispatcher says
    fake_http(200, dispatcher.dispatch(build_request_envelope(1)).body)

    record = EntityClient("http://localhost:8080/ws").get_entity(1)

    assert record == EntityRecord(id=1, name="Test")
    method, path, body, headers = FakeConnection.sent[0]
    assert (method, path) == ("POST", "/ws")
    assert headers["SOAPAction"] == f'"{mapper.ACTION}"'
    assert mapper.REQUEST in body


def test_fault_raises_remote_fault(fake_http):
    fake_http(500, soap_fault("Client.NotFound", "No entity with id 9", "404"))

    with pytest.raises(RemoteFault) as excinfo:
        EntityClient("http://localhost:8080/ws").get_entity(9)

    assert excinfo.value.is_not_found


def test_unexpected_payload_is_transport_error(fake_http):
    fake_http(200, soap_envelope(ET.Element("{urn:x}other")))

    with pytest.raises(TransportError):
        EntityClient("http://localhost:8080/ws").get_entity(1)


def test_connection_error_is_transport_error(monkeypatch):
    class Refusing(FakeConnection):
        def request(self, *args, **kwargs):
            raise ConnectionRefusedError("refused")

    monkeypatch.setattr(client_module.http.client, "HTTPConnection", Refusing)

    with pytest.raises(TransportError):
        EntityClient("http://localhost:1/ws").get_entity(1)


def test_rejects_unsupported_url():
    with pytest.raises(ValueError):
        EntityClient("ftp://example.com/ws")


def test_https_uses_given_context(monkeypatch):
    created = {}

    class FakeHTTPS(FakeConnection):
        def __init__(self, host, port=None, timeout=None, context=None):
            super().__init__(host, port, timeout)
            created["context"] = context

    monkeypatch.setattr(http.client, "HTTPSConnection", FakeHTTPS)
    marker = object()

    EntityClient("https://example.com/ws", ssl_context=marker)._connection()

    assert created["context"] is marker


def test_non_utf8_response_is_transport_error(monkeypatch):
    class Latin1Response(FakeResponse):
        def read(self):
            return b"<caf\xe9/>"

    monkeypatch.setattr(FakeConnection, "response", Latin1Response(200, ""), raising=False)
    monkeypatch.setattr(client_module.http.client, "HTTPConnection", FakeConnection)

    with pytest.raises(TransportError):
        EntityClient("http://localhost:8080/ws").get_entity(1)


def test_credentials_are_sent_as_username_token(fake_http, dispatcher):
    fake_http(200, dispatcher.dispatch(build_request_envelope(1)).body)

    EntityClient("http://localhost:8080/ws", username="alice", password="s3cret").get_entity(1)

    body = FakeConnection.sent[0][2]
    token = ET.fromstring(body).find(f".//{{{WSSE_NS}}}UsernameToken")
    assert token.findtext(f"{{{WSSE_NS}}}Username") == "alice"
    assert token.findtext(f"{{{WSSE_NS}}}Password") == "s3cret"
