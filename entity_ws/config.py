"""
Runtime settings for the entity service.

Every value can be overridden through the environment before the module is
imported. TLS is switched on for the WebSocket server only when both the
certificate and the key are configured.
"""

import logging
import os
import ssl
from typing import Optional

HOST = os.getenv("ENTITY_WS_HOST", "localhost")
PORT = int(os.getenv("ENTITY_WS_PORT", "8080"))
WS_PORT = int(os.getenv("ENTITY_WS_WS_PORT", "8888"))
SOAP_PATH = os.getenv("ENTITY_WS_SOAP_PATH", "/ws")

CERT_PATH = os.getenv("ENTITY_WS_CERT_PATH", "")
KEY_PATH = os.getenv("ENTITY_WS_KEY_PATH", "")
CA_PATH = os.getenv("ENTITY_WS_CA_PATH", "")

DATA_PATH = os.getenv("ENTITY_WS_DATA_PATH", "data/entities.json")

# WS-Security; the UsernameToken check is off while no username is set
WSS_USERNAME = os.getenv("ENTITY_WS_WSS_USERNAME", "")
WSS_PASSWORD = os.getenv("ENTITY_WS_WSS_PASSWORD", "")
WSS_TIMESTAMP = os.getenv("ENTITY_WS_WSS_TIMESTAMP", "false").lower() in {"1", "true", "yes"}
WSS_TIMESTAMP_TTL = int(os.getenv("ENTITY_WS_WSS_TIMESTAMP_TTL", "300"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_server_ssl_context(
    cert_path: str = CERT_PATH, key_path: str = KEY_PATH, ca_path: str = CA_PATH
) -> Optional[ssl.SSLContext]:
    """Server-side context, or None when no certificate is configured.

    With a CA bundle the server insists on a client certificate signed by it.
    """
    if not cert_path or not key_path:
        return None
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(certfile=cert_path, keyfile=key_path)
    if ca_path:
        context.load_verify_locations(cafile=ca_path)
        context.verify_mode = ssl.CERT_REQUIRED  # Enforce client cert
    return context


def build_client_ssl_context(
    ca_path: str = CA_PATH, cert_path: str = CERT_PATH, key_path: str = KEY_PATH
) -> ssl.SSLContext:
    context = ssl.create_default_context(cafile=ca_path or None)
    if cert_path and key_path:
        context.load_cert_chain(certfile=cert_path, keyfile=key_path)
    return context
