"""
WebSocket transport for the entity service.

Every text frame received on the SOAP path is one SOAP call and is answered
with one envelope, either the response or a fault.

Run:
    python -m entity_ws.ws_server
"""

import asyncio
import logging
import ssl
from typing import Optional
from urllib.parse import urlsplit

import websockets

from . import config
from .dispatcher import Dispatcher
from .endpoint import build_dispatcher
from .errors import UnsupportedOperation
from .security import interceptors_from_config
from .soap import soap_fault
from .store import load_store

logger = logging.getLogger(__name__)


async def handle_soap(ws, dispatcher: Dispatcher):
    async for msg in ws:
        if isinstance(msg, bytes):
            msg = msg.decode("utf-8", errors="replace")
        logger.info("WS SOAP received message: %s", msg[:200])
        result = dispatcher.dispatch(msg)
        await ws.send(result.body)


def make_handler(dispatcher: Dispatcher, soap_path: str = config.SOAP_PATH):
    async def dispatch(ws):
        path = ws.request.path
        logger.info("New WS connection path=%s", path)
        if urlsplit(path).path == soap_path:
            await handle_soap(ws, dispatcher)
        else:
            err = UnsupportedOperation(f"Unknown path {path}")
            await ws.send(soap_fault(err.fault_code, err.message, err.error_code))
            await ws.close()

    return dispatch


def serve(
    dispatcher: Dispatcher,
    host: str = config.HOST,
    port: int = config.WS_PORT,
    ssl_context: Optional[ssl.SSLContext] = None,
    soap_path: str = config.SOAP_PATH,
):
    """Return the websockets server; use it as an async context manager."""
    return websockets.serve(make_handler(dispatcher, soap_path), host, port, ssl=ssl_context)


async def main():
    dispatcher = build_dispatcher(load_store(config.DATA_PATH), interceptors_from_config())
    ssl_context = config.build_server_ssl_context()
    logger.info(
        "Starting WebSocket server on %s:%d%s (tls=%s)",
        config.HOST, config.WS_PORT, config.SOAP_PATH, ssl_context is not None,
    )
    async with serve(dispatcher, ssl_context=ssl_context):
        await asyncio.Future()  # run forever


if __name__ == "__main__":
    config.setup_logging()
    asyncio.run(main())
