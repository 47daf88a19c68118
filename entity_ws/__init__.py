"""SOAP entity lookup service with HTTP and WebSocket transports."""

__version__ = "0.1.0"
