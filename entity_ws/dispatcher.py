"""
Routes SOAP messages to handlers.

Routes are registered explicitly and keyed by the payload root element
(namespace, local name). A non-empty SOAPAction must match the route's
action. Interceptors run their request hooks on the whole envelope before
routing and their response hooks, in reverse order, on the outgoing envelope.
Each call walks IDLE -> VALIDATING -> DISPATCHED and ends in RESPONDED or
FAULTED; faults raised while validating never reach a handler.
"""

import enum
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import EndpointError, InternalFailure, UnsupportedOperation
from .security import EndpointInterceptor
from .soap import body_payload, build_envelope, parse_envelope, serialize, soap_fault, split_tag

logger = logging.getLogger(__name__)

Handler = Callable[[ET.Element], ET.Element]


class CallState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    DISPATCHED = "dispatched"
    RESPONDED = "responded"
    FAULTED = "faulted"


@dataclass(frozen=True)
class Route:
    namespace: str
    local_name: str
    action: str
    handler: Handler

    @property
    def key(self) -> Tuple[str, str]:
        return self.namespace, self.local_name


@dataclass
class DispatchResult:
    state: CallState
    body: str
    fault: Optional[EndpointError] = None
    history: List[CallState] = field(default_factory=list)

    @property
    def is_fault(self) -> bool:
        return self.state is CallState.FAULTED


def normalize_action(soap_action: Optional[str]) -> str:
    """Strip the quotes SOAP 1.1 clients put around the SOAPAction value."""
    if soap_action is None:
        return ""
    return soap_action.strip().strip('"')


class _Call:
    def __init__(self):
        self.state = CallState.IDLE
        self.history = [CallState.IDLE]

    def move(self, state: CallState) -> None:
        self.state = state
        self.history.append(state)


class Dispatcher:
    def __init__(self, routes: Iterable[Route] = (), interceptors: Iterable[EndpointInterceptor] = ()):
        self._routes: Dict[Tuple[str, str], Route] = {}
        self.interceptors: List[EndpointInterceptor] = list(interceptors)
        for route in routes:
            self.register(route)

    def register(self, route: Route) -> None:
        if route.key in self._routes:
            raise ValueError(f"Route already registered for {{{route.namespace}}}{route.local_name}")
        self._routes[route.key] = route
        logger.debug("Registered route {%s}%s action=%s", route.namespace, route.local_name, route.action)

    @property
    def routes(self) -> List[Route]:
        return list(self._routes.values())

    def resolve(self, payload: ET.Element, soap_action: Optional[str] = None) -> Route:
        route = self._routes.get(split_tag(payload.tag))
        if route is None:
            raise UnsupportedOperation(f"No endpoint mapping for {payload.tag}")
        action = normalize_action(soap_action)
        if action and action != route.action:
            raise UnsupportedOperation(f"SOAPAction {action!r} does not match {payload.tag}")
        return route

    def dispatch(self, xml_text: str, soap_action: Optional[str] = None) -> DispatchResult:
        call = _Call()
        try:
            call.move(CallState.VALIDATING)
            envelope = parse_envelope(xml_text)
            for interceptor in self.interceptors:
                interceptor.handle_request(envelope, normalize_action(soap_action))
            payload = body_payload(envelope)
            route = self.resolve(payload, soap_action)

            call.move(CallState.DISPATCHED)
            response = build_envelope(route.handler(payload))
            for interceptor in reversed(self.interceptors):
                interceptor.handle_response(response)
            body = serialize(response)
        except EndpointError as e:
            return self._fault(call, e)
        except Exception as e:
            logger.exception("Unexpected failure while handling %s", call.state.value)
            return self._fault(call, InternalFailure(f"Internal error: {type(e).__name__}"))

        call.move(CallState.RESPONDED)
        return DispatchResult(call.state, body, history=call.history)

    def _fault(self, call: _Call, error: EndpointError) -> DispatchResult:
        if not isinstance(error, InternalFailure):
            logger.info("Faulted in %s: %s %s", call.state.value, error.fault_code, error.message)
        call.move(CallState.FAULTED)
        body = soap_fault(error.fault_code, error.message, error.error_code, extra=error.detail)
        return DispatchResult(call.state, body, fault=error, history=call.history)
