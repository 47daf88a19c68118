"""The getEntity endpoint and the dispatcher wired around it."""

import logging
import xml.etree.ElementTree as ET
from typing import Iterable

from . import mapper
from .dispatcher import Dispatcher, Route
from .models import LookupRequest, LookupResponse
from .security import EndpointInterceptor
from .store import EntityStore

logger = logging.getLogger(__name__)


class EntityEndpoint:
    """Receives a request with the id of one entity and returns that entity's data."""

    def __init__(self, store: EntityStore):
        if store is None:
            raise ValueError("Received None as store")
        self.store = store

    def lookup(self, request: LookupRequest) -> LookupResponse:
        return LookupResponse(entity=self.store.find_by_id(request.id))

    def get_entity(self, payload: ET.Element) -> ET.Element:
        request = mapper.to_domain_request(payload)
        logger.debug("Received request for id %d", request.id)

        response = self.lookup(request)
        logger.debug("Found entity with id %d and name %s", response.entity.id, response.entity.name)
        return mapper.to_wire_response(response.entity)

    def routes(self):
        return [Route(mapper.ENTITY_NS, mapper.REQUEST, mapper.ACTION, self.get_entity)]


def build_dispatcher(store: EntityStore, interceptors: Iterable[EndpointInterceptor] = ()) -> Dispatcher:
    return Dispatcher(EntityEndpoint(store).routes(), interceptors)
