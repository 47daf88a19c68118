"""Read-only entity stores."""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Union

from .errors import NotFound
from .models import EntityRecord
from .soap import is_xml_text

logger = logging.getLogger(__name__)


class EntityStore:
    """Lookup contract shared by every store."""

    def find_by_id(self, entity_id: int) -> EntityRecord:
        raise NotImplementedError


class InMemoryEntityStore(EntityStore):
    def __init__(self, records: Iterable[EntityRecord] = ()):
        self._records: Dict[int, EntityRecord] = {}
        for record in records:
            if not is_xml_text(record.name):
                raise ValueError(f"Entity {record.id} has a name that cannot be written as XML: {record.name!r}")
            if record.id in self._records:
                raise ValueError(f"Duplicate entity id {record.id}")
            self._records[record.id] = record

    def __len__(self) -> int:
        return len(self._records)

    def find_by_id(self, entity_id: int) -> EntityRecord:
        try:
            return self._records[entity_id]
        except KeyError:
            raise NotFound(f"No entity with id {entity_id}", detail={"id": entity_id}) from None


def load_store(path: Union[str, Path]) -> InMemoryEntityStore:
    """Build a store from a JSON array of {"id": ..., "name": ...} objects.

    A missing file gives an empty store.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Entity data file %s not found, starting with an empty store", path)
        return InMemoryEntityStore()

    with path.open(encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON array of entities")

    records = []
    for item in raw:
        entity_id = item.get("id")
        if not isinstance(entity_id, int) or isinstance(entity_id, bool) or entity_id < 0:
            raise ValueError(f"{path}: invalid entity id {entity_id!r}")
        records.append(EntityRecord(id=entity_id, name=str(item.get("name", ""))))

    store = InMemoryEntityStore(records)
    logger.info("Loaded %d entities from %s", len(store), path)
    return store
