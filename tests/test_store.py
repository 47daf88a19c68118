import json

import pytest

from entity_ws.errors import NotFound
from entity_ws.models import EntityRecord
from entity_ws.store import InMemoryEntityStore, load_store


def test_find_by_id_returns_record():
    store = InMemoryEntityStore([EntityRecord(1, "Test"), EntityRecord(2, "Other")])

    assert store.find_by_id(2) == EntityRecord(2, "Other")


def test_find_by_id_missing_raises_not_found():
    with pytest.raises(NotFound):
        InMemoryEntityStore().find_by_id(1)


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        InMemoryEntityStore([EntityRecord(1, "a"), EntityRecord(1, "b")])


def test_records_are_immutable():
    record = EntityRecord(1, "Test")
    with pytest.raises(AttributeError):
        record.name = "changed"


def test_load_store_from_json(tmp_path):
    path = tmp_path / "entities.json"
    path.write_text(json.dumps([{"id": 1, "name": "Test"}, {"id": 5, "name": "Five"}]), encoding="utf-8")

    store = load_store(path)

    assert len(store) == 2
    assert store.find_by_id(5).name == "Five"


def test_load_store_missing_file_is_empty(tmp_path):
    assert len(load_store(tmp_path / "nope.json")) == 0


@pytest.mark.parametrize("payload", ['{"id": 1}', '[{"id": -1, "name": "x"}]', '[{"id": "1", "name": "x"}]'])
def test_load_store_rejects_bad_data(tmp_path, payload):
    path = tmp_path / "entities.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ValueError):
        load_store(path)


@pytest.mark.parametrize("name", ["bad\x01name", "tab\x0bulated", "nul\x00"])
def test_names_that_cannot_be_xml_are_rejected(name):
    with pytest.raises(ValueError):
        InMemoryEntityStore([EntityRecord(1, name)])


def test_load_store_rejects_control_characters(tmp_path):
    path = tmp_path / "entities.json"
    path.write_text(json.dumps([{"id": 1, "name": "bad\u0001name"}]), encoding="utf-8")

    with pytest.raises(ValueError):
        load_store(path)


def test_not_found_carries_id():
    with pytest.raises(NotFound) as excinfo:
        InMemoryEntityStore().find_by_id(4)

    assert excinfo.value.detail == {"id": 4}
