"""Domain records and the per-call request/response types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EntityRecord:
    id: int
    name: str


@dataclass(frozen=True)
class LookupRequest:
    id: int


@dataclass(frozen=True)
class LookupResponse:
    entity: EntityRecord
