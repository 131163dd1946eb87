"""Domain models for passvault."""

from __future__ import annotations

from typing import Iterator, NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """A single stored credential."""

    model_config = ConfigDict(frozen=True)

    name: str
    username: str
    password: str = Field(repr=False)


class ListingEntry(NamedTuple):
    index: int
    name: str
    username: str


class Listing:
    """Restartable view of a store's records, without their passwords.

    Every iteration walks the store afresh, so the view reflects records added
    after it was created.
    """

    def __init__(self, entries: list[Record]) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[ListingEntry]:
        for i, record in enumerate(self._entries, 1):
            yield ListingEntry(i, record.name, record.username)

    def __len__(self) -> int:
        return len(self._entries)


class RecordStore(BaseModel):
    """Ordered collection of every record in the vault."""

    entries: list[Record] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def is_empty(self) -> bool:
        return not self.entries

    def add(self, record: Record) -> None:
        """Append *record*; duplicates are allowed."""
        self.entries.append(record)

    def remove(self, index: int) -> Record:
        """Remove and return the record at 1-based *index*."""
        if not 1 <= index <= len(self.entries):
            raise IndexError(f"No record at position {index}.")
        return self.entries.pop(index - 1)

    def listing(self) -> Listing:
        return Listing(self.entries)

    def search(self, query: str) -> list[Record]:
        """Return records whose name or username contains *query* (any case)."""
        q = query.lower()
        return [
            r for r in self.entries
            if q in r.name.lower() or q in r.username.lower()
        ]
