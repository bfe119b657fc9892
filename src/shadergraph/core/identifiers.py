"""Identifier minting and remapping.

Ids are generated fresh on creation and never reused. When a subgraph is
spliced in from elsewhere, every id it carries is translated through an
IdMap so importing the same graph twice cannot collide.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

_ID_LENGTH = 12


def make_id() -> str:
    """Return a fresh, opaque identifier."""
    return uuid.uuid4().hex[:_ID_LENGTH]


class IdMap:
    """Translation table from source ids to freshly minted ids.

    Lookups of ids that were never registered return the id unchanged, so
    references that point outside the translated subgraph survive as-is.
    """

    def __init__(self) -> None:
        self._table: dict[str, str] = {}

    def mint(self, old_id: str) -> str:
        """Mint (or return the already minted) replacement for old_id."""
        if old_id not in self._table:
            self._table[old_id] = make_id()
        return self._table[old_id]

    def mint_all(self, old_ids: Iterable[str]) -> None:
        for old_id in old_ids:
            self.mint(old_id)

    def __getitem__(self, old_id: str) -> str:
        return self._table.get(old_id, old_id)

    def __contains__(self, old_id: object) -> bool:
        return old_id in self._table

    def __len__(self) -> int:
        return len(self._table)

    def as_dict(self) -> dict[str, str]:
        return dict(self._table)
