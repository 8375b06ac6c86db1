"""State store — JSON snapshot of the mint state and the reference ledger.

Used between CLI invocations. Writes go to a temporary file that is then
renamed over the target, so a crash mid-write leaves the previous
snapshot intact.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from mintgate.state import MintState
from mintgate.token.ledger import InMemoryTokenLedger

SNAPSHOT_VERSION = 1


class StateStore:
    """Persists (MintState, InMemoryTokenLedger) pairs to one JSON file."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def exists(self) -> bool:
        return self._storage_path.exists()

    def save(self, state: MintState, ledger: InMemoryTokenLedger) -> None:
        document = {
            "version": SNAPSHOT_VERSION,
            "state": state.to_dict(),
            "ledger": ledger.snapshot(),
        }
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, sort_keys=True)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self._storage_path)

    def load(self) -> Optional[tuple[MintState, InMemoryTokenLedger]]:
        """Return the stored pair, or None if nothing has been saved yet."""
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as f:
            document = json.load(f)
        version = document.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported state snapshot version: {version}")
        return (
            MintState.from_dict(document["state"]),
            InMemoryTokenLedger.restore(document["ledger"]),
        )
