"""
Core plugin types and dataclasses.

This module contains shared types used by gateways and reconcilers.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from diagnostics import Diagnostics

logger = logging.getLogger(__name__)

# Parts of a video resource the remote API can return
VIDEO_PARTS = frozenset(
    {
        "contentDetails",
        "id",
        "liveStreamingDetails",
        "localizations",
        "player",
        "recordingDetails",
        "snippet",
        "statistics",
        "status",
        "topicDetails",
    }
)


def encode_document(document: Any) -> str:
    """
    Encode a remote sub-document as its canonical string form.

    Keys are sorted and separators compact so the same document always
    encodes to the same string. A missing document encodes to "".
    """
    if document is None:
        return ""
    return json.dumps(
        document, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def decode_document(encoded: Optional[str]) -> Any:
    """Inverse of encode_document, for consumers wanting structured values."""
    if not encoded:
        return None
    return json.loads(encoded)


@dataclass(frozen=True)
class RemoteSnapshot:
    """
    The parts of one remote item observed by a single fetch.

    Part documents are deep-copied on construction and exposed through
    read-only mappings. Use with_part() to produce a locally mutated copy.
    """

    resource_id: str
    parts: Mapping[str, Any]
    item: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_item(
        cls, item: Dict[str, Any], parts: Iterable[str]
    ) -> "RemoteSnapshot":
        """
        Build a snapshot from a raw API item.

        Only requested parts present in the item are kept.
        """
        item = copy.deepcopy(item)
        kept = {p: item[p] for p in sorted(parts) if p in item}
        return cls(
            resource_id=item.get("id", ""),
            parts=MappingProxyType(kept),
            item=MappingProxyType(item),
        )

    def get(self, part: str) -> Any:
        """Return a copy of a part document, or None if it was not returned."""
        return copy.deepcopy(self.parts.get(part))

    def has_part(self, part: str) -> bool:
        return part in self.parts

    def with_part(self, part: str, document: Any) -> "RemoteSnapshot":
        """Return a new snapshot with one part document replaced."""
        if part not in self.parts:
            raise KeyError(f"Part '{part}' was not fetched")
        item = copy.deepcopy(dict(self.item))
        item[part] = copy.deepcopy(document)
        return RemoteSnapshot.from_item(item, self.parts.keys())

    def to_item(self) -> Dict[str, Any]:
        """Return a mutable deep copy of the raw item."""
        return copy.deepcopy(dict(self.item))


class ReconcilePhase(Enum):
    """Phases of a single reconciler call."""

    PENDING = "pending"
    FETCHING = "fetching"
    RECONCILING = "reconciling"
    NOT_FOUND = "not_found"
    GATEWAY_FAILED = "gateway_failed"
    PERSISTED = "persisted"
    FAILED = "failed"


TERMINAL_PHASES = frozenset({ReconcilePhase.PERSISTED, ReconcilePhase.FAILED})


@dataclass
class ReconcileResult:
    """Result of one reconciler operation."""

    operation: str
    resource_id: Optional[str] = None
    phase: ReconcilePhase = ReconcilePhase.PENDING
    state: Optional[Dict[str, Any]] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def success(self) -> bool:
        return (
            self.phase is ReconcilePhase.PERSISTED
            and not self.diagnostics.has_error()
        )

    def transition(self, phase: ReconcilePhase) -> None:
        """Move to the next phase, logging the change."""
        if self.phase in TERMINAL_PHASES:
            raise RuntimeError(
                f"{self.operation} already finished in phase {self.phase.value}"
            )
        logger.debug(
            f"{self.operation} {self.resource_id or '(no id)'}: "
            f"{self.phase.value} -> {phase.value}"
        )
        self.phase = phase
