"""
Uniform outcomes for write operations.

Driver result objects differ between versions (older ones echoed the written
documents, newer ones do not), so the service builds these itself from the
record it wrote and the identity the store reported.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .ids import INDEPENDENT_ID_FIELD
from .notifications import ChangeKind


@dataclass
class WriteOutcome:
    """Result of saving one record."""
    record: Dict[str, Any]
    kind: ChangeKind
    native_id: Any
    raw_result: Any = field(default=None, repr=False)
    
    @property
    def created(self) -> bool:
        return self.kind is ChangeKind.CREATE
    
    @property
    def updated(self) -> bool:
        return self.kind is ChangeKind.UPDATE
    
    @property
    def independent_id(self) -> Optional[str]:
        return self.record.get(INDEPENDENT_ID_FIELD)


@dataclass
class RemoveOutcome:
    """Result of removing the records matched by a query."""
    query: Dict[str, Any]
    deleted_count: int
    raw_result: Any = field(default=None, repr=False)
