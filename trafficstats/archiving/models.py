"""
아카이브 도메인 모델
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.constants import EntityKind


@dataclass
class ArchiveRecord:
    """report / analysis 행의 아카이브 상태"""

    kind: EntityKind
    entity_id: int
    archive_location: Optional[str] = None
    archive_timestamp: Optional[datetime] = None
    restore_timestamp: Optional[datetime] = None

    @property
    def is_archived(self) -> bool:
        return self.archive_location is not None

    @classmethod
    def from_row(cls, kind: EntityKind, row: Dict[str, Any]) -> "ArchiveRecord":
        return cls(
            kind=kind,
            entity_id=row["id"],
            archive_location=row.get("archive_location"),
            archive_timestamp=row.get("archive_timestamp"),
            restore_timestamp=row.get("restore_timestamp"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "id": self.entity_id,
            "archived": self.is_archived,
            "archive_location": self.archive_location,
            "archive_timestamp": self.archive_timestamp.isoformat()
            if self.archive_timestamp
            else None,
            "restore_timestamp": self.restore_timestamp.isoformat()
            if self.restore_timestamp
            else None,
        }


@dataclass
class PreparedArchive:
    """덤프/업로드가 끝난 엔티티와 실행 대기 중인 정리 구문"""

    kind: EntityKind
    entity_id: int
    location: str
    cleanup_statements: List[str] = field(default_factory=list)
