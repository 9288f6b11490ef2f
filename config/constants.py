"""
상수 정의 모듈

아카이브/복원 시스템에서 사용하는 상수들을 정의합니다.
"""

from enum import Enum
from typing import List


class EntityKind(Enum):
    """아카이브 대상 엔티티 종류"""

    REPORT = "report"
    ANALYSIS = "analysis"

    @property
    def table_name(self) -> str:
        """엔티티 상태가 저장되는 테이블명"""
        return self.value

    def table_patterns(self, schema: str, entity_id: int) -> List[str]:
        """엔티티가 소유한 물리 테이블 패턴 (pg_dump -t 인자)"""
        entity_id = int(entity_id)
        if self is EntityKind.REPORT:
            return [f"{schema}.segment_{entity_id}", f"{schema}.stats_{entity_id}_*"]
        return [f"{schema}.analysis_{entity_id}_*"]

    def object_key(self, database: str, schema: str, entity_id: int) -> str:
        """S3 객체 키: <database>/<schema>/<kind>_<id>.dump"""
        return f"{database}/{schema}/{self.value}_{int(entity_id)}.dump"


class ArchiveStage(Enum):
    """오케스트레이션 단계 (오류 컨텍스트용)"""

    VALIDATE = "validate"
    RESOLVE_DEPENDENCIES = "resolve_dependencies"
    CASCADE = "cascade"
    DUMP = "dump"
    UPLOAD = "upload"
    EXTRACT_CLEANUP = "extract_cleanup"
    COMMIT = "commit"
    LOCATE = "locate"
    DOWNLOAD = "download"
    RESTORE = "restore"
    RESET = "reset"


# pg_restore --clean 스크립트에서 정리 구문으로 취급하는 패턴
CLEANUP_STATEMENT_PATTERNS = (
    r"^DROP\b",
    r"ALTER TABLE .* DROP .*",
)

# S3 멀티파트 업로드 설정
UPLOAD_PART_SIZE_BYTES = 10 * 1024 * 1024
UPLOAD_MAX_CONCURRENCY = 1

TEMP_FILE_PREFIX = "trafficstats_"
TEMP_FILE_SUFFIX = ".dump"
