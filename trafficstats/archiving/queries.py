"""
아카이브/복원 SQL 구문

report, analysis, analysis_report 테이블에 대한 스키마 한정 구문을 생성합니다.
파라미터는 asyncpg 형식($1, $2 ...)을 사용합니다.
"""

from config.constants import EntityKind
from trafficstats.core.database import quote_identifier, quote_literal


class ArchiveQueries:
    """스키마별 아카이브 상태 구문 모음"""

    def __init__(self, schema: str = "public"):
        self.schema = schema
        self._schema = quote_identifier(schema)

    def table(self, name: str) -> str:
        return f"{self._schema}.{quote_identifier(name)}"

    def validate_present(self, kind: EntityKind) -> str:
        """보관되지 않은(present) 엔티티인지 확인

        $1 - 엔티티 id
        """
        return (
            f"SELECT id FROM {self.table(kind.table_name)} "
            "WHERE archive_location IS NULL AND id = $1"
        )

    def archived_location(self, kind: EntityKind) -> str:
        """아카이브된 엔티티의 archive_location 조회 (아카이브 여부 검증 겸용)

        $1 - 엔티티 id
        """
        return (
            f"SELECT archive_location FROM {self.table(kind.table_name)} "
            "WHERE archive_location IS NOT NULL AND id = $1"
        )

    def select_record(self, kind: EntityKind) -> str:
        """엔티티의 아카이브 상태 컬럼 조회

        $1 - 엔티티 id
        """
        return (
            "SELECT id, archive_location, archive_timestamp, restore_timestamp "
            f"FROM {self.table(kind.table_name)} WHERE id = $1"
        )

    def render_mark_archived(self, kind: EntityKind, entity_id: int, location: str) -> str:
        """엔티티를 아카이브됨으로 표시 (트랜잭션 스크립트용, 값이 인라인된 구문)"""
        return (
            f"UPDATE {self.table(kind.table_name)} "
            f"SET archive_location = {quote_literal(location)}, "
            "archive_timestamp = now(), restore_timestamp = NULL "
            f"WHERE id = {int(entity_id)};"
        )

    def reset_archive(self, kind: EntityKind) -> str:
        """복원된 엔티티의 아카이브 컬럼 초기화

        $1 - 엔티티 id
        """
        return (
            f"UPDATE {self.table(kind.table_name)} "
            "SET archive_location = NULL, archive_timestamp = NULL, restore_timestamp = now() "
            "WHERE id = $1"
        )

    @property
    def dependent_analyses(self) -> str:
        """보고서를 참조하는 아카이브되지 않은 분석 id

        $1 - report id
        """
        return (
            f"SELECT DISTINCT j.analysis FROM {self.table('analysis_report')} j "
            f"JOIN {self.table('analysis')} a ON j.analysis = a.id "
            "WHERE a.archive_location IS NULL AND j.report = $1"
        )

    @property
    def needed_reports(self) -> str:
        """분석이 참조하는 아카이브된 보고서 id

        $1 - analysis id
        """
        return (
            f"SELECT DISTINCT j.report FROM {self.table('analysis_report')} j "
            f"JOIN {self.table('report')} r ON j.report = r.id "
            "WHERE r.archive_location IS NOT NULL AND j.analysis = $1"
        )
