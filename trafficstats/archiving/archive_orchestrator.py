"""
아카이브 오케스트레이터

보고서/분석의 DB 객체를 덤프해 S3 로 옮기고 DB 에서 제거합니다.

보고서를 아카이브하기 전에 그 보고서를 참조하는 아카이브되지 않은 분석을 먼저
아카이브(prepare)합니다. 분석의 정리 구문은 실행하지 않고 반환되며, 보고서의
정리 구문 및 상태 갱신과 함께 하나의 BEGIN ... COMMIT 스크립트로 실행됩니다.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from config.constants import ArchiveStage, EntityKind
from trafficstats.archiving.dependency_resolver import DependencyResolver
from trafficstats.archiving.dump_engine import PgDumpEngine
from trafficstats.archiving.models import PreparedArchive
from trafficstats.archiving.object_store import S3ObjectStore
from trafficstats.archiving.pipeline import run_cascade, stage_context
from trafficstats.archiving.queries import ArchiveQueries
from trafficstats.archiving.temp_artifacts import TempArtifactManager
from trafficstats.core.database import AsyncRelationalStore
from trafficstats.core.error_handling import (
    AlreadyArchivedOrDoesNotExistError,
    TrafficStatsError,
)

logger = logging.getLogger(__name__)

OPERATION = "archive"


class ArchiveOrchestrator:
    """present -> archived 전이 담당"""

    def __init__(
        self,
        store: AsyncRelationalStore,
        queries: ArchiveQueries,
        resolver: DependencyResolver,
        dump_engine: PgDumpEngine,
        object_store: S3ObjectStore,
        temp_artifacts: TempArtifactManager,
        bucket: str,
        database: str,
        cascade_limit: Optional[asyncio.Semaphore] = None,
    ):
        self.store = store
        self.queries = queries
        self.resolver = resolver
        self.dump_engine = dump_engine
        self.object_store = object_store
        self.temp_artifacts = temp_artifacts
        self.bucket = bucket
        self.database = database
        self.cascade_limit = cascade_limit

    async def archive_report(self, report_id: int) -> str:
        """보고서(및 의존 분석)를 아카이브하고 archive_location 반환"""
        kind = EntityKind.REPORT
        logger.info(f"보고서 {report_id} 아카이브 시작")

        with stage_context(OPERATION, kind, report_id, ArchiveStage.VALIDATE):
            await self._validate_present(kind, report_id)

        with stage_context(OPERATION, kind, report_id, ArchiveStage.RESOLVE_DEPENDENCIES):
            dependents = await self.resolver.dependent_analyses(report_id)
        logger.debug(f"보고서 {report_id}의 의존 분석: {sorted(dependents)}")

        with stage_context(OPERATION, kind, report_id, ArchiveStage.CASCADE):
            cascaded = await run_cascade(
                sorted(dependents), self.prepare_analysis, self.cascade_limit
            )
        if cascaded:
            logger.debug(f"의존 분석 {len(cascaded)}개 아카이브 준비 완료")

        async with self.temp_artifacts.artifact() as path:
            prepared = await self._dump_and_upload(kind, report_id, path)

            # 분석 객체가 보고서 객체를 참조하므로 분석 정리 구문을 먼저 둠
            statements: List[str] = []
            for analysis in cascaded:
                statements.extend(analysis.cleanup_statements)
            statements.extend(prepared.cleanup_statements)
            statements.append(
                self.queries.render_mark_archived(kind, report_id, prepared.location)
            )

            logger.debug(f"보고서 {report_id} DB 객체 제거 시작 ({len(statements)}개 구문)")
            with stage_context(OPERATION, kind, report_id, ArchiveStage.COMMIT):
                try:
                    await self.store.execute_transaction(statements)
                except TrafficStatsError:
                    uploaded = [prepared.location] + [a.location for a in cascaded]
                    logger.warning(
                        f"보고서 {report_id} 커밋 실패. 업로드된 객체가 등록되지 않았을 수 있음: "
                        f"{', '.join(uploaded)}"
                    )
                    raise

        logger.info(f"보고서 {report_id} 아카이브 완료: {prepared.location}")
        return prepared.location

    async def archive_analysis(self, analysis_id: int) -> str:
        """분석 하나를 단독으로 아카이브하고 정리 구문까지 직접 실행"""
        kind = EntityKind.ANALYSIS

        with stage_context(OPERATION, kind, analysis_id, ArchiveStage.VALIDATE):
            await self._validate_present(kind, analysis_id)

        prepared = await self.prepare_analysis(analysis_id)

        with stage_context(OPERATION, kind, analysis_id, ArchiveStage.COMMIT):
            try:
                await self.store.execute_transaction(prepared.cleanup_statements)
            except TrafficStatsError:
                logger.warning(
                    f"분석 {analysis_id} 커밋 실패. 업로드된 객체가 등록되지 않았을 수 있음: "
                    f"{prepared.location}"
                )
                raise

        logger.info(f"분석 {analysis_id} 아카이브 완료: {prepared.location}")
        return prepared.location

    async def prepare_analysis(self, analysis_id: int) -> PreparedArchive:
        """분석을 덤프/업로드하고 정리 구문(DROP + 상태 갱신) 반환

        정리 구문의 실행은 호출 측 책임이며, 실행 전까지 분석은 present 상태입니다.
        """
        kind = EntityKind.ANALYSIS
        logger.info(f"분석 {analysis_id} 아카이브 시작")

        async with self.temp_artifacts.artifact() as path:
            prepared = await self._dump_and_upload(kind, analysis_id, path)

        # 상태 갱신은 DB 객체 제거와 같은 트랜잭션에서 커밋
        prepared.cleanup_statements.append(
            self.queries.render_mark_archived(kind, analysis_id, prepared.location)
        )

        logger.debug(
            f"분석 {analysis_id} 정리 구문 {len(prepared.cleanup_statements)}개 준비 완료"
        )
        return prepared

    async def _validate_present(self, kind: EntityKind, entity_id: int) -> None:
        row = await self.store.fetch_one(self.queries.validate_present(kind), entity_id)
        if row is None:
            message = f"{kind.value} {entity_id}이(가) 존재하지 않거나 이미 아카이브되었습니다"
            logger.warning(message)
            raise AlreadyArchivedOrDoesNotExistError(message)
        logger.debug(f"{kind.value} {entity_id} 존재 확인")

    async def _dump_and_upload(
        self, kind: EntityKind, entity_id: int, path: Path
    ) -> PreparedArchive:
        """덤프 -> 업로드 -> 정리 구문 추출"""
        logger.debug(f"{kind.value} {entity_id} 덤프용 임시 파일: {path}")

        with stage_context(OPERATION, kind, entity_id, ArchiveStage.DUMP):
            await self.dump_engine.dump_entity(kind, entity_id, path)

        key = kind.object_key(self.database, self.queries.schema, entity_id)
        with stage_context(OPERATION, kind, entity_id, ArchiveStage.UPLOAD):
            locator = await self.object_store.upload(path, self.bucket, key)
        logger.debug(f"{kind.value} {entity_id} 덤프 업로드 완료: {locator}")

        with stage_context(OPERATION, kind, entity_id, ArchiveStage.EXTRACT_CLEANUP):
            statements = await self.dump_engine.extract_cleanup_statements(path)

        return PreparedArchive(
            kind=kind,
            entity_id=entity_id,
            location=str(locator),
            cleanup_statements=statements,
        )
