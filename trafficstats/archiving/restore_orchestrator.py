"""
복원 오케스트레이터

S3 에서 덤프를 내려받아 DB 에 복원하고 아카이브 상태를 초기화합니다.
분석을 복원하기 전에 그 분석이 참조하는 아카이브된 보고서를 먼저 복원합니다.
"""

import asyncio
import logging
from typing import Optional

from config.constants import ArchiveStage, EntityKind
from trafficstats.archiving.dependency_resolver import DependencyResolver
from trafficstats.archiving.dump_engine import PgDumpEngine
from trafficstats.archiving.locator import ArchiveLocator
from trafficstats.archiving.object_store import S3ObjectStore
from trafficstats.archiving.pipeline import run_cascade, stage_context
from trafficstats.archiving.queries import ArchiveQueries
from trafficstats.archiving.temp_artifacts import TempArtifactManager
from trafficstats.core.database import AsyncRelationalStore
from trafficstats.core.error_handling import AlreadyArchivedOrDoesNotExistError

logger = logging.getLogger(__name__)

OPERATION = "restore"


class RestoreOrchestrator:
    """archived -> present 전이 담당"""

    def __init__(
        self,
        store: AsyncRelationalStore,
        queries: ArchiveQueries,
        resolver: DependencyResolver,
        dump_engine: PgDumpEngine,
        object_store: S3ObjectStore,
        temp_artifacts: TempArtifactManager,
        cascade_limit: Optional[asyncio.Semaphore] = None,
    ):
        self.store = store
        self.queries = queries
        self.resolver = resolver
        self.dump_engine = dump_engine
        self.object_store = object_store
        self.temp_artifacts = temp_artifacts
        self.cascade_limit = cascade_limit

    async def restore_analysis(self, analysis_id: int) -> None:
        """분석(및 필요한 보고서) 복원"""
        kind = EntityKind.ANALYSIS
        logger.info(f"분석 {analysis_id} 복원 시작")

        with stage_context(OPERATION, kind, analysis_id, ArchiveStage.VALIDATE):
            await self._archived_location(kind, analysis_id)

        with stage_context(OPERATION, kind, analysis_id, ArchiveStage.RESOLVE_DEPENDENCIES):
            needed = await self.resolver.needed_reports(analysis_id)
        logger.debug(f"분석 {analysis_id}에 필요한 아카이브된 보고서: {sorted(needed)}")

        with stage_context(OPERATION, kind, analysis_id, ArchiveStage.CASCADE):
            await run_cascade(sorted(needed), self.restore_report, self.cascade_limit)
        if needed:
            logger.debug(f"분석 {analysis_id}에 필요한 보고서 복원 완료")

        await self._restore_entity(kind, analysis_id)

    async def restore_report(self, report_id: int) -> None:
        """보고서 복원"""
        logger.info(f"보고서 {report_id} 복원 시작")
        await self._restore_entity(EntityKind.REPORT, report_id)

    async def _restore_entity(self, kind: EntityKind, entity_id: int) -> None:
        """위치 조회 -> 다운로드 -> pg_restore -> 상태 초기화"""
        async with self.temp_artifacts.artifact() as path:
            logger.debug(f"{kind.value} {entity_id} 복원용 임시 파일: {path}")

            with stage_context(OPERATION, kind, entity_id, ArchiveStage.LOCATE):
                location = await self._archived_location(kind, entity_id)
                locator = ArchiveLocator.parse(location)
            logger.debug(f"{kind.value} {entity_id} S3 위치: {locator}")

            with stage_context(OPERATION, kind, entity_id, ArchiveStage.DOWNLOAD):
                await self.object_store.download(locator, path)

            with stage_context(OPERATION, kind, entity_id, ArchiveStage.RESTORE):
                await self.dump_engine.restore(path)

        # DB 상태는 덤프 적용이 끝난 뒤에만 변경 (실패 시 아카이브 상태 유지)
        with stage_context(OPERATION, kind, entity_id, ArchiveStage.RESET):
            await self.store.execute(self.queries.reset_archive(kind), entity_id)

        logger.info(f"{kind.value} {entity_id} 복원 완료")

    async def _archived_location(self, kind: EntityKind, entity_id: int) -> str:
        row = await self.store.fetch_one(self.queries.archived_location(kind), entity_id)
        if row is None:
            message = f"{kind.value} {entity_id}이(가) 존재하지 않거나 아카이브되지 않았습니다"
            logger.warning(message)
            raise AlreadyArchivedOrDoesNotExistError(message)
        return row["archive_location"]
