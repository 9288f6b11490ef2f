"""
아카이브/복원 서비스

설정으로부터 협력 객체(DB 풀, 덤프 엔진, S3, 임시 파일 관리자)를 구성하고
오케스트레이터의 공개 작업을 노출합니다.
"""

import asyncio
import logging
from typing import Optional

from config.constants import EntityKind
from config.settings import AppSettings, get_app_settings
from trafficstats.archiving.archive_orchestrator import ArchiveOrchestrator
from trafficstats.archiving.dependency_resolver import DependencyResolver
from trafficstats.archiving.dump_engine import PgDumpEngine
from trafficstats.archiving.models import ArchiveRecord
from trafficstats.archiving.object_store import S3ObjectStore
from trafficstats.archiving.queries import ArchiveQueries
from trafficstats.archiving.restore_orchestrator import RestoreOrchestrator
from trafficstats.archiving.temp_artifacts import TempArtifactManager
from trafficstats.core.database import AsyncRelationalStore

logger = logging.getLogger(__name__)


class ArchiveRestoreService:
    """보고서/분석 아카이브 및 복원 진입점"""

    def __init__(
        self,
        store: AsyncRelationalStore,
        dump_engine: PgDumpEngine,
        object_store: S3ObjectStore,
        temp_artifacts: TempArtifactManager,
        bucket: str,
        database: str,
        schema: str = "public",
        max_concurrent_cascades: int = 4,
    ):
        self.store = store
        self.queries = ArchiveQueries(schema)
        self.resolver = DependencyResolver(store, self.queries)

        # 두 오케스트레이터가 같은 상한을 공유
        cascade_limit = (
            asyncio.Semaphore(max_concurrent_cascades) if max_concurrent_cascades > 0 else None
        )

        self.archiver = ArchiveOrchestrator(
            store=store,
            queries=self.queries,
            resolver=self.resolver,
            dump_engine=dump_engine,
            object_store=object_store,
            temp_artifacts=temp_artifacts,
            bucket=bucket,
            database=database,
            cascade_limit=cascade_limit,
        )
        self.restorer = RestoreOrchestrator(
            store=store,
            queries=self.queries,
            resolver=self.resolver,
            dump_engine=dump_engine,
            object_store=object_store,
            temp_artifacts=temp_artifacts,
            cascade_limit=cascade_limit,
        )

    @classmethod
    async def create(cls, settings: Optional[AppSettings] = None) -> "ArchiveRestoreService":
        """설정으로 서비스를 구성하고 커넥션 풀 초기화"""
        settings = settings or get_app_settings()

        store = AsyncRelationalStore(settings.database)
        await store.initialize()

        service = cls(
            store=store,
            dump_engine=PgDumpEngine(settings.database, settings.pg_tools),
            object_store=S3ObjectStore(settings.aws),
            temp_artifacts=TempArtifactManager(settings.archive.temp_directory or None),
            bucket=settings.aws.s3_bucket,
            database=settings.database.database,
            schema=settings.database.schema,
            max_concurrent_cascades=settings.archive.max_concurrent_cascades,
        )
        logger.info(
            f"아카이브 서비스 초기화 완료 (버킷: {settings.aws.s3_bucket}, "
            f"스키마: {settings.database.schema})"
        )
        return service

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> "ArchiveRestoreService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def archive_report(self, report_id: int) -> str:
        return await self.archiver.archive_report(report_id)

    async def archive_analysis(self, analysis_id: int) -> str:
        return await self.archiver.archive_analysis(analysis_id)

    async def restore_report(self, report_id: int) -> None:
        await self.restorer.restore_report(report_id)

    async def restore_analysis(self, analysis_id: int) -> None:
        await self.restorer.restore_analysis(analysis_id)

    async def get_record(self, kind: EntityKind, entity_id: int) -> Optional[ArchiveRecord]:
        """엔티티의 현재 아카이브 상태. 행이 없으면 None"""
        row = await self.store.fetch_one(self.queries.select_record(kind), entity_id)
        if row is None:
            return None
        return ArchiveRecord.from_row(kind, row)
