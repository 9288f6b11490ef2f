"""
아카이브 및 복원 시스템

보고서/분석 DB 객체의 S3 아카이브와 복원, 의존성 캐스케이드를 담당하는 모듈입니다.
"""

from trafficstats.archiving.locator import ArchiveLocator

from trafficstats.archiving.models import ArchiveRecord, PreparedArchive

from trafficstats.archiving.temp_artifacts import TempArtifactManager

from trafficstats.archiving.dependency_resolver import DependencyResolver

from trafficstats.archiving.archive_orchestrator import ArchiveOrchestrator

from trafficstats.archiving.restore_orchestrator import RestoreOrchestrator

from trafficstats.archiving.service import ArchiveRestoreService

__all__ = [
    # 모델
    'ArchiveLocator',
    'ArchiveRecord',
    'PreparedArchive',

    # 코어
    'TempArtifactManager',
    'DependencyResolver',
    'ArchiveOrchestrator',
    'RestoreOrchestrator',

    # 서비스
    'ArchiveRestoreService',
]
