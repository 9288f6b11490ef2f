"""
보고서-분석 의존성 조회

analysis_report 연결 테이블을 현재 아카이브 상태로 필터링해 캐스케이드 대상을 찾습니다.
"""

import logging
from typing import Set

from trafficstats.archiving.queries import ArchiveQueries
from trafficstats.core.database import AsyncRelationalStore

logger = logging.getLogger(__name__)


class DependencyResolver:
    """캐스케이드 후보 조회기 (읽기 전용)"""

    def __init__(self, store: AsyncRelationalStore, queries: ArchiveQueries):
        self.store = store
        self.queries = queries

    async def dependent_analyses(self, report_id: int) -> Set[int]:
        """보고서를 참조하는 아카이브되지 않은 분석 id 집합"""
        logger.debug(f"보고서 {report_id}를 참조하는 분석 조회")
        try:
            rows = await self.store.fetch_all(self.queries.dependent_analyses, report_id)
        except Exception as e:
            logger.warning(f"보고서 {report_id}의 의존 분석 조회 실패: {e}")
            raise

        results = {row["analysis"] for row in rows}
        logger.debug(f"아카이브되지 않은 분석 {len(results)}개가 보고서 {report_id}를 참조")
        return results

    async def needed_reports(self, analysis_id: int) -> Set[int]:
        """분석이 참조하는 아카이브된 보고서 id 집합"""
        logger.debug(f"분석 {analysis_id}에 필요한 보고서 조회")
        try:
            rows = await self.store.fetch_all(self.queries.needed_reports, analysis_id)
        except Exception as e:
            logger.warning(f"분석 {analysis_id}의 필요 보고서 조회 실패: {e}")
            raise

        results = {row["report"] for row in rows}
        logger.debug(f"분석 {analysis_id}가 참조하는 아카이브된 보고서 {len(results)}개")
        return results
