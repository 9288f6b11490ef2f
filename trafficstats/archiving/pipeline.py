"""
오케스트레이션 공용 도구

캐스케이드 실행(동시 실행 상한, 첫 실패 시 중단)과 오류 컨텍스트 보강을 제공합니다.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterable, Iterator, List, Optional, TypeVar

from config.constants import ArchiveStage, EntityKind
from trafficstats.core.error_handling import TrafficStatsError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_cascade(
    entity_ids: Iterable[int],
    operation: Callable[[int], Awaitable[T]],
    limit: Optional[asyncio.Semaphore] = None,
) -> List[T]:
    """형제 엔티티에 operation 을 동시에 적용

    하나라도 실패하면 아직 실행 중인 형제를 취소하고 첫 오류를 다시 발생시킵니다.
    이미 완료된 형제의 상태는 되돌리지 않습니다.
    """
    entity_ids = list(entity_ids)
    if not entity_ids:
        return []

    async def _bounded(entity_id: int) -> T:
        if limit is None:
            return await operation(entity_id)
        async with limit:
            return await operation(entity_id)

    tasks = [asyncio.create_task(_bounded(entity_id)) for entity_id in entity_ids]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        pending = [task for task in tasks if not task.done()]
        if pending:
            logger.warning(f"캐스케이드 실패: 진행 중인 작업 {len(pending)}개 취소")
        for task in pending:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


@contextmanager
def stage_context(
    operation: str, kind: EntityKind, entity_id: int, stage: ArchiveStage
) -> Iterator[None]:
    """발생한 오류에 작업/엔티티/단계 정보를 채움 (가장 안쪽 정보 우선)"""
    try:
        yield
    except TrafficStatsError as e:
        e.with_context(
            operation=operation,
            entity_kind=kind.value,
            entity_id=entity_id,
            stage=stage.value,
        )
        raise
