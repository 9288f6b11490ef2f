"""
임시 아티팩트 관리

업로드 전 덤프를 담거나 다운로드한 덤프를 담는 임시 파일의 수명을 관리합니다.
경로는 생성만 하고 파일은 만들지 않으며, 어떤 방식으로 끝나든 정확히 한 번 삭제합니다.
"""

import logging
import tempfile
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

import aiofiles.os

from config.constants import TEMP_FILE_PREFIX, TEMP_FILE_SUFFIX

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TempArtifactManager:
    """임시 덤프 파일 경로의 생성과 정리"""

    def __init__(
        self,
        directory: Optional[str] = None,
        prefix: str = TEMP_FILE_PREFIX,
        suffix: str = TEMP_FILE_SUFFIX,
    ):
        self.directory = Path(directory or tempfile.gettempdir())
        self.prefix = prefix
        self.suffix = suffix

    def generate_path(self) -> Path:
        """충돌하지 않는 임시 파일 경로 생성"""
        while True:
            path = self.directory / f"{self.prefix}{uuid.uuid4().hex}{self.suffix}"
            if not path.exists():
                return path

    @asynccontextmanager
    async def artifact(self) -> AsyncIterator[Path]:
        """임시 경로를 제공하고 종료 시 삭제"""
        path = self.generate_path()
        logger.debug(f"임시 파일 할당: {path}")
        try:
            yield path
        finally:
            await self.remove(path)

    async def with_temp_artifact(self, fn: Callable[[Path], Awaitable[T]]) -> T:
        """fn(path)을 실행하고 결과와 무관하게 임시 파일 삭제"""
        async with self.artifact() as path:
            return await fn(path)

    async def remove(self, path: Path) -> None:
        """임시 파일 삭제. 이미 없으면 무시"""
        try:
            await aiofiles.os.remove(path)
            logger.debug(f"임시 파일 삭제 완료: {path}")
        except FileNotFoundError:
            logger.debug(f"임시 파일이 이미 없음: {path}")
        except OSError as e:
            # 원래 작업의 결과/오류를 가리지 않도록 경고만 남김
            logger.warning(f"임시 파일 삭제 실패 [{path}]: {e}")
