"""
PostgreSQL 덤프 엔진

pg_dump / pg_restore 를 asyncio 서브프로세스로 실행합니다.
비밀번호는 PGPASSWORD 환경 변수로만 전달하고 명령행에는 남기지 않습니다.
"""

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Sequence

from config.constants import CLEANUP_STATEMENT_PATTERNS, EntityKind
from config.settings import DatabaseConfig, PgToolsConfig, get_database_config, get_pg_tools_config
from trafficstats.core.error_handling import ExternalToolError

logger = logging.getLogger(__name__)

_CLEANUP_PATTERNS = [re.compile(pattern) for pattern in CLEANUP_STATEMENT_PATTERNS]
_COPY_FROM_STDIN = re.compile(r"^COPY .* FROM stdin;$")


def parse_cleanup_statements(script: str) -> List[str]:
    """pg_restore --clean 스크립트에서 DROP 계열 구문만 추출

    COPY ... FROM stdin; 부터 \\. 까지의 데이터 행은 구문으로 취급하지 않습니다.
    """
    statements = []
    in_copy_data = False
    for line in script.splitlines():
        if in_copy_data:
            in_copy_data = line != "\\."
            continue
        line = line.strip()
        if _COPY_FROM_STDIN.match(line):
            in_copy_data = True
            continue
        if line and any(pattern.search(line) for pattern in _CLEANUP_PATTERNS):
            statements.append(line)
    return statements


class PgDumpEngine:
    """pg_dump / pg_restore 기반 덤프 엔진"""

    def __init__(
        self,
        db_config: Optional[DatabaseConfig] = None,
        tools_config: Optional[PgToolsConfig] = None,
    ):
        self.db_config = db_config or get_database_config()
        self.tools_config = tools_config or get_pg_tools_config()

    def _connection_args(self) -> List[str]:
        return [
            "-h",
            self.db_config.host,
            "-p",
            str(self.db_config.port),
            "-U",
            self.db_config.user,
            "-d",
            self.db_config.database,
        ]

    def _env(self) -> dict:
        env = os.environ.copy()
        env["PGPASSWORD"] = self.db_config.password
        return env

    async def _run(self, cmd: Sequence[str]) -> str:
        """명령 실행 후 표준 출력 반환. 실패 시 ExternalToolError"""
        logger.debug(f"명령 실행: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env(),
            )
        except OSError as e:
            logger.error(f"{cmd[0]} 실행 불가: {e}")
            raise ExternalToolError(f"{cmd[0]} 실행 불가: {e}", command=cmd, cause=e) from e

        timeout = self.tools_config.timeout_seconds
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout if timeout > 0 else None
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            logger.error(f"{cmd[0]} 타임아웃 ({timeout}초)")
            raise ExternalToolError(
                f"{cmd[0]} 타임아웃 ({timeout}초)", command=cmd, cause=e
            ) from e

        stderr_text = stderr.decode("utf-8", errors="replace") if stderr else ""
        if process.returncode != 0:
            logger.warning(f"{cmd[0]} 실패 (종료 코드 {process.returncode}): {stderr_text}")
            raise ExternalToolError(
                f"{cmd[0]} 실패 (종료 코드 {process.returncode})",
                command=cmd,
                returncode=process.returncode,
                stderr=stderr_text,
            )

        return stdout.decode("utf-8", errors="replace") if stdout else ""

    async def dump(self, path: Path, tables: Sequence[str]) -> Path:
        """지정한 테이블 패턴을 custom 포맷으로 덤프"""
        cmd = [
            self.tools_config.binary("pg_dump"),
            *self._connection_args(),
            "-f",
            str(path),
            "-c",
            "-Fc",
        ]
        for table in tables:
            cmd.extend(["-t", table])

        logger.debug(f"{' '.join(tables)} 를 {path} 로 덤프")
        await self._run(cmd)
        logger.debug(f"{path} 덤프 완료")
        return path

    async def dump_entity(self, kind: EntityKind, entity_id: int, path: Path) -> Path:
        """보고서/분석이 소유한 테이블 덤프"""
        return await self.dump(path, kind.table_patterns(self.db_config.schema, entity_id))

    async def restore(self, path: Path) -> Path:
        """덤프 파일을 데이터베이스에 복원"""
        cmd = [
            self.tools_config.binary("pg_restore"),
            *self._connection_args(),
            "--clean",
            "--if-exists",
            "-Fc",
            str(path),
        ]
        logger.info(f"{path} pg_restore 시작")
        await self._run(cmd)
        logger.debug(f"{path} pg_restore 완료")
        return path

    async def extract_cleanup_statements(self, path: Path) -> List[str]:
        """덤프에 포함된 객체를 제거하는 DROP 구문 목록"""
        # 테이블 데이터(COPY) 없이 스키마 구문만 출력
        cmd = [
            self.tools_config.binary("pg_restore"),
            "-Fc",
            "-c",
            "--schema-only",
            str(path),
        ]
        logger.debug(f"{path} 에서 정리 구문 추출")
        script = await self._run(cmd)
        statements = parse_cleanup_statements(script)
        logger.debug(f"{path} 에서 정리 구문 {len(statements)}개 추출")
        return statements
