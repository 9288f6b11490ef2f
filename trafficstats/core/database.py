"""
비동기 관계형 저장소

asyncpg 커넥션 풀 위에서 파라미터 쿼리와 BEGIN/COMMIT 스크립트 실행을 제공합니다.
동시에 진행되는 모든 오케스트레이션이 하나의 풀을 공유합니다.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence

import asyncpg

from config.settings import DatabaseConfig, get_database_config
from trafficstats.core.error_handling import RelationalError

logger = logging.getLogger(__name__)

# 쿼리 실패, 풀 종료/커넥션 오용, 네트워크 오류
_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def quote_identifier(name: str) -> str:
    """SQL 식별자 인용"""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: Optional[str]) -> str:
    """SQL 문자열 리터럴 인용 (standard_conforming_strings 기준)"""
    if value is None:
        return "NULL"
    return "'" + str(value).replace("'", "''") + "'"


def build_transaction_script(statements: Sequence[str]) -> str:
    """구문 목록을 하나의 BEGIN; ... COMMIT; 스크립트로 조합"""
    lines = ["BEGIN;"]
    for statement in statements:
        statement = statement.strip()
        if not statement:
            continue
        if not statement.endswith(";"):
            statement += ";"
        lines.append(statement)
    lines.append("COMMIT;")
    return "\n".join(lines) + "\n"


class AsyncRelationalStore:
    """asyncpg 커넥션 풀 기반 관계형 저장소"""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or get_database_config()
        self._pool: Optional[asyncpg.pool.Pool] = None

        # 통계
        self.stats = {
            "queries": 0,
            "transactions": 0,
            "errors": 0,
        }

    async def initialize(self) -> None:
        """커넥션 풀 초기화"""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                host=self.config.host,
                user=self.config.user,
                password=self.config.password,
                database=self.config.database,
                port=self.config.port,
                min_size=self.config.pool_min_size,
                max_size=self.config.pool_max_size,
            )
            logger.info(
                f"커넥션 풀 초기화 완료: {self.config.dsn} "
                f"({self.config.pool_min_size}-{self.config.pool_max_size})"
            )
        except _DB_ERRORS as e:
            logger.error(f"커넥션 풀 초기화 실패: {e}")
            raise RelationalError(f"데이터베이스 연결 실패: {e}", cause=e) from e

    async def close(self) -> None:
        """커넥션 풀 종료"""
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info(
            f"커넥션 풀 종료 (쿼리: {self.stats['queries']}, "
            f"트랜잭션: {self.stats['transactions']}, 오류: {self.stats['errors']})"
        )

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[asyncpg.Connection, None]:
        """풀에서 커넥션 획득"""
        if self._pool is None:
            await self.initialize()

        start_time = time.time()
        async with self._pool.acquire() as connection:
            yield connection
        logger.debug(f"커넥션 사용 완료: {time.time() - start_time:.3f}초")

    async def fetch_one(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        """단일 행 조회. 결과가 없으면 None"""
        try:
            async with self.connection() as conn:
                row = await conn.fetchrow(query, *args)
        except _DB_ERRORS as e:
            self._on_error(query, e)
        self.stats["queries"] += 1
        return dict(row) if row is not None else None

    async def fetch_all(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        """다중 행 조회"""
        try:
            async with self.connection() as conn:
                rows = await conn.fetch(query, *args)
        except _DB_ERRORS as e:
            self._on_error(query, e)
        self.stats["queries"] += 1
        return [dict(row) for row in rows]

    async def execute(self, query: str, *args: Any) -> str:
        """결과 없는 파라미터 구문 실행. asyncpg 상태 문자열 반환"""
        try:
            async with self.connection() as conn:
                status = await conn.execute(query, *args)
        except _DB_ERRORS as e:
            self._on_error(query, e)
        self.stats["queries"] += 1
        return status

    async def execute_transaction(self, statements: Sequence[str]) -> None:
        """구문 목록을 BEGIN; ... COMMIT; 스크립트 하나로 원자적으로 실행"""
        script = build_transaction_script(statements)
        logger.debug(f"트랜잭션 스크립트 실행 ({len(statements)}개 구문)")

        try:
            async with self.connection() as conn:
                try:
                    await conn.execute(script)
                except _DB_ERRORS:
                    # 스크립트 중간 실패 시 열린 트랜잭션 정리
                    await self._rollback(conn)
                    raise
        except _DB_ERRORS as e:
            self._on_error(script, e)
        self.stats["transactions"] += 1

    async def _rollback(self, conn: asyncpg.Connection) -> None:
        if conn.is_closed():
            return
        try:
            await conn.execute("ROLLBACK;")
        except _DB_ERRORS as rollback_error:
            logger.warning(f"ROLLBACK 실패: {rollback_error}")

    def _on_error(self, query: str, error: Exception) -> None:
        self.stats["errors"] += 1
        logger.warning(f"쿼리 실행 실패: {error}")
        raise RelationalError(f"쿼리 실행 실패: {error}", query=query, cause=error) from error
