"""
테스트 공용 픽스처

실제 PostgreSQL / pg_dump / S3 대신 메모리 상에서 동작하는 대역을 제공합니다.
report, analysis, analysis_report 테이블과 엔티티가 소유한 물리 테이블을 흉내 냅니다.
"""

import copy
import json
import re
from datetime import datetime
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from config.constants import EntityKind
from trafficstats.archiving.locator import ArchiveLocator
from trafficstats.archiving.queries import ArchiveQueries
from trafficstats.archiving.service import ArchiveRestoreService
from trafficstats.archiving.temp_artifacts import TempArtifactManager
from trafficstats.core.error_handling import (
    ExternalToolError,
    RelationalError,
    TransferError,
)

BUCKET = "trafficstats-archive"
DATABASE = "trafficstats_internal"
SCHEMA = "public"

_DROP_TABLE = re.compile(r"^DROP TABLE (?:IF EXISTS )?(?P<name>\S+);$")
_MARK_ARCHIVED = re.compile(
    r'^UPDATE "[^"]+"\."(?P<table>report|analysis)" '
    r"SET archive_location = '(?P<location>(?:[^']|'')*)', "
    r"archive_timestamp = now\(\), restore_timestamp = NULL "
    r"WHERE id = (?P<id>\d+);$"
)


class _FailureInjection:
    """이름으로 등록한 예외를 해당 호출 시점에 발생"""

    def __init__(self):
        self.failures: Dict[str, BaseException] = {}

    def fail_on(self, name: str, error: BaseException) -> None:
        self.failures[name] = error

    def _check(self, name: str) -> None:
        if name in self.failures:
            raise self.failures[name]


class FakeRelationalStore(_FailureInjection):
    """ArchiveQueries 구문을 해석하는 메모리 저장소"""

    def __init__(self, schema: str = SCHEMA):
        super().__init__()
        self.schema = schema
        self.queries = ArchiveQueries(schema)
        self.rows: Dict[EntityKind, Dict[int, Dict[str, Any]]] = {
            EntityKind.REPORT: {},
            EntityKind.ANALYSIS: {},
        }
        self.links: set = set()  # (analysis, report)
        self.tables: Dict[str, List[List[Any]]] = {}
        self.transactions: List[List[str]] = []
        self.closed = False

    # ----- 시드 데이터 -----

    def add_report(self, report_id: int) -> None:
        self.rows[EntityKind.REPORT][report_id] = self._new_row()
        self.tables[f"{self.schema}.segment_{report_id}"] = [[report_id, "segment"]]
        self.tables[f"{self.schema}.stats_{report_id}_2019"] = [[report_id, 2019, 120]]
        self.tables[f"{self.schema}.stats_{report_id}_2020"] = [[report_id, 2020, 98]]

    def add_analysis(self, analysis_id: int, reports: Tuple[int, ...] = ()) -> None:
        self.rows[EntityKind.ANALYSIS][analysis_id] = self._new_row()
        self.tables[f"{self.schema}.analysis_{analysis_id}_result"] = [[analysis_id, "result"]]
        for report_id in reports:
            self.links.add((analysis_id, report_id))

    @staticmethod
    def _new_row() -> Dict[str, Any]:
        return {"archive_location": None, "archive_timestamp": None, "restore_timestamp": None}

    def location_of(self, kind: EntityKind, entity_id: int) -> Optional[str]:
        return self.rows[kind][entity_id]["archive_location"]

    def tables_of(self, kind: EntityKind, entity_id: int) -> Dict[str, List[List[Any]]]:
        patterns = kind.table_patterns(self.schema, entity_id)
        return {
            name: rows
            for name, rows in self.tables.items()
            if any(fnmatchcase(name, pattern) for pattern in patterns)
        }

    # ----- AsyncRelationalStore 인터페이스 -----

    async def fetch_one(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        self._check("fetch_one")
        entity_id = args[0]
        for kind in EntityKind:
            row = self.rows[kind].get(entity_id)
            if query == self.queries.validate_present(kind):
                if row is None or row["archive_location"] is not None:
                    return None
                return {"id": entity_id}
            if query == self.queries.archived_location(kind):
                if row is None or row["archive_location"] is None:
                    return None
                return {"archive_location": row["archive_location"]}
            if query == self.queries.select_record(kind):
                return dict(row, id=entity_id) if row is not None else None
        raise AssertionError(f"예상하지 못한 쿼리: {query}")

    async def fetch_all(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        self._check("fetch_all")
        entity_id = args[0]
        if query == self.queries.dependent_analyses:
            analyses = self.rows[EntityKind.ANALYSIS]
            return [
                {"analysis": analysis}
                for analysis, report in sorted(self.links)
                if report == entity_id and analyses[analysis]["archive_location"] is None
            ]
        if query == self.queries.needed_reports:
            reports = self.rows[EntityKind.REPORT]
            return [
                {"report": report}
                for analysis, report in sorted(self.links)
                if analysis == entity_id and reports[report]["archive_location"] is not None
            ]
        raise AssertionError(f"예상하지 못한 쿼리: {query}")

    async def execute(self, query: str, *args: Any) -> str:
        self._check("execute")
        for kind in EntityKind:
            if query == self.queries.reset_archive(kind):
                row = self.rows[kind][args[0]]
                row.update(
                    archive_location=None,
                    archive_timestamp=None,
                    restore_timestamp=datetime.now(),
                )
                return "UPDATE 1"
        raise AssertionError(f"예상하지 못한 구문: {query}")

    async def execute_transaction(self, statements: List[str]) -> None:
        self.transactions.append(list(statements))
        self._check("execute_transaction")

        # 모든 구문이 성공해야 반영
        tables = dict(self.tables)
        rows = copy.deepcopy(self.rows)
        for statement in statements:
            self._apply(statement, tables, rows)
        self.tables, self.rows = tables, rows

    def _apply(self, statement: str, tables: dict, rows: dict) -> None:
        match = _DROP_TABLE.match(statement)
        if match:
            tables.pop(match.group("name"), None)
            return

        match = _MARK_ARCHIVED.match(statement)
        if match:
            kind = EntityKind(match.group("table"))
            row = rows[kind][int(match.group("id"))]
            row.update(
                archive_location=match.group("location").replace("''", "'"),
                archive_timestamp=datetime.now(),
                restore_timestamp=None,
            )
            return

        raise RelationalError(f"지원하지 않는 구문: {statement}", query=statement)

    async def close(self) -> None:
        self.closed = True


class FakeDumpEngine(_FailureInjection):
    """물리 테이블 내용을 JSON 파일로 덤프/복원"""

    def __init__(self, store: FakeRelationalStore):
        super().__init__()
        self.store = store
        self.paths: List[Path] = []
        self.dumped: List[Tuple[EntityKind, int]] = []
        self.restored: List[List[str]] = []

    async def dump_entity(self, kind: EntityKind, entity_id: int, path: Path) -> Path:
        self.paths.append(Path(path))
        Path(path).write_text(json.dumps(self.store.tables_of(kind, entity_id)))
        self._check("dump")
        self._check(f"dump_{kind.value}")
        self.dumped.append((kind, entity_id))
        return path

    async def restore(self, path: Path) -> Path:
        self.paths.append(Path(path))
        self._check("restore")
        tables = json.loads(Path(path).read_text())
        self.store.tables.update(tables)
        self.restored.append(sorted(tables))
        return path

    async def extract_cleanup_statements(self, path: Path) -> List[str]:
        self._check("extract_cleanup")
        tables = json.loads(Path(path).read_text())
        return [f"DROP TABLE {name};" for name in sorted(tables)]


class FakeObjectStore(_FailureInjection):
    """메모리 S3"""

    def __init__(self):
        super().__init__()
        self.objects: Dict[str, bytes] = {}

    async def upload(self, path: Path, bucket: str, key: str) -> ArchiveLocator:
        self._check("upload")
        locator = ArchiveLocator(bucket=bucket, key=key)
        self.objects[str(locator)] = Path(path).read_bytes()
        return locator

    async def download(self, locator: ArchiveLocator, path: Path) -> Path:
        self._check("download")
        data = self.objects.get(str(locator))
        if data is None:
            raise TransferError(
                f"객체 없음: {locator}", bucket=locator.bucket, key=locator.key
            )
        Path(path).write_bytes(data)
        return path


@pytest.fixture
def store() -> FakeRelationalStore:
    """보고서 1~3, 분석 10(1), 11(1, 2), 12(3)"""
    fake = FakeRelationalStore()
    for report_id in (1, 2, 3):
        fake.add_report(report_id)
    fake.add_analysis(10, reports=(1,))
    fake.add_analysis(11, reports=(1, 2))
    fake.add_analysis(12, reports=(3,))
    return fake


@pytest.fixture
def dump_engine(store) -> FakeDumpEngine:
    return FakeDumpEngine(store)


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def temp_dir(tmp_path) -> Path:
    directory = tmp_path / "artifacts"
    directory.mkdir()
    return directory


@pytest.fixture
def temp_artifacts(temp_dir) -> TempArtifactManager:
    return TempArtifactManager(str(temp_dir))


@pytest.fixture
def service(store, dump_engine, object_store, temp_artifacts) -> ArchiveRestoreService:
    return ArchiveRestoreService(
        store=store,
        dump_engine=dump_engine,
        object_store=object_store,
        temp_artifacts=temp_artifacts,
        bucket=BUCKET,
        database=DATABASE,
        schema=SCHEMA,
        max_concurrent_cascades=2,
    )


def external_tool_error(name: str = "pg_dump") -> ExternalToolError:
    return ExternalToolError(f"{name} 실패", command=[name], returncode=1, stderr="boom")
