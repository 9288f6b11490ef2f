"""
설정 및 상수 단위 테스트
"""

from config.constants import EntityKind
from config.settings import (
    PgToolsConfig,
    get_app_settings,
    get_archive_config,
    get_database_config,
    get_pg_tools_config,
)


class TestSettings:
    """환경 변수 기반 설정 테스트"""

    def test_database_config_from_env(self, monkeypatch):
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("DB_PORT", "5433")
        monkeypatch.setenv("DB_NAME", "trafficstats_test")
        monkeypatch.setenv("DB_SCHEMA", "stats")
        monkeypatch.setenv("DB_PASSWORD", "s3cret")

        config = get_database_config()

        assert config.host == "db.internal"
        assert config.port == 5433
        assert config.database == "trafficstats_test"
        assert config.schema == "stats"
        assert "s3cret" not in config.dsn

    def test_defaults(self, monkeypatch):
        for name in ("DB_NAME", "DB_SCHEMA", "ARCHIVE_MAX_CONCURRENT_CASCADES", "PG_PREFIX",
                     "PG_TOOL_TIMEOUT", "AWS_REGION"):
            monkeypatch.delenv(name, raising=False)

        settings = get_app_settings()

        assert settings.database.database == "trafficstats_internal"
        assert settings.database.schema == "public"
        assert settings.archive.max_concurrent_cascades == 4
        assert settings.pg_tools.binary("pg_dump") == "/usr/local/bin/pg_dump"
        assert settings.pg_tools.timeout_seconds == 0.0
        assert settings.aws.region == "ap-southeast-2"

    def test_archive_and_tools_config(self, monkeypatch):
        monkeypatch.setenv("ARCHIVE_MAX_CONCURRENT_CASCADES", "8")
        monkeypatch.setenv("ARCHIVE_TEMP_DIR", "/var/tmp/trafficstats")
        monkeypatch.setenv("PG_PREFIX", "/usr/lib/postgresql/15/bin")
        monkeypatch.setenv("PG_TOOL_TIMEOUT", "3600")

        archive = get_archive_config()
        tools = get_pg_tools_config()

        assert archive.max_concurrent_cascades == 8
        assert archive.temp_directory == "/var/tmp/trafficstats"
        assert tools.binary("pg_restore") == "/usr/lib/postgresql/15/bin/pg_restore"
        assert tools.timeout_seconds == 3600.0

    def test_empty_prefix_uses_path_lookup(self):
        assert PgToolsConfig(pg_prefix="").binary("pg_dump") == "pg_dump"


class TestEntityKind:
    """엔티티 종류 상수 테스트"""

    def test_table_patterns(self):
        assert EntityKind.REPORT.table_patterns("public", 74) == [
            "public.segment_74",
            "public.stats_74_*",
        ]
        assert EntityKind.ANALYSIS.table_patterns("public", 4) == ["public.analysis_4_*"]

    def test_object_key(self):
        assert (
            EntityKind.REPORT.object_key("trafficstats_internal", "public", 74)
            == "trafficstats_internal/public/report_74.dump"
        )
        assert EntityKind.ANALYSIS.object_key("db", "stats", 4) == "db/stats/analysis_4.dump"
