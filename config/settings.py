"""
애플리케이션 설정 관리 모듈

환경 변수와 설정 값들을 중앙에서 관리합니다.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# 환경 변수 로드
load_dotenv()


@dataclass
class DatabaseConfig:
    """데이터베이스 설정"""

    host: str
    user: str
    password: str
    database: str
    port: int = 5432
    schema: str = "public"
    pool_min_size: int = 1
    pool_max_size: int = 2

    @property
    def dsn(self) -> str:
        """asyncpg 접속 문자열 (비밀번호 제외)"""
        return f"postgresql://{self.user}@{self.host}:{self.port}/{self.database}"


@dataclass
class AWSConfig:
    """AWS 설정"""

    access_key_id: str
    secret_access_key: str
    region: str
    s3_bucket: str


@dataclass
class PgToolsConfig:
    """PostgreSQL 클라이언트 도구 설정"""

    pg_prefix: str = "/usr/local/bin"
    timeout_seconds: float = 0.0  # 0 이하면 타임아웃 없음

    def binary(self, name: str) -> str:
        """pg_dump, pg_restore 등 실행 파일 경로"""
        if not self.pg_prefix:
            return name
        return os.path.join(self.pg_prefix, name)


@dataclass
class ArchiveConfig:
    """아카이브/복원 오케스트레이션 설정"""

    max_concurrent_cascades: int = 4
    temp_directory: str = ""  # 비어 있으면 시스템 임시 디렉토리


@dataclass
class LoggingConfig:
    """로깅 설정"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_prefix: str = "trafficstats"
    log_directory: str = "logs"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5


@dataclass
class AppSettings:
    """전체 애플리케이션 설정"""

    debug: bool
    environment: str
    database: DatabaseConfig
    aws: AWSConfig
    pg_tools: PgToolsConfig
    archive: ArchiveConfig
    logging: LoggingConfig


def get_database_config() -> DatabaseConfig:
    """데이터베이스 설정 조회"""
    return DatabaseConfig(
        host=os.getenv("DB_HOST", "localhost"),
        user=os.getenv("DB_USER", "postgres"),
        password=os.getenv("DB_PASSWORD", ""),
        database=os.getenv("DB_NAME", "trafficstats_internal"),
        port=int(os.getenv("DB_PORT", "5432")),
        schema=os.getenv("DB_SCHEMA", "public"),
        pool_min_size=int(os.getenv("DB_POOL_MIN", "1")),
        pool_max_size=int(os.getenv("DB_POOL_MAX", "2")),
    )


def get_aws_settings() -> AWSConfig:
    """AWS 설정 조회"""
    return AWSConfig(
        access_key_id=os.getenv("AWS_ACCESS_KEY_ID", ""),
        secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", ""),
        region=os.getenv("AWS_REGION", "ap-southeast-2"),
        s3_bucket=os.getenv("AWS_S3_BUCKET", ""),
    )


def get_pg_tools_config() -> PgToolsConfig:
    """PostgreSQL 도구 설정 조회"""
    return PgToolsConfig(
        pg_prefix=os.getenv("PG_PREFIX", "/usr/local/bin"),
        timeout_seconds=float(os.getenv("PG_TOOL_TIMEOUT", "0")),
    )


def get_archive_config() -> ArchiveConfig:
    """아카이브 설정 조회"""
    return ArchiveConfig(
        max_concurrent_cascades=int(os.getenv("ARCHIVE_MAX_CONCURRENT_CASCADES", "4")),
        temp_directory=os.getenv("ARCHIVE_TEMP_DIR", ""),
    )


def get_logging_config() -> LoggingConfig:
    """로깅 설정 조회"""
    return LoggingConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format=os.getenv(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        file_prefix=os.getenv("LOG_FILE_PREFIX", "trafficstats"),
        log_directory=os.getenv("LOG_DIRECTORY", "logs"),
        max_bytes=int(os.getenv("LOG_MAX_BYTES", "10485760")),
        backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
    )


def get_app_settings() -> AppSettings:
    """전체 애플리케이션 설정 조회"""
    return AppSettings(
        debug=os.getenv("DEBUG", "False").lower() == "true",
        environment=os.getenv("ENVIRONMENT", "development"),
        database=get_database_config(),
        aws=get_aws_settings(),
        pg_tools=get_pg_tools_config(),
        archive=get_archive_config(),
        logging=get_logging_config(),
    )
