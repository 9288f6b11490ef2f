"""
통합 오류 처리 프레임워크

아카이브/복원 파이프라인 전체에서 일관된 오류 분류와 컨텍스트를 제공합니다.
"""

import sys
import traceback
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Sequence
from dataclasses import dataclass, field


class ErrorSeverity(Enum):
    """오류 심각도 수준"""

    CRITICAL = "critical"  # 데이터 정합성 위험
    HIGH = "high"  # 작업 실패
    MEDIUM = "medium"  # 재시도 가능
    LOW = "low"  # 경미한 문제


class ErrorCategory(Enum):
    """오류 카테고리"""

    STATE_ERROR = "state"  # 엔티티 상태 관련
    EXTERNAL_TOOL_ERROR = "external_tool"  # pg_dump/pg_restore 관련
    TRANSFER_ERROR = "transfer"  # 오브젝트 스토리지 전송 관련
    FORMAT_ERROR = "format"  # 저장된 값 형식 관련
    DATABASE_ERROR = "database"  # 데이터베이스 관련
    SYSTEM_ERROR = "system"  # 시스템 관련


@dataclass
class ErrorContext:
    """오류 컨텍스트 정보"""

    error_id: str = ""
    operation: str = ""
    entity_kind: str = ""
    entity_id: Optional[int] = None
    stage: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환 (JSON 직렬화용)"""
        return {
            "error_id": self.error_id,
            "operation": self.operation,
            "entity_kind": self.entity_kind,
            "entity_id": self.entity_id,
            "stage": self.stage,
            "metadata": self._sanitize_metadata(self.metadata),
            "timestamp": self.timestamp.isoformat(),
        }

    def _sanitize_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """민감 정보 제거"""
        sanitized = {}
        sensitive_keys = {"password", "secret", "token", "access_key"}

        for key, value in metadata.items():
            if any(sensitive_key in key.lower() for sensitive_key in sensitive_keys):
                sanitized[key] = "***"
            else:
                sanitized[key] = value

        return sanitized


class TrafficStatsError(Exception):
    """프로젝트 기본 예외 클래스"""

    def __init__(
        self,
        message: str,
        error_code: str = "TS_UNKNOWN",
        category: ErrorCategory = ErrorCategory.SYSTEM_ERROR,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: Optional[ErrorContext] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause

        # 고유 오류 ID 생성
        if not self.context.error_id:
            self.context.error_id = self._generate_error_id()

    def _generate_error_id(self) -> str:
        """고유 오류 ID 생성"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{self.error_code}_{timestamp}_{id(self) % 10000:04d}"

    def with_context(self, **kwargs) -> "TrafficStatsError":
        """비어 있는 컨텍스트 항목만 채워 넣음 (호출 측에서 엔티티/단계 보강)"""
        for key, value in kwargs.items():
            if value is None:
                continue
            if getattr(self.context, key, None) in (None, ""):
                setattr(self.context, key, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            "error_id": self.context.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "traceback": traceback.format_exc() if sys.exc_info()[0] else None,
        }


# ========== 특화된 예외 클래스들 ==========


class AlreadyArchivedOrDoesNotExistError(TrafficStatsError):
    """검증 조회 결과가 없음: 엔티티가 없거나 이미 목표 상태임"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        super().__init__(
            message,
            error_code="TS_STATE_CONFLICT",
            category=ErrorCategory.STATE_ERROR,
            **kwargs,
        )


class ExternalToolError(TrafficStatsError):
    """pg_dump / pg_restore 프로세스 실패"""

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = "",
        **kwargs,
    ):
        super().__init__(
            message,
            error_code="TS_EXTERNAL_TOOL_ERROR",
            category=ErrorCategory.EXTERNAL_TOOL_ERROR,
            **kwargs,
        )
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        self.context.metadata.update(
            {
                "command": self.command[0] if self.command else "",
                "returncode": returncode,
                "stderr": stderr[-500:] if stderr else "",
            }
        )


class TransferError(TrafficStatsError):
    """오브젝트 스토리지 업로드/다운로드 실패"""

    def __init__(self, message: str, bucket: str = "", key: str = "", **kwargs):
        super().__init__(
            message,
            error_code="TS_TRANSFER_ERROR",
            category=ErrorCategory.TRANSFER_ERROR,
            **kwargs,
        )
        self.bucket = bucket
        self.key = key
        self.context.metadata.update({"bucket": bucket, "key": key})


class LocatorFormatError(TrafficStatsError):
    """archive_location 값에 유효한 버킷/키 경계가 없음"""

    def __init__(self, message: str, locator: str = "", **kwargs):
        super().__init__(
            message,
            error_code="TS_LOCATOR_FORMAT_ERROR",
            category=ErrorCategory.FORMAT_ERROR,
            **kwargs,
        )
        self.locator = locator
        self.context.metadata.update({"locator": locator})


class RelationalError(TrafficStatsError):
    """그 밖의 쿼리/구문 실행 실패 (최종 커밋 포함)"""

    def __init__(self, message: str, query: str = "", **kwargs):
        super().__init__(
            message,
            error_code="TS_DB_ERROR",
            category=ErrorCategory.DATABASE_ERROR,
            **kwargs,
        )
        self.query = query
        self.context.metadata.update(
            {"query": query[:200] + "..." if len(query) > 200 else query}
        )
