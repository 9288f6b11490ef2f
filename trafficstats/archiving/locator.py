"""
아카이브 위치(locator) 표현

archive_location 컬럼에는 "<bucket>/<key>" 형식의 문자열이 그대로 저장됩니다.
첫 번째 "/"가 버킷과 키의 경계입니다.
"""

import logging
from dataclasses import dataclass

from trafficstats.core.error_handling import LocatorFormatError

logger = logging.getLogger(__name__)

SEPARATOR = "/"


@dataclass(frozen=True)
class ArchiveLocator:
    """S3 버킷과 키로 구성된 아카이브 위치"""

    bucket: str
    key: str

    @classmethod
    def parse(cls, value: str) -> "ArchiveLocator":
        """저장된 문자열을 버킷/키로 분리"""
        position = value.find(SEPARATOR) if value else -1
        if position <= 0 or position == len(value) - 1:
            message = f"s3 위치에서 버킷과 키를 구분할 수 없습니다: {value!r}"
            logger.warning(message)
            raise LocatorFormatError(message, locator=value or "")
        return cls(bucket=value[:position], key=value[position + 1:])

    def __str__(self) -> str:
        return f"{self.bucket}{SEPARATOR}{self.key}"
