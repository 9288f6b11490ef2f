"""
S3 오브젝트 스토어

boto3 클라이언트 호출은 동기이므로 asyncio.to_thread 로 작업 스레드에서 실행합니다.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from config.constants import UPLOAD_MAX_CONCURRENCY, UPLOAD_PART_SIZE_BYTES
from config.settings import AWSConfig, get_aws_settings
from trafficstats.archiving.locator import ArchiveLocator
from trafficstats.core.error_handling import TransferError

logger = logging.getLogger(__name__)


class S3ObjectStore:
    """덤프 파일 업로드/다운로드"""

    def __init__(self, aws_config: Optional[AWSConfig] = None, client: Any = None):
        self.aws_config = aws_config or get_aws_settings()
        self._client = client
        self.transfer_config = TransferConfig(
            multipart_chunksize=UPLOAD_PART_SIZE_BYTES,
            max_concurrency=UPLOAD_MAX_CONCURRENCY,
        )

    @property
    def client(self) -> Any:
        """S3 클라이언트 (최초 사용 시 생성)"""
        if self._client is None:
            kwargs = {"region_name": self.aws_config.region}
            # 키가 없으면 boto3 기본 자격 증명 체인 사용
            if self.aws_config.access_key_id and self.aws_config.secret_access_key:
                kwargs["aws_access_key_id"] = self.aws_config.access_key_id
                kwargs["aws_secret_access_key"] = self.aws_config.secret_access_key
            self._client = boto3.client("s3", **kwargs)
        return self._client

    async def upload(self, path: Path, bucket: str, key: str) -> ArchiveLocator:
        """파일을 bucket/key 로 업로드하고 위치 반환"""
        logger.debug(f"S3 객체 {bucket}/{key} 업로드 시작 ({path})")
        try:
            await asyncio.to_thread(
                self.client.upload_file,
                str(path),
                bucket,
                key,
                Config=self.transfer_config,
            )
        except (BotoCoreError, ClientError, OSError) as e:
            logger.warning(f"S3 객체 {bucket}/{key} 업로드 실패 ({path}): {e}")
            raise TransferError(
                f"S3 업로드 실패: {bucket}/{key}: {e}", bucket=bucket, key=key, cause=e
            ) from e

        logger.debug(f"S3 객체 {bucket}/{key} 업로드 완료")
        return ArchiveLocator(bucket=bucket, key=key)

    async def download(self, locator: ArchiveLocator, path: Path) -> Path:
        """위치의 객체를 path 로 다운로드"""
        logger.debug(f"S3 객체 {locator} 다운로드 시작 ({path})")
        try:
            await asyncio.to_thread(
                self.client.download_file, locator.bucket, locator.key, str(path)
            )
        except (BotoCoreError, ClientError, OSError) as e:
            logger.warning(f"S3 객체 {locator} 다운로드 실패: {e}")
            raise TransferError(
                f"S3 다운로드 실패: {locator}: {e}",
                bucket=locator.bucket,
                key=locator.key,
                cause=e,
            ) from e

        logger.debug(f"S3 객체 {locator} 다운로드 완료 ({path})")
        return path
