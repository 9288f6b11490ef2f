"""
로깅 설정 및 관리 모듈

애플리케이션 전체의 로깅을 중앙에서 관리합니다.
"""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Optional

from config.settings import LoggingConfig, get_logging_config


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """루트 로거에 콘솔/파일/에러 파일 핸들러 설정"""
    config = config or get_logging_config()
    level = getattr(logging, config.level.upper(), logging.INFO)

    log_dir = Path(config.log_directory)
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    # 콘솔 핸들러
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # 파일 핸들러 (일반 로그)
    log_file = log_dir / f"{config.file_prefix}_{datetime.now().strftime('%Y%m%d')}.log"
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # 에러 로그 파일 핸들러
    error_log_file = (
        log_dir / f"{config.file_prefix}_error_{datetime.now().strftime('%Y%m%d')}.log"
    )
    error_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root_logger.addHandler(error_handler)

    return root_logger
