#!/usr/bin/env python3
"""
보고서/분석 아카이브 및 복원 실행 도구

사용 예:
  python run_archive_restore.py archive-report 74
  python run_archive_restore.py restore-analysis 4
  python run_archive_restore.py status report 74
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from config.constants import EntityKind
from config.settings import get_app_settings
from trafficstats.archiving.service import ArchiveRestoreService
from trafficstats.core.error_handling import TrafficStatsError
from trafficstats.core.logger import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="trafficstats 보고서/분석 아카이브 및 복원")
    subparsers = parser.add_subparsers(dest="command", required=True)

    archive_report = subparsers.add_parser("archive-report", help="보고서 아카이브 (의존 분석 포함)")
    archive_report.add_argument("id", type=int, help="보고서 id")

    archive_analysis = subparsers.add_parser("archive-analysis", help="분석 단독 아카이브")
    archive_analysis.add_argument("id", type=int, help="분석 id")

    restore_report = subparsers.add_parser("restore-report", help="보고서 복원")
    restore_report.add_argument("id", type=int, help="보고서 id")

    restore_analysis = subparsers.add_parser("restore-analysis", help="분석 복원 (필요한 보고서 포함)")
    restore_analysis.add_argument("id", type=int, help="분석 id")

    status = subparsers.add_parser("status", help="아카이브 상태 조회")
    status.add_argument("kind", choices=[kind.value for kind in EntityKind], help="엔티티 종류")
    status.add_argument("id", type=int, help="엔티티 id")

    return parser


async def run_command(service: ArchiveRestoreService, args: argparse.Namespace) -> dict:
    """명령 실행 후 출력할 결과 반환"""
    if args.command == "archive-report":
        location = await service.archive_report(args.id)
        return {"report": args.id, "archive_location": location}
    if args.command == "archive-analysis":
        location = await service.archive_analysis(args.id)
        return {"analysis": args.id, "archive_location": location}
    if args.command == "restore-report":
        await service.restore_report(args.id)
        return {"report": args.id, "restored": True}
    if args.command == "restore-analysis":
        await service.restore_analysis(args.id)
        return {"analysis": args.id, "restored": True}

    kind = EntityKind(args.kind)
    record = await service.get_record(kind, args.id)
    if record is None:
        return {"kind": kind.value, "id": args.id, "exists": False}
    return record.to_dict()


async def main(argv: Optional[List[str]] = None) -> int:
    """메인 함수"""
    args = build_parser().parse_args(argv)
    settings = get_app_settings()
    setup_logging(settings.logging)

    try:
        service = await ArchiveRestoreService.create(settings)
    except TrafficStatsError as e:
        logger.error(f"서비스 초기화 실패: {e}")
        print(json.dumps(e.to_dict(), ensure_ascii=False, default=str))
        return 1

    async with service:
        try:
            result = await run_command(service, args)
        except TrafficStatsError as e:
            logger.error(f"실행 중 오류 발생: {e}")
            print(json.dumps(e.to_dict(), ensure_ascii=False, default=str))
            return 1

    print(json.dumps(result, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("사용자에 의해 중단됨")
        sys.exit(130)
