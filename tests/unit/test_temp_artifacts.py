"""
임시 아티팩트 관리자 단위 테스트
"""

import logging
from unittest.mock import patch

import pytest

from trafficstats.archiving.temp_artifacts import TempArtifactManager


class TestTempArtifactManager:
    """TempArtifactManager 테스트"""

    def test_generate_path_does_not_create_file(self, temp_dir):
        """경로만 생성하고 파일은 만들지 않음"""
        manager = TempArtifactManager(str(temp_dir))

        first = manager.generate_path()
        second = manager.generate_path()

        assert first != second
        assert first.parent == temp_dir
        assert first.name.startswith("trafficstats_")
        assert first.suffix == ".dump"
        assert not first.exists()

    @pytest.mark.asyncio
    async def test_artifact_removed_after_success(self, temp_artifacts):
        async with temp_artifacts.artifact() as path:
            path.write_bytes(b"dump")

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_artifact_removed_after_error(self, temp_artifacts):
        """오류가 발생해도 삭제되고 원래 오류가 전달됨"""
        with pytest.raises(ValueError):
            async with temp_artifacts.artifact() as path:
                path.write_bytes(b"dump")
                raise ValueError("작업 실패")

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_with_temp_artifact_returns_result(self, temp_artifacts):
        seen = []

        async def work(path):
            path.write_text("partial")
            seen.append(path)
            return 42

        assert await temp_artifacts.with_temp_artifact(work) == 42
        assert not seen[0].exists()

    @pytest.mark.asyncio
    async def test_remove_missing_file_is_noop(self, temp_artifacts, caplog):
        """존재하지 않는 파일 삭제는 경고 없이 무시"""
        with caplog.at_level(logging.WARNING):
            await temp_artifacts.remove(temp_artifacts.generate_path())

        assert caplog.records == []

    @pytest.mark.asyncio
    async def test_remove_failure_is_logged_not_raised(self, temp_artifacts, caplog):
        """삭제 실패는 경고만 남김"""
        with patch(
            "trafficstats.archiving.temp_artifacts.aiofiles.os.remove",
            side_effect=PermissionError("denied"),
        ):
            with caplog.at_level(logging.WARNING):
                await temp_artifacts.remove(temp_artifacts.generate_path())

        assert "임시 파일 삭제 실패" in caplog.text
