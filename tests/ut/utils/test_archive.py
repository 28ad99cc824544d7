"""归档识别与解压测试"""

from __future__ import annotations

import tarfile
import zipfile
from pathlib import Path

import pytest

from pkgrepo.core.exceptions import TransportError
from pkgrepo.utils.archive import extract_archive, is_archive, strip_archive_suffix


class TestNames:
    @pytest.mark.parametrize("name", ["a.zip", "a.jar", "a.tar.gz", "a.tgz", "A.ZIP"])
    def test_archives(self, name: str) -> None:
        assert is_archive(name)

    def test_not_archive(self) -> None:
        assert not is_archive("repo.git")

    def test_strip_longest_suffix(self) -> None:
        assert strip_archive_suffix("foo-1.0.tar.gz") == "foo-1.0"
        assert strip_archive_suffix("lib.jar") == "lib"
        assert strip_archive_suffix("plain") == "plain"


class TestExtract:
    def test_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "a.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("lib/x.txt", "x")
        extract_archive(archive, tmp_path / "out")
        assert (tmp_path / "out" / "lib" / "x.txt").read_text() == "x"

    def test_tar_gz(self, tmp_path: Path) -> None:
        src = tmp_path / "y.txt"
        src.write_text("y")
        archive = tmp_path / "a.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            tf.add(src, arcname="y.txt")
        extract_archive(archive, tmp_path / "out")
        assert (tmp_path / "out" / "y.txt").read_text() == "y"

    def test_zip_path_traversal_rejected(self, tmp_path: Path) -> None:
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.txt", "boom")
        with pytest.raises(TransportError, match="越界路径"):
            extract_archive(archive, tmp_path / "out")
        assert not (tmp_path / "escape.txt").exists()

    def test_corrupt_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "bad.zip"
        archive.write_text("not a zip")
        with pytest.raises(TransportError, match="解压失败"):
            extract_archive(archive, tmp_path / "out")

    def test_unknown_suffix(self, tmp_path: Path) -> None:
        f = tmp_path / "a.rar"
        f.write_text("x")
        with pytest.raises(TransportError):
            extract_archive(f, tmp_path / "out")
