"""归档文件识别与解压（zip / jar / tar）"""

from __future__ import annotations

import logging
import tarfile
import zipfile
from pathlib import Path

from pkgrepo.core.exceptions import TransportError

logger = logging.getLogger(__name__)

ZIP_SUFFIXES = (".zip", ".jar")
TAR_SUFFIXES = (".tar", ".tar.gz", ".tgz", ".tar.bz2", ".tar.xz")


def is_archive(name: str) -> bool:
    lower = name.lower()
    return lower.endswith(ZIP_SUFFIXES) or lower.endswith(TAR_SUFFIXES)


def strip_archive_suffix(name: str) -> str:
    """去掉归档后缀: foo-1.0.tar.gz -> foo-1.0"""
    lower = name.lower()
    for suffix in sorted(ZIP_SUFFIXES + TAR_SUFFIXES, key=len, reverse=True):
        if lower.endswith(suffix):
            return name[: -len(suffix)]
    return name


def extract_archive(archive: Path, dest_dir: Path) -> None:
    """解压到 dest_dir

    Raises:
        TransportError: 不是可识别的归档，或内容损坏 / 含越界路径
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    name = archive.name.lower()
    try:
        if name.endswith(ZIP_SUFFIXES):
            with zipfile.ZipFile(archive) as zf:
                root = dest_dir.resolve()
                for member in zf.namelist():
                    target = (dest_dir / member).resolve()
                    if root != target and root not in target.parents:
                        raise TransportError(f"归档包含越界路径: {member}")
                zf.extractall(path=str(dest_dir))
        elif name.endswith(TAR_SUFFIXES):
            with tarfile.open(archive) as tf:
                tf.extractall(path=str(dest_dir), filter="data")  # noqa: S202
        else:
            raise TransportError(f"归档文件必须以 .zip/.jar/.tar.gz 结尾: {archive}")
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as e:
        raise TransportError(f"解压失败: {archive} -> {dest_dir}: {e}") from e
    logger.info("  已解压: %s -> %s", archive.name, dest_dir)
