"""测试公共夹具: 假命令执行器、假下载器、临时目录下的仓库系统"""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgrepo.core.config import Config
from pkgrepo.core.messages import CollectingSink
from pkgrepo.core.repos.system import RepositorySystem

from fakes import MAVEN_TEST_REPO, FakeDownloader, FakeExecutor


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(
        package_root=str(tmp_path / "packages"),
        manifest=str(tmp_path / "manifest.yml"),
        maven_repositories=[MAVEN_TEST_REPO],
        use_local_maven_repository=False,
    )


@pytest.fixture()
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture()
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture()
def system(
    config: Config,
    sink: CollectingSink,
    executor: FakeExecutor,
    downloader: FakeDownloader,
) -> RepositorySystem:
    return RepositorySystem(config, sink, executor=executor, downloader=downloader)
