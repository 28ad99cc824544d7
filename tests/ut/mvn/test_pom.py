"""POM 解析测试（不经过仓库管理器）"""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgrepo.core.exceptions import POMError
from pkgrepo.core.messages import CollectingSink
from pkgrepo.core.mvn.pom import POMFile

from fakes import pom_xml


def _write(tmp_path: Path, body: str, name: str = "pom.xml") -> Path:
    path = tmp_path / name
    path.write_text(body, encoding="utf-8")
    return path


def _dep(g: str, a: str, v: str | None = None, **extra: str) -> str:
    version = f"<version>{v}</version>" if v is not None else ""
    tags = "".join(f"<{k}>{val}</{k}>" for k, val in extra.items())
    return (
        f"<dependency><groupId>{g}</groupId><artifactId>{a}</artifactId>"
        f"{version}{tags}</dependency>"
    )


def _project(body: str) -> str:
    return (
        "<project><groupId>com.acme</groupId><artifactId>app</artifactId>"
        f"<version>2.1</version>{body}</project>"
    )


class TestParse:
    def test_namespaced_pom(self, tmp_path) -> None:
        path = _write(tmp_path, pom_xml("junit", "junit", "4.12", [("org.hamcrest", "hamcrest-core", "1.3")]))
        pom = POMFile.read(path)
        assert pom.packaging == "jar"
        assert pom.group_id() == "junit"
        assert pom.version() == "4.12"
        deps = pom.get_dependencies(["compile"])
        assert [d.to_url() for d in deps] == ["mvn://org.hamcrest/hamcrest-core/1.3"]
        assert deps[0].scope == "compile"

    def test_packaging(self, tmp_path) -> None:
        path = _write(tmp_path, pom_xml("g", "bom", "1", packaging="pom"))
        assert POMFile.read(path).packaging == "pom"

    def test_invalid_xml(self, tmp_path) -> None:
        path = _write(tmp_path, "<project><unclosed></project>")
        with pytest.raises(POMError, match="无法解析 POM 文件"):
            POMFile.read(path)

    def test_wrong_root(self, tmp_path) -> None:
        sink = CollectingSink()
        path = _write(tmp_path, "<settings/>")
        with pytest.raises(POMError, match="应为 <project>"):
            POMFile.read(path, sink=sink)
        assert sink.errors

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(POMError):
            POMFile.read(tmp_path / "absent.xml")


class TestVariables:
    def test_properties_and_project_fields(self, tmp_path) -> None:
        path = _write(tmp_path, _project(
            "<properties><lib.version>3.0</lib.version></properties>"
            "<dependencies>"
            + _dep("com.acme", "lib", "${lib.version}")
            + _dep("${project.groupId}", "core", "${project.version}")
            + "</dependencies>"))
        deps = POMFile.read(path).get_dependencies(["compile"])
        assert [d.to_url() for d in deps] == [
            "mvn://com.acme/lib/3.0",
            "mvn://com.acme/core/2.1",
        ]

    def test_nested_properties(self, tmp_path) -> None:
        path = _write(tmp_path, _project(
            "<properties><major>4</major><full>${major}.1</full></properties>"))
        assert POMFile.read(path).replace_variables("v${full}") == "v4.1"

    def test_undefined_variable_reported(self, tmp_path) -> None:
        sink = CollectingSink()
        pom = POMFile.read(_write(tmp_path, _project("")), sink=sink)
        assert pom.replace_variables("${nope}") == "${nope}"
        assert sink.errors == [f"POM 变量没有值: nope ({pom.path})"]

    def test_unclosed_variable_reported(self, tmp_path) -> None:
        sink = CollectingSink()
        pom = POMFile.read(_write(tmp_path, _project("")), sink=sink)
        assert pom.replace_variables("${oops") == "${oops"
        assert "缺少右括号" in sink.errors[0]

    def test_self_reference_stops(self, tmp_path) -> None:
        sink = CollectingSink()
        pom = POMFile.read(_write(tmp_path, _project(
            "<properties><loop>${loop}</loop></properties>")), sink=sink)
        pom.replace_variables("${loop}")
        assert "替换次数过多" in sink.errors[0]


class TestDependencies:
    def test_scope_filter(self, tmp_path) -> None:
        path = _write(tmp_path, _project(
            "<dependencies>"
            + _dep("g", "main", "1")
            + _dep("g", "tests", "1", scope="test")
            + _dep("g", "rt", "1", scope="runtime")
            + "</dependencies>"))
        pom = POMFile.read(path)
        assert [d.artifact_id for d in pom.get_dependencies(["compile"])] == ["main"]
        assert [d.artifact_id for d in pom.get_dependencies(["compile", "test"])] == [
            "main", "tests"]

    def test_optional_skipped(self, tmp_path) -> None:
        path = _write(tmp_path, _project(
            "<dependencies>"
            + _dep("g", "opt", "1", optional="true")
            + _dep("g", "req", "1", optional="false")
            + "</dependencies>"))
        deps = POMFile.read(path).get_dependencies(["compile"])
        assert [d.artifact_id for d in deps] == ["req"]

    def test_dependency_management_version(self, tmp_path) -> None:
        path = _write(tmp_path, _project(
            "<dependencyManagement><dependencies>"
            + _dep("g", "lib", "5.0")
            + "</dependencies></dependencyManagement>"
            "<dependencies>" + _dep("g", "lib") + "</dependencies>"))
        deps = POMFile.read(path).get_dependencies(["compile"])
        assert deps[0].version == "5.0"

    def test_unmanaged_dependency_has_no_version(self, tmp_path) -> None:
        path = _write(tmp_path, _project(
            "<dependencies>" + _dep("g", "lib") + "</dependencies>"))
        deps = POMFile.read(path).get_dependencies(["compile"])
        assert deps[0].version is None

    def test_multiple_dependencies_tags(self, tmp_path) -> None:
        sink = CollectingSink()
        path = _write(tmp_path, _project(
            "<dependencies>" + _dep("g", "a", "1") + "</dependencies>"
            "<dependencies>" + _dep("g", "b", "1") + "</dependencies>"))
        deps = POMFile.read(path, sink=sink).get_dependencies(["compile"])
        assert [d.artifact_id for d in deps] == ["a"]
        assert "多个 <dependencies>" in sink.errors[0]
