"""包清单解析测试"""

from __future__ import annotations

import pytest

from pkgrepo.core.exceptions import ConfigError
from pkgrepo.core.repos.manifest import ManifestEntry, PackageManifest


class TestManifestEntry:
    def test_string_form(self) -> None:
        entry = ManifestEntry.from_dict("junit", "mvn://junit/junit/4.12")
        assert entry.scheme == "mvn"
        assert entry.full_url == "mvn://junit/junit/4.12"
        assert entry.install is True
        assert entry.unzip is None

    def test_type_prefixes_url(self) -> None:
        entry = ManifestEntry.from_dict("junit", {"type": "mvn", "url": "junit/junit/4.12"})
        assert entry.full_url == "mvn://junit/junit/4.12"

    def test_type_overrides_scheme(self) -> None:
        entry = ManifestEntry.from_dict("x", {"type": "url", "url": "https://h/x.zip"})
        assert entry.scheme == "url"
        assert entry.full_url == "https://h/x.zip"

    def test_flags(self) -> None:
        entry = ManifestEntry.from_dict(
            "x", {"url": "url://h/x.zip", "unzip": True, "install": False,
                  "file_name": "x-lib"})
        assert entry.unzip is True
        assert entry.install is False
        assert entry.file_name == "x-lib"

    def test_missing_url(self) -> None:
        with pytest.raises(ConfigError, match="缺少 url"):
            ManifestEntry.from_dict("x", {"type": "mvn"})

    def test_bad_entry_type(self) -> None:
        with pytest.raises(ConfigError, match="必须是映射"):
            ManifestEntry.from_dict("x", ["mvn://a/b/c"])


class TestPackageManifest:
    def test_order_kept(self, tmp_path) -> None:
        path = tmp_path / "m.yml"
        path.write_text(
            "packages:\n  b: local:///b\n  a: local:///a\n", encoding="utf-8")
        manifest = PackageManifest.from_file(path)
        assert len(manifest) == 2
        assert [e.name for e in manifest] == ["b", "a"]

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "m.yml"
        path.write_text("", encoding="utf-8")
        assert len(PackageManifest.from_file(path)) == 0

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="包清单不存在"):
            PackageManifest.from_file(tmp_path / "none.yml")

    def test_packages_not_mapping(self, tmp_path) -> None:
        path = tmp_path / "m.yml"
        path.write_text("packages:\n  - a\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="packages 必须是映射"):
            PackageManifest.from_file(path)

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "m.yml"
        path.write_text("packages: [1, 2\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="无法读取包清单"):
            PackageManifest.from_file(path)
