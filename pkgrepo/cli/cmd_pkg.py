"""CLI: 包管理命令"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from pkgrepo.cli import _svc
from pkgrepo.core.exceptions import PkgRepoError


def register(group: click.Group) -> None:
    group.add_command(add)
    group.add_command(install)
    group.add_command(list_packages)
    group.add_command(classpath)
    group.add_command(show)


def _echo_errors(errors: list[str]) -> None:
    for err in errors:
        click.echo(f"错误: {err}", err=True)


def _load_manifest(svc: Any, manifest: str | None) -> None:
    """按包清单加载包；未指定且默认清单不存在时跳过"""
    if manifest is None and not Path(svc.system.config.manifest).exists():
        return
    try:
        _, errors = svc.install_manifest(manifest)
    except PkgRepoError as e:
        raise click.ClickException(str(e)) from e
    _echo_errors(errors)


def _echo_package(p: dict[str, Any]) -> None:
    state = "已安装" if p["installed"] else "未安装"
    click.echo(f"  {p['name']:40s} [{p['manager']:5s}] {state}  {p['current_source'] or ''}")


@click.command()
@click.argument("url")
@click.option("--no-install", is_flag=True, help="只登记包，不安装")
def add(url: str, no_install: bool) -> None:
    """添加一个包（例如 mvn://junit/junit/4.12）并安装"""
    try:
        pkg, errors = _svc().packages.add(url, install=not no_install)
    except PkgRepoError as e:
        raise click.ClickException(str(e)) from e
    _echo_errors(errors)
    if pkg is None or (not no_install and not pkg["installed"]):
        raise click.ClickException(f"添加包失败: {url}")
    click.echo(f"就绪: {pkg['name']} -> {pkg['version_root']}")


@click.command()
@click.option("--manifest", default=None, help="包清单路径（默认取配置中的 manifest）")
def install(manifest: str | None) -> None:
    """安装包清单中声明的所有包"""
    try:
        pkgs, errors = _svc().packages.install_manifest(manifest)
    except PkgRepoError as e:
        raise click.ClickException(str(e)) from e
    for p in pkgs:
        _echo_package(p)
    _echo_errors(errors)
    if errors:
        raise click.ClickException(f"{len(errors)} 个包安装失败")
    click.echo(f"完成: {len(pkgs)} 个包")


@click.command(name="list")
def list_packages() -> None:
    """列出上次安装记录中的包"""
    records = _svc().packages.list_records()
    if not records:
        click.echo("没有已安装的包。")
        return
    for rec in records:
        src = (rec.get("current_source") or {}).get("url", "")
        click.echo(f"  {rec['package_name']:40s} {src}")


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--manifest", default=None, help="先按包清单加载包")
def classpath(names: tuple[str, ...], manifest: str | None) -> None:
    """输出指定包（含依赖）的 class path"""
    svc = _svc().packages
    _load_manifest(svc, manifest)
    missing = [n for n in names if svc.get(n) is None]
    if missing:
        raise click.ClickException(f"包不存在: {', '.join(missing)}")
    click.echo(svc.class_path(list(names)))


@click.command()
@click.argument("name")
@click.option("--manifest", default=None, help="先按包清单加载包")
def show(name: str, manifest: str | None) -> None:
    """显示包的安装详情"""
    svc = _svc().packages
    _load_manifest(svc, manifest)
    p = svc.get(name)
    if p is None:
        raise click.ClickException(f"包不存在: {name}")
    for key, value in p.items():
        if isinstance(value, list):
            value = ", ".join(value) or "-"
        click.echo(f"{key:18s} {value}")
