"""包管理 API Blueprint"""

from __future__ import annotations

from flask import Blueprint, Response, request

from pkgrepo.web.responses import bad_request, not_found, ok

packages_bp = Blueprint("packages", __name__, url_prefix="/api")


def _pkg_svc():  # type: ignore[no-untyped-def]
    from pkgrepo.services.container import get_container
    return get_container().packages


@packages_bp.route("/packages", methods=["GET"])
def list_all() -> Response:
    return ok({"packages": _pkg_svc().list_all()})


@packages_bp.route("/packages/<path:name>", methods=["GET"])
def get(name: str) -> tuple[Response, int] | Response:
    pkg = _pkg_svc().get(name)
    if pkg is None:
        return not_found(f"包 {name} ")
    return ok({"package": pkg})


@packages_bp.route("/packages", methods=["POST"])
def add() -> tuple[Response, int] | Response:
    body = request.get_json(silent=True) or {}
    url = body.get("url", "")
    if not url:
        return bad_request("需要提供 url")
    install = bool(body.get("install", True))
    # URL 协议错误由 app 的 PkgRepoError 处理器转换为 400
    pkg, errors = _pkg_svc().add(url, install=install)
    if pkg is None:
        return ok({"error": f"无法添加包: {url}", "errors": errors}, 400)
    status = 201 if pkg["installed"] or not install else 502
    return ok({"package": pkg, "errors": errors}, status)


@packages_bp.route("/classpath", methods=["GET"])
def classpath() -> tuple[Response, int] | Response:
    names = request.args.getlist("name")
    if not names:
        return bad_request("需要提供 name 参数")
    svc = _pkg_svc()
    missing = [n for n in names if svc.get(n) is None]
    if missing:
        return not_found(f"包 {', '.join(missing)} ")
    return ok({"classpath": svc.class_path(names)})
