"""包管理 Web API（基于 Flask）

提供: 包列表、包详情、添加 / 安装包、class path 查询。

启动方式: python -m pkgrepo.web.app
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from pkgrepo.core.exceptions import (
    ConfigError,
    PkgRepoError,
    RepositoryNotFoundError,
    ValidationError,
)
from pkgrepo.web.blueprints.packages_bp import packages_bp

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.register_blueprint(packages_bp)

_STATUS_BY_ERROR: list[tuple[type[PkgRepoError], int]] = [
    (ValidationError, 400),
    (RepositoryNotFoundError, 400),
    (ConfigError, 500),
]


# =========================================================================
# 全局 JSON 错误处理
# =========================================================================


@app.errorhandler(PkgRepoError)
def handle_pkgrepo_error(exc: PkgRepoError):
    """业务异常按类型映射状态码"""
    status = 500
    for exc_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            status = code
            break
    return jsonify(error=str(exc), code=exc.code), status


@app.errorhandler(HTTPException)
def handle_http_exception(exc):
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


def run_server(port: int = 8888, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("pkgrepo API 已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server()
