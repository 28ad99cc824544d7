"""Gunicorn 部署配置

用法:
  gunicorn --config deploy/gunicorn.conf.py pkgrepo.web.app:app
"""

import os

# ---------- 网络 ----------
bind = os.getenv("GUNICORN_BIND", "127.0.0.1:8888")

# ---------- 并发 ----------
# 包缓存在进程内，多 worker 之间不共享；安装请求在 PackageService 内串行，
# 默认单线程，调大 threads 只让查询请求不必排队
workers = 1
threads = int(os.getenv("GUNICORN_THREADS", "1"))
worker_class = "gthread"
# Maven 依赖树首次安装可能很慢
timeout = int(os.getenv("GUNICORN_TIMEOUT", "600"))

# ---------- 日志 ----------
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
