"""pkgrepo - 第三方仓库包的依赖解析与安装"""

__version__ = "0.3.0"
