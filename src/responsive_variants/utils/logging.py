"""日志配置。"""

from __future__ import annotations

import logging


def setup_logging(level: int = logging.INFO) -> None:
    """初始化项目日志配置，重复调用时替换已有的处理器。"""

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(processName)s] %(levelname)s %(name)s: %(message)s",
        force=True,
    )
    # Pillow 的插件探测日志过于冗长
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))
