"""日志配置。"""

from __future__ import annotations

import logging


def setup_logging(verbose: bool = False) -> None:
    """初始化项目日志配置；verbose 时输出内部决策与工具输出。"""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
