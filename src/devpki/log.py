"""
日志配置：使用 loguru 输出到 stderr。
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """移除默认 sink，按指定级别重新添加 stderr sink。"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )
