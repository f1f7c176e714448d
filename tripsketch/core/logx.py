import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """
    配置根日志器（只配置一次）：
    - 控制台输出
    - 传入 logfile 时额外写文件
    """
    root = logging.getLogger()
    if root.handlers:
        # 测试或重复 create_app 时避免重复挂 handler
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


class Logx:
    """项目内统一使用的日志对象，方法直接转发给标准库 logger"""

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def __getattr__(self, item):
        return getattr(self._logger, item)


logger = Logx("tripsketch")
