"""进度更新的数据模型。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(slots=True)
class ProgressUpdate:
    """运行过程中的进度信息。

    ``path`` 仅在单个文件完成（生成、删除或失败）时携带，``status`` 与之对应。
    """

    total: int
    completed: int
    message: Optional[str] = None
    status: str = "running"
    path: Optional[Path] = None
