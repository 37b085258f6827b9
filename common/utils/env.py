""".env 加载：脚本和数据库连接在读取 os.environ 之前调用。"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv


REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILES: Tuple[Path, ...] = (Path.cwd() / ".env", REPO_ROOT / ".env")


@lru_cache(maxsize=None)
def load_env(*paths: str | Path) -> bool:
    """
    按顺序加载 .env，已有的环境变量不会被覆盖。
    未传路径时查找当前目录和仓库根目录；返回是否加载到任一文件。
    """

    loaded = False
    for path in paths or DEFAULT_ENV_FILES:
        candidate = Path(path)
        if candidate.is_file():
            load_dotenv(candidate, override=False)
            loaded = True
    return loaded
