"""领域模型导出，便于其它模块统一引入。"""

from .models import AIConfigMode, AIProvider

__all__ = [
    "AIConfigMode",
    "AIProvider",
]
