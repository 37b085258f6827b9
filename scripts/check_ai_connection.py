"""AI 配置自检脚本：测试连接或列出提供商的可用模型。"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from common.ai import client  # noqa: E402
from common.ai.models import list_ai_models  # noqa: E402
from common.ai.system_config import get_system_config_by_mode  # noqa: E402
from common.clients.llm.base import AIConfig, AIProviderError, parse_provider  # noqa: E402
from common.domain import AIConfigMode, AIProvider  # noqa: E402
from common.utils.crypto import mask_api_key  # noqa: E402
from common.utils.env import load_env  # noqa: E402

logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("scripts.check_ai_connection")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="测试 AI 提供商连通性 / 获取模型列表")
    parser.add_argument("--provider", choices=[p.value for p in AIProvider], help="AI 提供商")
    parser.add_argument("--model", default="", help="模型名称")
    parser.add_argument("--api-key", default=None, help="API Key（与 --system / --user-id 互斥）")
    parser.add_argument("--endpoint", default=None, help="自定义 API 地址")
    parser.add_argument(
        "--system",
        choices=[AIConfigMode.CREDITS.value, AIConfigMode.SUBSCRIPTION.value],
        help="使用 COMMON_AI_* 系统配置",
    )
    parser.add_argument("--user-id", type=int, default=None, help="从数据库读取该用户的配置")
    parser.add_argument("--list-models", action="store_true", help="只列出模型，不发起对话")
    parser.add_argument("--chat-only", action="store_true", help="列模型时过滤掉非对话模型")
    return parser


def resolve_config(args: argparse.Namespace) -> Optional[AIConfig]:
    if args.system:
        config = get_system_config_by_mode(args.system)
        if config is not None:
            config.model = args.model
        return config

    if args.user_id is not None:
        resolved = client.get_user_ai_config(args.user_id)
        if resolved is None:
            return None
        if args.model:
            resolved.config.model = args.model
        return resolved.config

    if not args.provider or not args.api_key:
        return None
    return AIConfig(
        provider=parse_provider(args.provider),
        model=args.model,
        api_key=args.api_key,
        api_endpoint=args.endpoint or None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    args = build_parser().parse_args(argv)

    config = resolve_config(args)
    if config is None:
        logger.error("没有可用的 AI 配置，请指定 --provider/--api-key、--system 或 --user-id")
        return 1

    logger.info(
        "使用配置 provider=%s model=%s key=%s endpoint=%s",
        config.provider.value,
        config.model or "-",
        mask_api_key(config.api_key),
        config.api_endpoint or "默认",
    )

    if args.list_models:
        try:
            models = list_ai_models(
                config.provider,
                config.api_key,
                config.api_endpoint,
                chat_only=args.chat_only,
            )
        except (AIProviderError, httpx.HTTPError) as exc:
            logger.error("获取模型列表失败: %s", exc)
            return 1
        for model in models:
            print(model)
        logger.info("共 %d 个模型", len(models))
        return 0

    if not config.model:
        logger.error("测试连接需要指定 --model")
        return 1

    result = client.test_ai_connection(config)
    if not result.success:
        logger.error("连接失败: %s", result.error)
        return 1
    logger.info("连接成功: %s", result.details)
    return 0


if __name__ == "__main__":
    sys.exit(main())
