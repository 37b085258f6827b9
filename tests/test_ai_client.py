from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import text

from common.ai import client
from common.clients.llm.base import (
    AICallParams,
    AIConfig,
    AIProviderAPIError,
    TokenUsage,
    UnsupportedProviderError,
)
from common.domain import AIConfigMode, AIProvider
from common.persistence.database import session_scope
from common.persistence.models import UserORM
from common.persistence.repository import UserRepository
from common.utils.crypto import encrypt_api_key


def test_call_ai_claude_end_to_end(make_router):
    router, _ = make_router(
        json_body={"content": [{"text": "连接成功"}], "usage": {"input_tokens": 10, "output_tokens": 3}}
    )
    config = AIConfig(provider=AIProvider.CLAUDE, model="claude-3-haiku", api_key="sk-test")

    response = client.call_ai(AICallParams(config=config, prompt="ping"), router=router)

    assert response.content == "连接成功"
    assert response.usage == TokenUsage(prompt_tokens=10, completion_tokens=3, total_tokens=13)


def test_call_ai_applies_default_temperature_and_max_tokens(make_router):
    router, calls = make_router(json_body={"choices": [{"message": {"content": "ok"}}]})
    config = AIConfig(provider=AIProvider.DEEPSEEK, model="deepseek-chat", api_key="sk-ds")

    client.call_ai(AICallParams(config=config, prompt="hello"), router=router)

    body = calls.last_json()
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 2000


def test_call_ai_accepts_plain_string_provider(make_router):
    router, calls = make_router(json_body={"choices": [{"message": {"content": "ok"}}]})
    config = AIConfig(provider="openai", model="gpt-4", api_key="sk")

    assert client.call_ai(AICallParams(config=config, prompt="hi"), router=router).content == "ok"
    assert len(calls) == 1


def test_call_ai_rejects_unknown_provider(make_router):
    router, calls = make_router(json_body={})
    config = AIConfig(provider="mistral", model="mistral-large", api_key="sk")

    with pytest.raises(UnsupportedProviderError, match="不支持的AI提供商: mistral"):
        client.call_ai(AICallParams(config=config, prompt="hi"), router=router)
    assert calls == []


def test_call_ai_propagates_upstream_error(make_router, caplog):
    router, _ = make_router(status_code=429, json_body={"error": {"message": "Rate limit reached"}})
    config = AIConfig(provider=AIProvider.OPENAI, model="gpt-4", api_key="sk")

    with pytest.raises(AIProviderAPIError, match="Rate limit reached"):
        client.call_ai(AICallParams(config=config, prompt="hi"), router=router)
    assert "AI调用失败 (openai)" in caplog.text


def test_call_ai_propagates_network_error(make_router):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    router, _ = make_router(handler=refuse)
    config = AIConfig(provider=AIProvider.GEMINI, model="gemini-pro", api_key="g-key")

    with pytest.raises(httpx.ConnectError):
        client.call_ai(AICallParams(config=config, prompt="hi"), router=router)


def test_connection_test_success_reports_details(make_router):
    router, calls = make_router(
        json_body={
            "choices": [{"message": {"content": "Connection successful"}}],
            "usage": {"prompt_tokens": 20, "completion_tokens": 2, "total_tokens": 22},
        }
    )
    config = AIConfig(provider=AIProvider.DEEPSEEK, model="deepseek-chat", api_key="sk-ds")

    result = client.test_ai_connection(config, router=router)

    assert result.success is True
    assert result.details == {
        "response": "Connection successful",
        "usage": {"promptTokens": 20, "completionTokens": 2, "totalTokens": 22},
    }
    body = calls.last_json()
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 50
    assert body["messages"][0]["role"] == "system"


def test_connection_test_failure_is_returned_not_raised(make_router):
    router, _ = make_router(status_code=401, json_body={"error": {"message": "Invalid API key"}})
    config = AIConfig(provider=AIProvider.OPENAI, model="gpt-4", api_key="bad")

    result = client.test_ai_connection(config, router=router)

    assert result.success is False
    assert result.error == "OpenAI API错误: Invalid API key"
    assert result.to_dict() == {"success": False, "error": "OpenAI API错误: Invalid API key"}


def test_connection_test_captures_missing_custom_endpoint(make_router):
    router, calls = make_router(json_body={})
    config = AIConfig(
        provider=AIProvider.CUSTOM,
        model="llama3",
        api_key="sk",
        custom_provider_name="Local Ollama",
    )

    result = client.test_ai_connection(config, router=router)

    assert result.success is False
    assert "endpoint" in result.error
    assert calls == []


def test_connection_test_captures_unsupported_provider(make_router):
    router, _ = make_router(json_body={})
    result = client.test_ai_connection(AIConfig(provider="foo", model="m", api_key="k"), router=router)

    assert result.success is False
    assert "不支持的AI提供商" in result.error


def test_api_key_hidden_from_repr():
    config = AIConfig(provider=AIProvider.OPENAI, model="gpt-4", api_key="sk-very-secret")

    assert "sk-very-secret" not in repr(config)


# --- 用户配置解析 ---


def add_user(session_factory, **fields):
    with session_scope(session_factory) as session:
        user = UserORM(email=fields.pop("email", "user@example.com"), **fields)
        session.add(user)
        session.flush()
        return user.id


def test_resolve_user_config_decrypts_key(session_factory):
    user_id = add_user(
        session_factory,
        ai_config_mode=AIConfigMode.CUSTOM,
        ai_provider=AIProvider.CUSTOM,
        ai_model="qwen-max",
        ai_api_key=encrypt_api_key("sk-user-own"),
        ai_api_endpoint="https://llm.example.com/v1/chat/completions",
        ai_custom_provider_name="通义千问",
    )

    config = client.resolve_user_ai_config(user_id, session_factory)

    assert config.provider == AIProvider.CUSTOM
    assert config.model == "qwen-max"
    assert config.api_key == "sk-user-own"
    assert config.api_endpoint == "https://llm.example.com/v1/chat/completions"
    assert config.custom_provider_name == "通义千问"


def test_resolve_user_config_without_key_returns_none(session_factory):
    user_id = add_user(session_factory, ai_provider=AIProvider.OPENAI, ai_model="gpt-4")

    assert client.resolve_user_ai_config(user_id, session_factory) is None


def test_resolve_unknown_user_returns_none(session_factory):
    assert client.resolve_user_ai_config(404, session_factory) is None


def test_soft_deleted_user_is_invisible(session_factory):
    user_id = add_user(
        session_factory,
        ai_provider=AIProvider.OPENAI,
        ai_api_key=encrypt_api_key("sk"),
        deleted_at=datetime.now(timezone.utc),
    )

    assert client.resolve_user_ai_config(user_id, session_factory) is None


def test_undecryptable_key_returns_none(session_factory, caplog):
    user_id = add_user(session_factory, ai_provider=AIProvider.OPENAI, ai_api_key="not-encrypted")

    assert client.resolve_user_ai_config(user_id, session_factory) is None
    assert "获取AI配置失败" in caplog.text


def test_unknown_stored_provider_returns_none(session_factory, caplog):
    user_id = add_user(session_factory, ai_model="mistral-large", ai_api_key=encrypt_api_key("sk"))
    with session_scope(session_factory) as session:
        session.execute(
            text("UPDATE users SET ai_provider = 'mistral' WHERE id = :id"), {"id": user_id}
        )

    assert client.resolve_user_ai_config(user_id, session_factory) is None
    assert client.get_user_ai_config(user_id, session_factory) is None
    assert "获取AI配置失败" in caplog.text


def test_malformed_setting_does_not_break_resolution(session_factory, monkeypatch, common_ai_env):
    own_key_user = add_user(
        session_factory,
        ai_provider=AIProvider.OPENAI,
        ai_model="gpt-4",
        ai_api_key=encrypt_api_key("sk-user-own"),
    )
    credits_user = add_user(
        session_factory,
        email="credits@example.com",
        ai_config_mode=AIConfigMode.CREDITS,
        ai_model="deepseek-chat",
    )
    monkeypatch.setenv("AI_REQUEST_TIMEOUT", "60s")

    assert client.resolve_user_ai_config(own_key_user, session_factory) is None
    assert client.get_user_ai_config(own_key_user, session_factory) is None
    assert client.get_user_ai_config(credits_user, session_factory) is None


def test_user_config_defaults_to_custom_mode(session_factory):
    user_id = add_user(
        session_factory,
        ai_provider=AIProvider.GEMINI,
        ai_model="gemini-pro",
        ai_api_key=encrypt_api_key("g-key"),
    )

    resolved = client.get_user_ai_config(user_id, session_factory)

    assert resolved.mode == AIConfigMode.CUSTOM
    assert resolved.config.api_key == "g-key"


def test_credits_mode_uses_system_key_with_user_model(session_factory, common_ai_env):
    user_id = add_user(
        session_factory,
        ai_config_mode=AIConfigMode.CREDITS,
        ai_model="deepseek-chat",
        ai_provider=AIProvider.OPENAI,
        ai_api_key=encrypt_api_key("sk-user-own"),
    )

    resolved = client.get_user_ai_config(user_id, session_factory)

    assert resolved.mode == AIConfigMode.CREDITS
    assert resolved.config.provider == AIProvider.DEEPSEEK
    assert resolved.config.api_key == "sk-common"
    assert resolved.config.model == "deepseek-chat"


def test_subscription_mode_without_model_returns_none(session_factory, common_ai_env):
    user_id = add_user(session_factory, ai_config_mode=AIConfigMode.SUBSCRIPTION)

    assert client.get_user_ai_config(user_id, session_factory) is None


def test_shared_mode_without_system_config_returns_none(session_factory):
    user_id = add_user(session_factory, ai_config_mode=AIConfigMode.CREDITS, ai_model="deepseek-chat")

    assert client.get_user_ai_config(user_id, session_factory) is None


def test_repository_saves_encrypted_key(db_session):
    user = UserORM(email="save@example.com")
    repo = UserRepository(db_session)
    repo.add(user)
    db_session.flush()

    saved = repo.save_ai_config(
        user.id,
        mode=AIConfigMode.CUSTOM,
        provider=AIProvider.OPENAI,
        model="gpt-4o",
        api_key="sk-plain",
        custom_provider_name="ignored for non-custom",
    )
    db_session.commit()
    encrypted = saved.ai_api_key

    assert encrypted != "sk-plain"
    assert saved.ai_custom_provider_name is None
    assert saved.ai_config_updated_at is not None

    repo.save_ai_config(user.id, mode=AIConfigMode.CUSTOM, provider=AIProvider.OPENAI, model="gpt-4")
    db_session.commit()
    assert repo.get_active(user.id).ai_api_key == encrypted
    assert repo.get_active(user.id).ai_model == "gpt-4"


def test_repository_clear_config(db_session):
    user = UserORM(email="clear@example.com", ai_provider=AIProvider.CLAUDE, ai_api_key="x")
    repo = UserRepository(db_session)
    repo.add(user)
    db_session.flush()

    assert repo.clear_ai_config(user.id) is True
    assert repo.get_active(user.id).ai_provider is None
    assert repo.clear_ai_config(9999) is False
