"""API Key 加解密（AES-256-GCM）。

存储格式为 ``iv:authTag:ciphertext``，三段均为十六进制，IV 为 16 字节随机值。
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from common.utils.config import load_settings

logger = logging.getLogger(__name__)

IV_LENGTH = 16
TAG_LENGTH = 16


class EncryptionConfigError(RuntimeError):
    """ENCRYPTION_KEY 缺失或格式不正确。"""


class ApiKeyDecryptionError(ValueError):
    """密文格式错误或校验失败。"""


def _load_key(encryption_key: Optional[str]) -> bytes:
    key_hex = encryption_key if encryption_key is not None else load_settings().encryption_key
    if not key_hex:
        raise EncryptionConfigError("ENCRYPTION_KEY environment variable is not set")
    if len(key_hex) != 64:
        raise EncryptionConfigError("ENCRYPTION_KEY must be 64 hexadecimal characters (32 bytes)")
    try:
        return bytes.fromhex(key_hex)
    except ValueError as exc:
        raise EncryptionConfigError("ENCRYPTION_KEY must be 64 hexadecimal characters (32 bytes)") from exc


def encrypt_api_key(api_key: str, encryption_key: Optional[str] = None) -> str:
    """加密 API Key，返回 iv:authTag:ciphertext。"""

    aesgcm = AESGCM(_load_key(encryption_key))
    iv = os.urandom(IV_LENGTH)
    sealed = aesgcm.encrypt(iv, api_key.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"


def decrypt_api_key(encrypted_data: str, encryption_key: Optional[str] = None) -> str:
    """解密 encrypt_api_key 的输出，失败抛出 ApiKeyDecryptionError。"""

    key = _load_key(encryption_key)
    parts = encrypted_data.split(":")
    if len(parts) != 3:
        raise ApiKeyDecryptionError("Invalid encrypted data format")
    try:
        iv, tag, ciphertext = (bytes.fromhex(part) for part in parts)
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        return plaintext.decode("utf-8")
    except (ValueError, InvalidTag, UnicodeDecodeError) as exc:
        logger.error("API Key 解密失败: %s", type(exc).__name__)
        raise ApiKeyDecryptionError("Failed to decrypt API key") from exc


def mask_api_key(api_key: Optional[str]) -> str:
    """遮盖 API Key 用于展示，如 sk-...xyz123。"""

    if not api_key or len(api_key) < 8:
        return "***"
    return f"{api_key[:3]}...{api_key[-6:]}"


__all__ = [
    "ApiKeyDecryptionError",
    "EncryptionConfigError",
    "decrypt_api_key",
    "encrypt_api_key",
    "mask_api_key",
]
