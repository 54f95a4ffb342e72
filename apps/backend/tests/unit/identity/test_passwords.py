"""Unit tests for CredentialHasher (argon2)."""

import pytest

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_hash_is_not_plaintext_and_verifies(fast_hasher):
    hashed = await fast_hasher.hash("senha123")

    assert hashed != "senha123"
    assert hashed.startswith("$argon2")
    assert await fast_hasher.verify("senha123", hashed) is True
    assert await fast_hasher.verify("errada", hashed) is False


@pytest.mark.asyncio
async def test_same_secret_produces_different_hashes(fast_hasher):
    assert await fast_hasher.hash("1234") != await fast_hasher.hash("1234")


@pytest.mark.asyncio
async def test_corrupt_or_empty_hash_never_matches(fast_hasher):
    assert await fast_hasher.verify("senha123", "not-a-hash") is False
    assert await fast_hasher.verify("senha123", "") is False
    assert await fast_hasher.verify("", "$argon2id$whatever") is False
