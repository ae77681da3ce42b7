"""
Tests for the Gemini oracle and embedding service wrappers.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from google.genai import errors

from lectern.core.error_classifier import EmbeddingError, OracleError
from lectern.integration.gemini_client import (
    GeminiEmbeddingService,
    GeminiOracle,
    is_transient_error,
)
from lectern.models.config_models import OracleConfig


def api_error(error_class, code, status):
    return error_class(code, {"error": {"code": code, "message": status.lower(), "status": status}})


def mock_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.embed_content = AsyncMock()
    return client


class TestGeminiOracle:
    """Test GeminiOracle"""

    @pytest.mark.asyncio
    async def test_generate_json(self):
        client = mock_client()
        client.aio.models.generate_content.return_value = SimpleNamespace(text='{"ok": true}')
        oracle = GeminiOracle(OracleConfig(parse_model="gemini-test"), client=client)

        response = await oracle.generate("prompt", json_mode=True, temperature=0.2)

        assert response.text == '{"ok": true}'
        assert response.model == "gemini-test"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "prompt"
        assert kwargs["config"].response_mime_type == "application/json"
        assert kwargs["config"].temperature == 0.2

    @pytest.mark.asyncio
    async def test_missing_text_becomes_empty(self):
        client = mock_client()
        client.aio.models.generate_content.return_value = SimpleNamespace(text=None)
        response = await GeminiOracle(client=client).generate("prompt", json_mode=False)

        assert response.text == ""
        config = client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type == "text/plain"

    @pytest.mark.asyncio
    async def test_failure_raises_oracle_error(self):
        client = mock_client()
        client.aio.models.generate_content.side_effect = RuntimeError("429 RESOURCE_EXHAUSTED")
        oracle = GeminiOracle(OracleConfig(max_retries=1), client=client)

        with pytest.raises(OracleError, match="RESOURCE_EXHAUSTED"):
            await oracle.generate("prompt")
        assert client.aio.models.generate_content.await_count == 1


class TestGeminiEmbeddingService:
    """Test GeminiEmbeddingService"""

    @pytest.mark.asyncio
    async def test_embed(self):
        client = mock_client()
        client.aio.models.embed_content.return_value = SimpleNamespace(embeddings=[
            SimpleNamespace(values=[0.1, 0.2]),
            SimpleNamespace(values=[0.3, 0.4]),
        ])
        service = GeminiEmbeddingService(dimension=2, client=client)

        assert await service.embed(["a", "b"]) == [[0.1, 0.2], [0.3, 0.4]]
        kwargs = client.aio.models.embed_content.call_args.kwargs
        assert kwargs["contents"] == ["a", "b"]
        assert kwargs["config"].output_dimensionality == 2

    @pytest.mark.asyncio
    async def test_empty_input_skips_call(self):
        client = mock_client()
        assert await GeminiEmbeddingService(client=client).embed([]) == []
        client.aio.models.embed_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_count_mismatch(self):
        client = mock_client()
        client.aio.models.embed_content.return_value = SimpleNamespace(
            embeddings=[SimpleNamespace(values=[0.1])]
        )
        with pytest.raises(EmbeddingError):
            await GeminiEmbeddingService(client=client).embed(["a", "b"])

    @pytest.mark.asyncio
    async def test_no_embeddings(self):
        client = mock_client()
        client.aio.models.embed_content.return_value = SimpleNamespace(embeddings=None)
        with pytest.raises(EmbeddingError):
            await GeminiEmbeddingService(client=client).embed(["a"])

    @pytest.mark.asyncio
    async def test_failure_raises_embedding_error(self):
        client = mock_client()
        client.aio.models.embed_content.side_effect = RuntimeError("network down")
        service = GeminiEmbeddingService(OracleConfig(max_retries=1), client=client)
        with pytest.raises(EmbeddingError):
            await service.embed(["a"])


class TestRetryPolicy:
    """Test which failures are retried"""

    def test_transient_errors(self):
        assert is_transient_error(api_error(errors.ServerError, 503, "UNAVAILABLE"))
        assert is_transient_error(api_error(errors.ClientError, 429, "RESOURCE_EXHAUSTED"))
        assert is_transient_error(httpx.ConnectError("connection refused"))

    def test_permanent_errors(self):
        assert not is_transient_error(api_error(errors.ClientError, 400, "INVALID_ARGUMENT"))
        assert not is_transient_error(api_error(errors.ClientError, 403, "PERMISSION_DENIED"))
        assert not is_transient_error(ValueError("bad input"))

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        client = mock_client()
        client.aio.models.generate_content.side_effect = api_error(
            errors.ClientError, 400, "INVALID_ARGUMENT"
        )
        oracle = GeminiOracle(OracleConfig(max_retries=3), client=client)

        with pytest.raises(OracleError):
            await oracle.generate("prompt")
        assert client.aio.models.generate_content.await_count == 1

    @pytest.mark.asyncio
    async def test_embedding_client_error_not_retried(self):
        client = mock_client()
        client.aio.models.embed_content.side_effect = api_error(
            errors.ClientError, 401, "UNAUTHENTICATED"
        )
        service = GeminiEmbeddingService(OracleConfig(max_retries=3), client=client)

        with pytest.raises(EmbeddingError):
            await service.embed(["a"])
        assert client.aio.models.embed_content.await_count == 1

    @pytest.mark.asyncio
    async def test_server_error_retried(self):
        client = mock_client()
        client.aio.models.generate_content.side_effect = [
            api_error(errors.ServerError, 503, "UNAVAILABLE"),
            SimpleNamespace(text='{"ok": true}'),
        ]
        oracle = GeminiOracle(OracleConfig(max_retries=2), client=client)

        response = await oracle.generate("prompt")

        assert response.text == '{"ok": true}'
        assert client.aio.models.generate_content.await_count == 2
