import httpx
import pytest

from llm.llm_client import LLMClient, provider_from_env
from llm.providers.mock_provider import MockProvider
from smart_todo.errors import AIErrorKind, ModelError
from smart_todo.models import Feature


def test_parse_task(fake_provider_factory):
    provider = fake_provider_factory(
        '{"taskName":"Send invoice","date":"friday","priority":"high","people":["Ana"],'
        '"category":"finance","tags":["billing"],"estimatedDuration":"20 minutes","confidence":0.92}'
    )
    client = LLMClient(provider=provider)
    parsed = client.parse_task("send the invoice to Ana by friday")
    assert parsed.task_name == "Send invoice"
    assert parsed.priority == "high"
    assert parsed.people == ["Ana"]
    assert parsed.confidence == 0.92
    assert parsed.model_backed is True


def test_complete_renders_feature_prompt():
    seen = {}

    class CapturingProvider:
        def generate(self, *, system, user):
            seen["system"], seen["user"] = system, user
            return '{"breakdown": []}'

    out = LLMClient(provider=CapturingProvider()).complete(Feature.TASK_BREAKDOWN, "launch product")
    assert out == {"breakdown": []}
    assert 'Task: "launch product"' in seen["user"]
    assert "valid JSON" in seen["system"]


def test_provider_timeout_is_classified(fake_provider_factory):
    provider = fake_provider_factory(error=httpx.ReadTimeout("timed out"))
    with pytest.raises(ModelError) as exc:
        LLMClient(provider=provider).parse_task("anything at all")
    assert exc.value.kind is AIErrorKind.TIMEOUT_ERROR


def test_provider_status_is_classified(fake_provider_factory):
    request = httpx.Request("POST", "https://api.example.test/chat/completions")
    response = httpx.Response(429, request=request)
    provider = fake_provider_factory(error=httpx.HTTPStatusError("429", request=request, response=response))
    with pytest.raises(ModelError) as exc:
        LLMClient(provider=provider).parse_task("anything at all")
    assert exc.value.kind is AIErrorKind.RATE_LIMIT_ERROR
    assert exc.value.status == 429


def test_provider_factory():
    assert provider_from_env("none") is None
    assert provider_from_env("") is None
    assert isinstance(provider_from_env("mock"), MockProvider)
    with pytest.raises(ValueError):
        provider_from_env("carrier-pigeon")


def test_mock_provider_answers_parse_prompts():
    parsed = LLMClient(provider=MockProvider()).parse_task("urgent: finish report")
    assert parsed.priority == "high"
    assert parsed.model_backed is True
