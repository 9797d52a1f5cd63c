from types import SimpleNamespace

import pytest
import requests

from testgen_agent.errors import GenerationError, UnsupportedProviderError
from testgen_agent.llm.providers.anthropic_provider import MESSAGES_URL, ClaudeProvider
from testgen_agent.llm.providers.azure_provider import AzureOpenAIProvider
from testgen_agent.llm.providers.base import REQUIREMENTS, build_prompt
from testgen_agent.llm.providers.google_provider import GoogleProvider
from testgen_agent.llm.providers.openai_provider import OpenAIProvider
from testgen_agent.llm.registry import PROVIDERS, resolve_factory
from testgen_agent.llm.types import GenerationDefaults, GenerationRequest, ProviderConfig, ProviderKind

COMPLETION = "import { add } from './add';\n// adds\nit('adds', () => {});"
REQUEST = GenerationRequest(prompt="cover edge cases", source_code="function add(a,b){return a+b}")
DEFAULTS = GenerationDefaults(max_tokens=256, temperature=0.2)


class FakeChatClient:
    def __init__(self, content=COMPLETION, error=None):
        self.content = content
        self.error = error
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))
        self.models = SimpleNamespace(list=self._list)

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    def _list(self):
        if self.error:
            raise self.error
        return []


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, payload=None, status_code=200, error=None):
        self.payload = payload or {}
        self.status_code = status_code
        self.error = error
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error:
            raise self.error
        return FakeResponse(self.payload, self.status_code)


def test_build_prompt_includes_sections():
    prompt = build_prompt(
        GenerationRequest(prompt="cover edge cases", source_code="def f(): pass", existing_tests="def test_f(): pass")
    )
    assert "SOURCE CODE:\n```\ndef f(): pass\n```" in prompt
    assert "EXISTING TESTS:" in prompt
    assert prompt.rstrip().endswith("cover edge cases")
    for i, requirement in enumerate(REQUIREMENTS, start=1):
        assert f"{i}. {requirement}" in prompt
    assert len(REQUIREMENTS) == 5


def test_build_prompt_omits_missing_existing_tests():
    assert "EXISTING TESTS" not in build_prompt(REQUEST)


def test_openai_provider_parses_completion():
    client = FakeChatClient()
    config = ProviderConfig(kind=ProviderKind.OPENAI, credential_ref="ai.openai.apiKey", model="gpt-4")
    provider = OpenAIProvider(config, api_key="sk-test", client=client)

    result = provider.generate_tests(REQUEST, DEFAULTS)

    assert result.suggested_imports == ("import { add } from './add';",)
    assert result.explanation == "adds"
    assert client.calls[0]["model"] == "gpt-4"
    assert client.calls[0]["max_tokens"] == 256
    assert client.calls[0]["temperature"] == 0.2
    assert provider.validate_config() is True


def test_request_values_override_defaults():
    client = FakeChatClient()
    config = ProviderConfig(kind=ProviderKind.OPENAI, credential_ref="ref", model="gpt-4")
    provider = OpenAIProvider(config, api_key="sk-test", client=client)
    provider.generate_tests(GenerationRequest(prompt="p", source_code="s", max_tokens=99, temperature=0.0), DEFAULTS)
    assert client.calls[0]["max_tokens"] == 99
    assert client.calls[0]["temperature"] == 0.0


def test_vendor_failure_is_normalized():
    client = FakeChatClient(error=RuntimeError("quota exceeded"))
    config = ProviderConfig(kind=ProviderKind.OPENAI, credential_ref="ref", model="gpt-4")
    provider = OpenAIProvider(config, api_key="sk-test", client=client)

    with pytest.raises(GenerationError) as excinfo:
        provider.generate_tests(REQUEST, DEFAULTS)
    assert str(excinfo.value) == "Failed to generate tests: quota exceeded"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert provider.validate_config() is False


def test_empty_completion_is_an_error():
    config = ProviderConfig(kind=ProviderKind.OPENAI, credential_ref="ref", model="gpt-4")
    provider = OpenAIProvider(config, api_key="sk-test", client=FakeChatClient(content=""))
    with pytest.raises(GenerationError, match="No test code generated"):
        provider.generate_tests(REQUEST, DEFAULTS)


def test_azure_provider_uses_deployment_and_one_token_ping():
    client = FakeChatClient()
    config = ProviderConfig(
        kind=ProviderKind.AZURE,
        credential_ref="ai.azure.apiKey",
        endpoint="https://example.openai.azure.com",
        deployment_name="tests-gpt4",
        api_version="2024-02-01",
    )
    provider = AzureOpenAIProvider(config, api_key="key", client=client)

    assert provider.validate_config() is True
    assert client.calls[-1]["model"] == "tests-gpt4"
    assert client.calls[-1]["max_tokens"] == 1

    result = provider.generate_tests(REQUEST, DEFAULTS)
    assert len(result.suggested_imports) == 1


def test_google_provider_extracts_candidate_text():
    session = FakeSession({"candidates": [{"content": {"parts": [{"text": COMPLETION}]}}]})
    config = ProviderConfig(
        kind=ProviderKind.GOOGLE,
        credential_ref="ai.google.apiKey",
        model="gemini-pro",
        project="proj",
        location="us-central1",
    )
    provider = GoogleProvider(config, api_key="g-key", session=session)

    result = provider.generate_tests(REQUEST, DEFAULTS)

    call = session.calls[0]
    assert call["url"].startswith("https://us-central1-aiplatform.googleapis.com/v1/projects/proj/")
    assert call["url"].endswith("models/gemini-pro:generateContent")
    assert call["headers"]["x-goog-api-key"] == "g-key"
    assert call["json"]["generationConfig"]["maxOutputTokens"] == 256
    assert result.coverage.estimated_coverage == 5


def test_google_provider_without_candidates_fails():
    config = ProviderConfig(kind=ProviderKind.GOOGLE, credential_ref="r", model="m", project="p", location="l")
    provider = GoogleProvider(config, api_key="k", session=FakeSession({"candidates": []}))
    with pytest.raises(GenerationError, match="No test code generated"):
        provider.generate_tests(REQUEST, DEFAULTS)


def test_claude_provider_joins_text_blocks():
    session = FakeSession(
        {
            "content": [
                {"type": "text", "text": "import x from 'x';\n"},
                {"type": "tool_use", "id": "t1"},
                {"type": "text", "text": "test('x', () => {});"},
            ]
        }
    )
    config = ProviderConfig(kind=ProviderKind.CLAUDE, credential_ref="ai.claude.apiKey", model="claude-2")
    provider = ClaudeProvider(config, api_key="a-key", session=session)

    result = provider.generate_tests(REQUEST, DEFAULTS)

    assert session.calls[0]["url"] == MESSAGES_URL
    assert session.calls[0]["headers"]["x-api-key"] == "a-key"
    assert result.suggested_imports == ("import x from 'x';",)
    assert result.test_code == "test('x', () => {});"


def test_claude_http_error_is_normalized_and_validation_false():
    config = ProviderConfig(kind=ProviderKind.CLAUDE, credential_ref="r", model="claude-2")
    provider = ClaudeProvider(config, api_key="a-key", session=FakeSession(status_code=529))
    with pytest.raises(GenerationError) as excinfo:
        provider.generate_tests(REQUEST, DEFAULTS)
    assert "529 Server Error" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, requests.HTTPError)
    assert provider.validate_config() is False


def test_registry_covers_every_kind():
    assert set(PROVIDERS) == set(ProviderKind)
    assert resolve_factory("claude") is ClaudeProvider
    with pytest.raises(UnsupportedProviderError):
        resolve_factory("cohere")
