import dataclasses
import json

import pytest

from assistant.config import GatewayConfig
from assistant.models import (
    AIRequest,
    AIResponse,
    AnalysisReport,
    Severity,
    Snippet,
    Suggestion,
)


def test_snippet_defaults_and_immutability():
    snippet = Snippet("fun hello() { }")

    assert snippet.language == "generic"
    assert snippet.origin_path is None
    with pytest.raises(dataclasses.FrozenInstanceError):
        snippet.code = "other"


def test_snippet_language_key():
    assert Snippet("", language="  Kotlin ").language_key == "kotlin"


def test_suggestion_defaults_and_to_dict():
    suggestion = Suggestion("Title", "desc")

    assert suggestion.severity == Severity.INFO
    assert suggestion.to_dict() == {"title": "Title", "description": "desc", "severity": "INFO"}
    assert Suggestion("T", "d", suggested_code="val x = 1").to_dict()["suggested_code"] == "val x = 1"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("ERROR", Severity.ERROR),
        ("warning", Severity.WARNING),
        (" Improvement ", Severity.IMPROVEMENT),
        ("INFO", Severity.INFO),
        ("critical", Severity.INFO),
        ("", Severity.INFO),
        (None, Severity.INFO),
    ],
)
def test_severity_parse(text, expected):
    assert Severity.parse(text) is expected


def test_severity_has_four_members():
    assert [s.value for s in Severity] == ["ERROR", "WARNING", "INFO", "IMPROVEMENT"]


def test_ai_request_and_response_defaults():
    request = AIRequest(prompt="Test prompt")
    assert request.context is None
    assert request.max_tokens == 2000

    response = AIResponse(content="Response content", model="gpt-4")
    assert response.tokens_used == 0


def test_report_json():
    report = AnalysisReport(
        suggestions=[
            Suggestion("a", "b", severity=Severity.ERROR),
            Suggestion("c", "d", severity=Severity.IMPROVEMENT),
        ],
        metrics={"lines": 3, "nonEmptyLines": 2, "functions": 0, "classes": 0},
        language="kotlin",
    )
    data = json.loads(report.to_json())

    assert data["verdict"] == "CHANGES REQUESTED — errors found"
    assert data["stats"] == {
        "errors": 1,
        "warnings": 0,
        "info": 0,
        "improvements": 1,
        "total": 2,
    }
    assert data["suggestions"][0]["severity"] == "ERROR"
    assert data["metrics"]["lines"] == 3


def test_gateway_config_from_env_openai():
    config = GatewayConfig.from_env(
        {"OPENAI_API_KEY": "sk-1", "AI_BASE_URL": "http://localhost:8000/v1/", "AI_MODEL": "local"}
    )

    assert config.provider == "openai"
    assert config.credential == "sk-1"
    assert config.base_url == "http://localhost:8000/v1"
    assert config.model == "local"


def test_gateway_config_from_env_defaults():
    config = GatewayConfig.from_env({})

    assert config.credential == ""
    assert config.base_url == "https://api.openai.com/v1"
    assert config.model == "gpt-4"


def test_gateway_config_from_env_bedrock():
    config = GatewayConfig.from_env({"AI_PROVIDER": "Bedrock", "BEDROCK_PROFILE": "dev"})

    assert config.provider == "bedrock"
    assert config.credential == "dev"
    assert config.region == "eu-west-1"


def test_gateway_config_rejects_unknown_provider():
    with pytest.raises(ValueError, match="AI_PROVIDER"):
        GatewayConfig.from_env({"AI_PROVIDER": "gemini"})
