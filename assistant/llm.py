"""AI gateway clients — OpenAI-compatible HTTP and Bedrock inference."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

import boto3
import requests
from botocore.config import Config as BotoConfig

from assistant.config import TEMPERATURE, USAGE_LOG_PATH, GatewayConfig
from assistant.models import AIRequest, AIResponse, AIUnavailableError, GatewayError

logger = logging.getLogger(__name__)

# ── Usage log setup ──────────────────────────────────────────────────────────

_usage_logger = None


def _get_usage_logger() -> logging.Logger:
    """Lazy-init a dedicated file logger for token usage."""
    global _usage_logger
    if _usage_logger is not None:
        return _usage_logger

    usage = logging.getLogger("assistant.usage")
    usage.setLevel(logging.INFO)
    usage.propagate = False

    log_path = Path(USAGE_LOG_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Check before the handler creates the file
    needs_header = not log_path.exists() or log_path.stat().st_size == 0

    if not usage.handlers:
        handler = logging.FileHandler(str(log_path), mode="a")
        handler.setFormatter(logging.Formatter("%(message)s"))
        usage.addHandler(handler)

    if needs_header:
        usage.info("timestamp\tprovider\tmodel\ttotal_tokens\tlatency_ms")

    # Cache only once the file handler is in place
    _usage_logger = usage
    return _usage_logger


def _log_usage(provider: str, model: str, total_tokens: int, latency_ms: int) -> None:
    """Log token usage to both the usage log file and the standard logger."""
    logger.info(
        "AI usage [%s]: tokens=%d latency=%dms model=%s",
        provider,
        total_tokens,
        latency_ms,
        model,
    )
    _get_usage_logger().info(
        "%s\t%s\t%s\t%d\t%d",
        datetime.now(timezone.utc).isoformat(),
        provider,
        model,
        total_tokens,
        latency_ms,
    )


def _token_count(usage, *keys: str) -> int:
    """Sum the named token counts. Missing or non-integer values count as 0."""
    if not isinstance(usage, dict):
        return 0
    total = 0
    for key in keys:
        value = usage.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            total += value
    return total


# ── Gateway interface ────────────────────────────────────────────────────────


class AIGateway:
    """Opaque prompt-in/text-out service with an availability flag.

    Subclasses implement :meth:`_send`. :meth:`complete` raises
    ``AIUnavailableError`` when no credential is configured and
    ``GatewayError`` on any other failure. It never retries.
    """

    provider = "none"

    def __init__(self, config: GatewayConfig) -> None:
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model

    def is_available(self) -> bool:
        return bool(self.config.credential.strip())

    def complete(self, request: AIRequest) -> AIResponse:
        if not self.is_available():
            raise AIUnavailableError(
                f"AI service is not configured for provider '{self.provider}'."
            )

        start = time.monotonic()
        logger.info("AI request starting [%s] model=%s", self.provider, self.model)
        try:
            response = self._send(request)
        except GatewayError:
            raise
        except Exception as e:
            logger.error("AI request failed [%s]: %s", self.provider, e)
            raise GatewayError(f"AI request failed: {e}") from e
        latency_ms = int((time.monotonic() - start) * 1000)

        # Usage log errors are logged, never raised
        try:
            _log_usage(self.provider, response.model, response.tokens_used, latency_ms)
        except OSError as e:
            logger.warning("Could not write usage log %s: %s", USAGE_LOG_PATH, e)
        return response

    def _send(self, request: AIRequest) -> AIResponse:
        raise NotImplementedError


# ── OpenAI-compatible client ─────────────────────────────────────────────────


class OpenAICompatibleGateway(AIGateway):
    """Chat-completions client for OpenAI and compatible APIs."""

    provider = "openai"

    def _build_body(self, request: AIRequest) -> dict:
        messages = []
        if request.context is not None:
            messages.append({"role": "system", "content": request.context})
        messages.append({"role": "user", "content": request.prompt})
        return {
            "model": self.model,
            "messages": messages,
            "max_tokens": request.max_tokens,
            "temperature": TEMPERATURE,
        }

    def _parse_body(self, payload: dict) -> AIResponse:
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GatewayError(f"Malformed AI response body: missing {e}") from e
        if not isinstance(content, str):
            raise GatewayError("Malformed AI response body: content is not text")

        return AIResponse(
            content=content,
            model=self.model,
            tokens_used=_token_count(payload.get("usage"), "total_tokens"),
        )

    def _send(self, request: AIRequest) -> AIResponse:
        url = f"{self.config.base_url}/chat/completions"
        try:
            resp = requests.post(
                url,
                json=self._build_body(request),
                headers={"Authorization": f"Bearer {self.config.credential}"},
                timeout=(self.config.connect_timeout, self.config.read_timeout),
            )
        except requests.exceptions.RequestException as e:
            logger.error("AI request to %s failed: %s", url, e)
            raise GatewayError(f"AI API request failed: {e}") from e

        if not resp.ok:
            logger.error("AI API returned %d %s", resp.status_code, resp.reason)
            raise GatewayError(
                f"AI API request failed: {resp.status_code} - {resp.reason}",
                status=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise GatewayError(f"Malformed AI response body: {e}") from e
        if not isinstance(payload, dict):
            raise GatewayError("Malformed AI response body: expected a JSON object")
        return self._parse_body(payload)


# ── Bedrock client ───────────────────────────────────────────────────────────


class BedrockGateway(AIGateway):
    """Bedrock Runtime client. The credential is the AWS profile name."""

    provider = "bedrock"

    def __init__(self, config: GatewayConfig) -> None:
        super().__init__(config)
        self._client = None

    def _get_client(self):
        """Lazy-init the Bedrock Runtime client using the configured AWS profile."""
        if self._client is None:
            session = boto3.Session(
                profile_name=self.config.credential,
                region_name=self.config.region,
            )
            self._client = session.client(
                "bedrock-runtime",
                config=BotoConfig(
                    retries={"max_attempts": 1, "mode": "standard"},
                    read_timeout=120,
                    connect_timeout=10,
                ),
            )
            logger.info(
                "Bedrock client initialized: profile=%s region=%s model=%s",
                self.config.credential,
                self.config.region,
                self.model,
            )
        return self._client

    def _send(self, request: AIRequest) -> AIResponse:
        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": request.max_tokens,
            "temperature": TEMPERATURE,
            "messages": [
                {"role": "user", "content": request.prompt},
            ],
        }
        if request.context is not None:
            body["system"] = request.context

        try:
            response = self._get_client().invoke_model(
                modelId=self.model,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )
            payload = json.loads(response["body"].read())
        except json.JSONDecodeError as e:
            raise GatewayError(f"Malformed Bedrock response body: {e}") from e
        except Exception as e:
            logger.error("Bedrock inference failed: %s", e)
            raise GatewayError(f"Bedrock inference failed: {e}") from e

        return self._parse_body(payload, request.max_tokens)

    def _parse_body(self, payload, max_tokens: int) -> AIResponse:
        if not isinstance(payload, dict):
            raise GatewayError("Malformed Bedrock response body: expected a JSON object")
        blocks = payload.get("content", [])
        if not isinstance(blocks, list):
            raise GatewayError("Malformed Bedrock response body: content is not a list")

        parts: list[str] = []
        for block in blocks:
            if not isinstance(block, dict):
                raise GatewayError(
                    "Malformed Bedrock response body: content block is not an object"
                )
            if block.get("type") != "text":
                continue
            text = block.get("text", "")
            if not isinstance(text, str):
                raise GatewayError("Malformed Bedrock response body: text is not a string")
            parts.append(text)

        if payload.get("stop_reason") == "max_tokens":
            logger.warning(
                "Response truncated (hit max_tokens=%d). Output may be incomplete.",
                max_tokens,
            )

        return AIResponse(
            content="".join(parts),
            model=self.model,
            tokens_used=_token_count(payload.get("usage"), "input_tokens", "output_tokens"),
        )


_GATEWAYS = {
    "openai": OpenAICompatibleGateway,
    "bedrock": BedrockGateway,
}


def create_gateway(config: GatewayConfig) -> AIGateway:
    """Build the gateway for the configured provider."""
    try:
        gateway_cls = _GATEWAYS[config.provider]
    except KeyError:
        raise ValueError(f"Unknown AI provider: {config.provider!r}") from None
    return gateway_cls(config)
