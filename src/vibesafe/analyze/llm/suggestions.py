from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from ...config import ScanConfig
from ...constants import Limits
from ...errors import SuggestionUnavailable
from ...logging import NullLogger, ScanLogger
from ...models import DependencyFinding, SecretFinding
from .llm_client import LLMClient

SKIPPED_NO_CLIENT = "*AI suggestions skipped (OpenAI client not initialized or API key missing/placeholder).*"
SKIPPED_NO_FINDINGS = "*No significant issues found requiring AI suggestions.*"
FAILED_EMPTY_RESPONSE = "*AI suggestion generation failed (empty response).*"
FAILED_TEMPLATE = "*AI suggestions failed due to an API error: {error}*"

SYSTEM_PROMPT = (
    "You are a helpful security assistant providing concise fix suggestions in Markdown format."
)

USER_PROMPT_TEMPLATE = """
Given the following security findings from a code scan (JSON format), provide a concise, actionable list of fix suggestions in Markdown format.
Focus on the most impactful recommendations based on severity and type.
Keep suggestions brief and practical for a developer. Prioritize high/critical issues.
Structure the output as a numbered list.

Findings:
```json
{findings_json}
```

Generate a numbered list of Markdown fix suggestions below:
"""


def summarize_findings(
    secret_findings: Sequence[SecretFinding],
    dependency_findings: Sequence[DependencyFinding],
    *,
    max_secrets: int = Limits.MAX_SECRETS_FOR_AI,
    max_dependencies: int = Limits.MAX_DEPS_FOR_AI,
) -> Dict[str, Any]:
    """Bounded, minimal-field summary that is safe to send to the model."""
    secrets = [
        {"file": f.file, "line": f.line, "type": f.type, "severity": f.severity.value}
        for f in list(secret_findings)[:max_secrets]
    ]
    vulnerable = [d for d in dependency_findings if d.vulnerabilities]
    dependencies = [
        {
            "name": d.name,
            "version": d.version,
            "maxSeverity": d.max_severity.value,
            "cveIds": [v.id for v in d.vulnerabilities][: Limits.MAX_VULN_IDS_FOR_AI],
        }
        for d in vulnerable[:max_dependencies]
    ]
    return {"secrets": secrets, "dependencies": dependencies}


def _strip_markdown_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```markdown"):
        stripped = stripped[len("```markdown") :]
        if stripped.endswith("```"):
            stripped = stripped[:-3]
        return stripped.strip()
    return stripped


class SuggestionGenerator:
    """Turns a findings summary into Markdown fix suggestions.

    Every failure mode (no client, nothing to report, empty reply, API or
    transport error) produces a placeholder string instead of an exception.
    """

    def __init__(
        self,
        client: Optional[LLMClient],
        *,
        max_tokens: int = 350,
        logger: Optional[ScanLogger] = None,
    ) -> None:
        self.client = client
        self.max_tokens = max_tokens
        self.logger = logger or NullLogger()

    @classmethod
    def from_config(cls, config: ScanConfig, logger: Optional[ScanLogger] = None) -> "SuggestionGenerator":
        logger = logger or NullLogger()
        api_key = config.openai_key()
        client: Optional[LLMClient] = None
        if config.enable_ai_suggestions and api_key:
            client = LLMClient(
                api_key=api_key,
                primary_model=config.model,
                fallback_model=config.model_fallback,
                timeout_seconds=config.llm_timeout_seconds,
                temperature=config.llm_temperature,
            )
            logger.info("suggestions_client_configured", model=config.model)
        else:
            logger.warning("suggestions_disabled", reason="OpenAI API key not set or placeholder")
        return cls(client, max_tokens=config.llm_max_tokens, logger=logger)

    @property
    def available(self) -> bool:
        return self.client is not None

    def build_prompt(self, summary: Dict[str, Any]) -> str:
        return USER_PROMPT_TEMPLATE.format(findings_json=json.dumps(summary, indent=2))

    async def generate(
        self,
        secret_findings: Sequence[SecretFinding],
        dependency_findings: Sequence[DependencyFinding],
    ) -> str:
        """Markdown suggestions, or a placeholder explaining why there are none. Never raises."""
        try:
            return await self._generate(secret_findings, dependency_findings)
        except SuggestionUnavailable as exc:
            return str(exc)

    async def _generate(
        self,
        secret_findings: Sequence[SecretFinding],
        dependency_findings: Sequence[DependencyFinding],
    ) -> str:
        if self.client is None:
            raise SuggestionUnavailable(SKIPPED_NO_CLIENT)

        summary = summarize_findings(secret_findings, dependency_findings)
        if not summary["secrets"] and not summary["dependencies"]:
            raise SuggestionUnavailable(SKIPPED_NO_FINDINGS)

        try:
            response = await self.client.complete(
                SYSTEM_PROMPT,
                self.build_prompt(summary),
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            self.logger.error("suggestions_request_failed", error=str(exc))
            raise SuggestionUnavailable(FAILED_TEMPLATE.format(error=f"{type(exc).__name__} ({exc})")) from exc

        if not response.success:
            self.logger.error("suggestions_request_failed", error=response.error)
            raise SuggestionUnavailable(FAILED_TEMPLATE.format(error=response.error or "unknown error"))

        suggestions = _strip_markdown_fence(response.content or "")
        if not suggestions:
            self.logger.warning("suggestions_empty_response", model=response.usage.model)
            raise SuggestionUnavailable(FAILED_EMPTY_RESPONSE)

        self.logger.info(
            "suggestions_received",
            model=response.usage.model,
            usage_in=response.usage.tokens_in,
            usage_out=response.usage.tokens_out,
        )
        return suggestions
