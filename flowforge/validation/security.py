"""Security validation of generated artifacts.

Literal secrets in node parameters block deployment. Insecure transport,
unauthenticated webhooks and sensitive integrations lower the score
without blocking.
"""

import re
from collections.abc import Iterator
from typing import Any

from flowforge.feasibility.catalog import DEFAULT_CATALOG, CapabilityCatalog
from flowforge.graph.state import (
    CheckResult,
    Impact,
    Severity,
    Specification,
    ValidationIssue,
    ValidationWarning,
    WorkflowArtifact,
)
from flowforge.validation.base import MAX_SCORE, clamp_score

SECRET_KEYS = frozenset(
    {
        "api_key",
        "apikey",
        "password",
        "token",
        "secret",
        "access_token",
        "authorization",
        "client_secret",
        "private_key",
    }
)
_PLAIN_HTTP = re.compile(r"^http://(?!localhost\b|127\.0\.0\.1\b)", re.I)
PASSING_SCORE = 70

LITERAL_SECRET_PENALTY = 40
PLAIN_HTTP_PENALTY = 20
OPEN_WEBHOOK_PENALTY = 10
SENSITIVE_PENALTY = 5


def _walk(value: Any, key: str = "") -> Iterator[tuple[str, Any]]:
    if isinstance(value, dict):
        for k, v in value.items():
            yield from _walk(v, str(k))
    elif isinstance(value, list):
        for item in value:
            yield from _walk(item, key)
    else:
        yield key, value


def is_literal_secret(key: str, value: Any) -> bool:
    """A non-empty string under a secret-looking key that is not an expression."""
    if key.lower().replace("-", "_") not in SECRET_KEYS:
        return False
    if not isinstance(value, str) or not value.strip():
        return False
    return not (value.startswith("{{") or value.startswith("="))


class SecurityCheck:
    dimension = "security"

    def __init__(self, catalog: CapabilityCatalog | None = None):
        self.catalog = catalog or DEFAULT_CATALOG

    async def check(self, artifact: WorkflowArtifact, spec: Specification | None = None) -> CheckResult:
        issues: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []
        credentials: list[str] = []
        score = MAX_SCORE

        for node in artifact.nodes:
            for credential in node.credentials:
                if credential not in credentials:
                    credentials.append(credential)
            for key, value in _walk(node.parameters):
                if is_literal_secret(key, value):
                    issues.append(
                        ValidationIssue(
                            severity=Severity.CRITICAL,
                            category="credentials",
                            message=f"'{node.name}' contains a literal {key}.",
                            suggestion="Store it as a credential and reference it instead.",
                            blocking=True,
                        )
                    )
                    score -= LITERAL_SECRET_PENALTY
                elif isinstance(value, str) and _PLAIN_HTTP.match(value):
                    issues.append(
                        ValidationIssue(
                            severity=Severity.MAJOR,
                            category="transport",
                            message=f"'{node.name}' calls {value} over plain HTTP.",
                            suggestion="Use an https:// URL.",
                        )
                    )
                    score -= PLAIN_HTTP_PENALTY

            if node.node_type == "n8n-nodes-base.webhook":
                auth = node.parameters.get("authentication")
                if not auth or auth == "none":
                    warnings.append(
                        ValidationWarning(
                            category="authentication",
                            impact=Impact.MEDIUM,
                            message=f"Webhook '{node.name}' accepts unauthenticated requests.",
                            suggestion="Enable header or basic authentication on the webhook.",
                        )
                    )
                    score -= OPEN_WEBHOOK_PENALTY

        integrations = spec.integrations if spec else []
        for integration in integrations:
            if self.catalog.is_sensitive(integration):
                warnings.append(
                    ValidationWarning(
                        category="data",
                        impact=Impact.LOW,
                        message=f"The workflow handles {integration.replace('_', ' ')} data.",
                        suggestion="Only pass the fields each step needs.",
                    )
                )
                score -= SENSITIVE_PENALTY

        score = clamp_score(score)
        if score < PASSING_SCORE and not issues:
            issues.append(
                ValidationIssue(
                    severity=Severity.MAJOR,
                    category="security",
                    message=f"Security score {score} is below {PASSING_SCORE}.",
                    suggestion="Review the warnings before deploying.",
                )
            )

        recommendations = []
        if credentials:
            recommendations.append(f"Set up credentials before deploying: {', '.join(credentials)}")
        return CheckResult(
            dimension=self.dimension,
            score=score,
            issues=issues,
            warnings=warnings,
            recommendations=recommendations,
            required_credentials=credentials,
        )
