"""Validation and feasibility result models."""

from pydantic import BaseModel, Field, computed_field, model_validator

from .enums import Impact, Severity


class ValidationIssue(BaseModel):
    severity: Severity
    category: str
    message: str
    suggestion: str = ""
    blocking: bool = False

    @model_validator(mode="after")
    def _minor_never_blocks(self) -> "ValidationIssue":
        if self.blocking and self.severity == Severity.MINOR:
            raise ValueError("minor issues cannot be blocking")
        return self


class ValidationWarning(BaseModel):
    category: str
    impact: Impact = Impact.LOW
    message: str
    suggestion: str = ""


class CheckResult(BaseModel):
    """Output of one validation dimension."""

    dimension: str
    score: int = Field(ge=0, le=100)
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    required_credentials: list[str] = Field(default_factory=list)


class DimensionScores(BaseModel):
    structural: int = Field(ge=0, le=100)
    performance: int = Field(ge=0, le=100)
    security: int = Field(ge=0, le=100)


class ValidationVerdict(BaseModel):
    """Aggregate of the structural, performance and security checks.

    The overall score is the weakest dimension; validity depends only on
    whether any blocking issue was raised.
    """

    scores: DimensionScores
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    required_credentials: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> int:
        return min(self.scores.structural, self.scores.performance, self.scores.security)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return not any(issue.blocking for issue in self.issues)

    def blocking_issues(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.blocking]


class FeasibilityReport(BaseModel):
    """Whether a specification can be built with the available capabilities.

    ``score`` is advisory; ``feasible`` is decided by ``blocking_issues`` alone.
    """

    feasible: bool
    score: int = Field(ge=0, le=100)
    axes: dict[str, int] = Field(default_factory=dict)
    blocking_issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    required_credentials: list[str] = Field(default_factory=list)
    substitutions: dict[str, str] = Field(default_factory=dict)
