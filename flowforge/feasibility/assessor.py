"""Feasibility assessment of a specification against the capability catalog.

Four axes are scored independently: capability availability,
integration/auth complexity, data-flow plausibility and rate-limit
exposure. The mean score is reported for information only; a
specification is feasible exactly when no blocking issue was found.
"""

import logging
from statistics import mean

from flowforge.feasibility.catalog import DEFAULT_CATALOG, CapabilityCatalog
from flowforge.graph.state import (
    AppEventTrigger,
    FeasibilityReport,
    ScheduleTrigger,
    Specification,
    WebhookTrigger,
)

logger = logging.getLogger(__name__)

_SUB_MINUTE_UNITS = {"seconds", "second"}


class _Axis:
    def __init__(self) -> None:
        self.score = 100
        self.blocking: list[str] = []
        self.warnings: list[str] = []
        self.recommendations: list[str] = []

    def penalise(self, amount: int) -> None:
        self.score = max(0, self.score - amount)


class FeasibilityAssessor:
    """Decides whether a specification can be built with available nodes."""

    def __init__(self, catalog: CapabilityCatalog | None = None):
        self.catalog = catalog or DEFAULT_CATALOG

    def assess(self, spec: Specification) -> FeasibilityReport:
        substitutions: dict[str, str] = {}
        credentials: list[str] = []

        capability = self._capability_axis(spec, substitutions)
        integration = self._integration_axis(spec, credentials)
        data_flow = self._data_flow_axis(spec)
        rate_limit = self._rate_limit_axis(spec)

        axes = {
            "capability": capability,
            "integration": integration,
            "data_flow": data_flow,
            "rate_limit": rate_limit,
        }
        blocking = [issue for axis in axes.values() for issue in axis.blocking]
        report = FeasibilityReport(
            feasible=not blocking,
            score=round(mean(axis.score for axis in axes.values())),
            axes={name: axis.score for name, axis in axes.items()},
            blocking_issues=blocking,
            warnings=[w for axis in axes.values() for w in axis.warnings],
            recommendations=[r for axis in axes.values() for r in axis.recommendations],
            required_credentials=credentials,
            substitutions=substitutions,
        )
        logger.info(
            "Feasibility: feasible=%s score=%d blocking=%d",
            report.feasible,
            report.score,
            len(blocking),
        )
        return report

    def _capability_axis(self, spec: Specification, substitutions: dict[str, str]) -> _Axis:
        axis = _Axis()
        trigger = spec.trigger
        if not spec.trigger_resolved:
            axis.blocking.append("The workflow has no trigger yet.")
            axis.recommendations.append("Say what should start the workflow.")
            axis.penalise(50)
        elif isinstance(trigger, AppEventTrigger):
            source = trigger.parameters.get("source")
            if self.catalog.trigger("app_event", source) is None:
                substitutions[f"trigger:{source}"] = "webhook"
                axis.warnings.append(
                    f"There is no built-in trigger for {source}; a webhook will receive its events instead."
                )
                axis.recommendations.append(f"Configure {source} to call the generated webhook URL.")
                axis.penalise(15)
        elif self.catalog.trigger(trigger.type) is None:
            axis.blocking.append(f"Trigger type '{trigger.type}' is not supported.")
            axis.penalise(50)

        for action in spec.actions:
            if self.catalog.action(action.type) is not None:
                continue
            alternative = self.catalog.alternative_for(action.type)
            if alternative:
                substitutions[action.type] = alternative
                axis.warnings.append(
                    f"'{action.type}' is not available directly; it will be built with {alternative}."
                )
                axis.penalise(15)
            else:
                axis.blocking.append(f"No node can perform the '{action.type}' step.")
                axis.recommendations.append(
                    f"Replace the '{action.type}' step with an HTTP request to a service that offers it."
                )
                axis.penalise(40)
        return axis

    def _integration_axis(self, spec: Specification, credentials: list[str]) -> _Axis:
        axis = _Axis()
        for integration in spec.integrations:
            capability = self.catalog.credential_for(integration)
            if capability is None or capability.credential is None:
                continue
            if capability.credential not in credentials:
                credentials.append(capability.credential)
            if capability.credential_kind == "oauth2":
                axis.penalise(10)
                axis.recommendations.append(
                    f"Connect your {integration.replace('_', ' ')} account (OAuth2) before deploying."
                )
            else:
                axis.penalise(5)
        return axis

    def _data_flow_axis(self, spec: Specification) -> _Axis:
        axis = _Axis()
        if not spec.actions:
            axis.blocking.append("The workflow does not do anything yet.")
            axis.penalise(50)
        for action in spec.actions:
            if not action.is_described:
                axis.warnings.append(f"The '{action.type}' step has no description.")
                axis.penalise(20)
        if "respond_to_webhook" in spec.action_types() and not isinstance(spec.trigger, WebhookTrigger):
            axis.blocking.append("Responding to a webhook requires the workflow to start from a webhook.")
            axis.penalise(40)
        return axis

    def _rate_limit_axis(self, spec: Specification) -> _Axis:
        axis = _Axis()
        for integration in spec.integrations:
            if self.catalog.is_rate_limited(integration):
                axis.warnings.append(f"{integration.replace('_', ' ')} enforces API rate limits.")
                axis.penalise(15)
        trigger = spec.trigger
        if isinstance(trigger, ScheduleTrigger):
            interval = trigger.parameters.get("interval") or {}
            if isinstance(interval, dict) and interval.get("unit") in _SUB_MINUTE_UNITS:
                axis.warnings.append("Running more often than once a minute risks hitting rate limits.")
                axis.recommendations.append("Consider running at most once a minute.")
                axis.penalise(25)
        return axis
