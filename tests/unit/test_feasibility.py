"""Tests for feasibility assessment and the capability catalog."""

from flowforge.feasibility import DEFAULT_CATALOG, CapabilityCatalog, FeasibilityAssessor
from flowforge.graph.state import (
    Action,
    AppEventTrigger,
    ScheduleTrigger,
    UnknownTrigger,
    WebhookTrigger,
)
from tests.fakes import slack_spec


class TestFeasibilityAssessor:
    """Tests for the four-axis feasibility assessment."""

    def test_scheduled_slack_message(self):
        report = FeasibilityAssessor().assess(slack_spec())

        assert report.feasible
        assert report.axes == {"capability": 100, "integration": 90, "data_flow": 100, "rate_limit": 85}
        assert report.score == 94
        assert report.required_credentials == ["slackOAuth2Api"]
        assert report.blocking_issues == []

    def test_unresolved_trigger_blocks(self):
        report = FeasibilityAssessor().assess(slack_spec(trigger=UnknownTrigger(candidate="schedule")))

        assert not report.feasible
        assert "The workflow has no trigger yet." in report.blocking_issues

    def test_unknown_action_without_alternative_blocks(self):
        spec = slack_spec(actions=[Action(type="teleport", description="Teleport the package")])

        report = FeasibilityAssessor().assess(spec)

        assert not report.feasible
        assert report.blocking_issues == ["No node can perform the 'teleport' step."]

    def test_unavailable_action_is_substituted(self):
        spec = slack_spec(actions=[Action(type="sms", description="Text me")], integrations=["sms"])

        report = FeasibilityAssessor().assess(spec)

        assert report.feasible
        assert report.substitutions == {"sms": "http_request"}
        assert report.axes["capability"] == 85

    def test_respond_to_webhook_needs_webhook_trigger(self):
        spec = slack_spec(actions=[Action(type="respond_to_webhook", description="Reply")])
        assert not FeasibilityAssessor().assess(spec).feasible

        webhook = spec.model_copy(update={"trigger": WebhookTrigger(description="Incoming webhook")})
        assert FeasibilityAssessor().assess(webhook).feasible

    def test_app_event_without_native_trigger_uses_webhook(self):
        spec = slack_spec(
            trigger=AppEventTrigger(description="Shopify order", parameters={"source": "shopify"}),
        )

        report = FeasibilityAssessor().assess(spec)

        assert report.feasible
        assert report.substitutions == {"trigger:shopify": "webhook"}

    def test_sub_minute_schedule_warns(self):
        spec = slack_spec(
            trigger=ScheduleTrigger(parameters={"interval": {"unit": "seconds", "value": 10}}),
        )

        report = FeasibilityAssessor().assess(spec)

        assert report.feasible
        assert "Running more often than once a minute risks hitting rate limits." in report.warnings

    def test_low_score_does_not_make_infeasible(self):
        spec = slack_spec(
            actions=[Action(type="slack"), Action(type="google_sheets"), Action(type="github")],
            integrations=["slack", "google_sheets", "github"],
        )

        report = FeasibilityAssessor().assess(spec)

        assert report.axes["data_flow"] == 40
        assert report.feasible


class TestCapabilityCatalog:
    def test_lookup(self):
        assert DEFAULT_CATALOG.action("slack").node_type == "n8n-nodes-base.slack"
        assert DEFAULT_CATALOG.trigger("schedule").node_type == "n8n-nodes-base.scheduleTrigger"
        assert DEFAULT_CATALOG.trigger("app_event", "github").node_type == "n8n-nodes-base.githubTrigger"
        assert DEFAULT_CATALOG.trigger("app_event", "shopify") is None

    def test_alternative_must_be_available(self):
        catalog = CapabilityCatalog(actions=[], alternatives={"sms": "http_request"})
        assert catalog.alternative_for("sms") is None

    def test_credential_for_integration(self):
        assert DEFAULT_CATALOG.credential_for("slack").credential == "slackOAuth2Api"
        assert DEFAULT_CATALOG.credential_for("webhook") is None
