"""Tests for artifact generation, strategies and structural corrections."""

import pytest

from flowforge.exceptions import GenerationError, LLMResponseError
from flowforge.generation import (
    ArtifactGenerator,
    DeterministicArtifactBuilder,
    LLMArtifactBuilder,
    check_structure,
    drop_dangling_connections,
    find_structure_violations,
    find_template,
    regenerate_ids,
    workflow_name,
)
from flowforge.graph.state import (
    Action,
    Connection,
    Correction,
    GenerationStrategy,
    ManualTrigger,
    ScheduleTrigger,
    UnknownTrigger,
    WebhookTrigger,
)
from tests.fakes import FakeCompletion, ScriptedArtifactBuilder, make_artifact, slack_spec


def _pairs(artifact):
    return [(conn.source, conn.target) for conn in artifact.connections]


class TestDeterministicBuilder:
    """Tests for the chained deterministic build."""

    async def test_scheduled_slack_message(self):
        artifact = await ArtifactGenerator().generate(slack_spec())

        assert artifact.node_ids() == ["trigger", "slack-1"]
        assert _pairs(artifact) == [("trigger", "slack-1")]
        assert artifact.strategy == GenerationStrategy.STANDARD

        trigger, slack = artifact.nodes
        assert trigger.node_type == "n8n-nodes-base.scheduleTrigger"
        assert trigger.parameters == {
            "rule": {"interval": [{"triggerAtHour": 9, "triggerAtMinute": 0, "field": "days"}]}
        }
        assert slack.node_type == "n8n-nodes-base.slack"
        assert slack.parameters == {"channel": "#general", "text": "Send a Slack message"}
        assert slack.credentials == {"slackOAuth2Api": "Slack account"}

    async def test_name_comes_from_specification(self):
        artifact = await ArtifactGenerator().generate(slack_spec())
        assert artifact.name == "Every day at 09:00: Send a Slack message"

    def test_long_names_are_truncated(self):
        spec = slack_spec(actions=[Action(type="slack", description="x" * 200)])
        name = workflow_name(spec)
        assert len(name) == 80
        assert name.endswith("...")

    async def test_interval_schedule(self):
        spec = slack_spec(trigger=ScheduleTrigger(parameters={"interval": {"unit": "hours", "value": 2}}))

        artifact = await ArtifactGenerator().generate(spec)

        assert artifact.nodes[0].parameters == {"rule": {"interval": [{"field": "hours", "hoursInterval": 2}]}}

    @pytest.mark.parametrize(
        "parameters",
        [{"time": "8am"}, {"time": "25:00"}, {"interval": {"unit": "hours", "value": "often"}}],
    )
    async def test_unreadable_schedule_is_a_parse_failure(self, parameters):
        spec = slack_spec(trigger=ScheduleTrigger(parameters=parameters))

        with pytest.raises(GenerationError) as exc_info:
            await ArtifactGenerator().generate(spec)
        assert exc_info.value.reason == "parse"

    async def test_unresolved_trigger(self):
        spec = slack_spec(trigger=UnknownTrigger())

        with pytest.raises(GenerationError) as exc_info:
            await DeterministicArtifactBuilder().build(spec, "x")
        assert exc_info.value.violations == ["no_trigger"]

    async def test_no_actions(self):
        with pytest.raises(GenerationError) as exc_info:
            await DeterministicArtifactBuilder().build(slack_spec(actions=[]), "x")
        assert exc_info.value.violations == ["no_actions"]

    async def test_unavailable_action(self):
        spec = slack_spec(actions=[Action(type="sms", description="Text me")])

        with pytest.raises(GenerationError) as exc_info:
            await ArtifactGenerator().generate(spec)
        assert exc_info.value.reason == "capability"


class TestStrategies:
    """Tests for the fallback generation strategies."""

    async def test_template(self):
        artifact = await ArtifactGenerator().generate(slack_spec(), GenerationStrategy.TEMPLATE)

        assert artifact.node_ids() == ["trigger", "slack"]
        assert artifact.strategy == GenerationStrategy.TEMPLATE
        assert artifact.name == "Every day at 09:00: Send a Slack message"

        trigger, slack = artifact.nodes
        assert trigger.parameters == {
            "rule": {"interval": [{"triggerAtHour": 9, "triggerAtMinute": 0, "field": "days"}]}
        }
        assert slack.parameters == {"channel": "#general", "text": "Send a Slack message"}
        assert slack.credentials == {"slackOAuth2Api": "Slack account"}

    async def test_template_defaults_and_overrides(self):
        spec = slack_spec(
            trigger=WebhookTrigger(description="Form submitted"),
            actions=[Action(type="google_sheets", description="Log the submission")],
            integrations=["google_sheets"],
        )
        generator = ArtifactGenerator()

        artifact = await generator.generate(spec, GenerationStrategy.TEMPLATE)

        assert find_template(spec).title == "Webhook to Google Sheets"
        assert artifact.node_ids() == ["trigger", "google-sheets"]
        assert artifact.nodes[0].parameters == {"path": "workflow", "httpMethod": "POST"}
        assert artifact.nodes[1].parameters == {
            "operation": "append",
            "documentId": "Workflow data",
            "sheetName": "Sheet1",
        }

        spec.actions[0].parameters["spreadsheet"] = "Leads"
        artifact = await generator.generate(spec, GenerationStrategy.TEMPLATE)
        assert artifact.nodes[1].parameters["documentId"] == "Leads"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"trigger": ManualTrigger(description="Run manually")},
            {"actions": [Action(type="discord", description="Post to Discord")]},
            {"trigger": ScheduleTrigger(parameters={"time": "8am"})},
        ],
    )
    async def test_template_falls_back_to_bare_workflow(self, overrides):
        artifact = await ArtifactGenerator().generate(slack_spec(**overrides), GenerationStrategy.TEMPLATE)

        assert artifact.node_ids() == ["start", "pass-through"]
        assert artifact.strategy == GenerationStrategy.TEMPLATE

    async def test_simplified_keeps_first_two_actions(self):
        spec = slack_spec(
            actions=[
                Action(type="slack", description="Post", parameters={"channel": "#a"}),
                Action(type="discord", description="Announce", parameters={"channel": "#b"}),
                Action(type="http_request", description="Call", parameters={"url": "https://x.io"}),
            ]
        )

        artifact = await ArtifactGenerator().generate(spec, GenerationStrategy.SIMPLIFIED)

        assert artifact.node_ids() == ["trigger", "slack-1", "discord-2"]
        assert artifact.strategy == GenerationStrategy.SIMPLIFIED

    async def test_alternative_nodes_substitute(self):
        spec = slack_spec(actions=[Action(type="sms", description="Text me", parameters={"to": "+1555"})])

        artifact = await ArtifactGenerator().generate(spec, GenerationStrategy.ALTERNATIVE_NODES)

        node = artifact.get_node("http-request-1")
        assert node.node_type == "n8n-nodes-base.httpRequest"
        assert node.parameters == {"original_step": "sms", "to": "+1555", "method": "POST"}

    async def test_llm_builder_only_for_standard(self):
        completion = FakeCompletion()
        generator = ArtifactGenerator(llm_builder=LLMArtifactBuilder(completion))

        await generator.generate(slack_spec(), GenerationStrategy.SIMPLIFIED)

        assert completion.prompts == []


class TestCorrections:
    """Tests for corrections requested by the retry coordinator."""

    async def test_default_trigger(self):
        spec = slack_spec(trigger=UnknownTrigger())

        artifact = await ArtifactGenerator().generate(spec, corrections=[Correction.DEFAULT_TRIGGER])

        assert artifact.nodes[0].node_type == "n8n-nodes-base.manualTrigger"
        assert artifact.nodes[0].name == "Run manually"

    async def test_default_action(self):
        artifact = await ArtifactGenerator().generate(
            slack_spec(actions=[]), corrections=[Correction.DEFAULT_ACTION]
        )

        assert artifact.node_ids() == ["trigger", "noop-1"]
        assert artifact.nodes[1].name == "Pass data through"

    async def test_duplicate_ids_fail_without_correction(self):
        builder = ScriptedArtifactBuilder(
            make_artifact(("trigger", "step", "step"), [("trigger", "step"), ("step", "step")])
        )

        with pytest.raises(GenerationError) as exc_info:
            await ArtifactGenerator(builder=builder).generate(slack_spec())
        assert exc_info.value.violations == ["duplicate_id"]
        assert exc_info.value.reason == "structure"

    async def test_regenerate_ids(self):
        builder = ScriptedArtifactBuilder(
            make_artifact(("trigger", "step", "step"), [("trigger", "step"), ("step", "step")])
        )

        artifact = await ArtifactGenerator(builder=builder).generate(
            slack_spec(), corrections=[Correction.REGENERATE_IDS]
        )

        assert artifact.node_ids() == ["trigger", "step", "step-2"]
        assert _pairs(artifact) == [("trigger", "step"), ("step", "step-2")]

    async def test_drop_dangling_connections(self):
        builder = ScriptedArtifactBuilder(make_artifact(("trigger", "step"), [("trigger", "step"), ("step", "ghost")]))

        artifact = await ArtifactGenerator(builder=builder).generate(
            slack_spec(), corrections=[Correction.DROP_DANGLING_CONNECTIONS]
        )

        assert _pairs(artifact) == [("trigger", "step")]

    async def test_specification_is_not_modified(self):
        spec = slack_spec(trigger=UnknownTrigger())

        await ArtifactGenerator().generate(spec, corrections=[Correction.DEFAULT_TRIGGER])

        assert isinstance(spec.trigger, UnknownTrigger)


class TestLLMArtifactBuilder:
    """Tests for the LLM builder boundary."""

    PAYLOAD = {
        "nodes": [
            {"id": "t", "name": "Start", "kind": "trigger", "node_type": "n8n-nodes-base.manualTrigger"},
            {"id": "s", "name": "Post", "kind": "action", "node_type": "n8n-nodes-base.slack"},
        ],
        "connections": [{"source": "t", "target": "s"}],
    }

    async def test_valid_payload(self):
        builder = LLMArtifactBuilder(FakeCompletion(dict(self.PAYLOAD)))

        artifact = await builder.build(slack_spec(), "Morning post")

        assert artifact.name == "Morning post"
        assert artifact.node_ids() == ["t", "s"]
        assert [node.position for node in artifact.nodes] == [[240, 300], [460, 300]]

    async def test_non_json_output(self):
        builder = LLMArtifactBuilder(FakeCompletion(LLMResponseError("bad", raw_output="nope")))

        with pytest.raises(GenerationError) as exc_info:
            await builder.build(slack_spec(), "x")
        assert exc_info.value.reason == "parse"

    async def test_malformed_payload(self):
        builder = LLMArtifactBuilder(FakeCompletion({"nodes": [{"id": "t"}]}))

        with pytest.raises(GenerationError) as exc_info:
            await builder.build(slack_spec(), "x")
        assert exc_info.value.reason == "parse"

    async def test_unavailable_node_type(self):
        payload = {
            "nodes": [{"id": "t", "name": "Start", "kind": "trigger", "node_type": "n8n-nodes-base.teleport"}],
            "connections": [],
        }
        builder = LLMArtifactBuilder(FakeCompletion(payload))

        with pytest.raises(GenerationError) as exc_info:
            await builder.build(slack_spec(), "x")
        assert exc_info.value.reason == "capability"


class TestStructure:
    """Tests for structural invariants."""

    def test_well_formed(self):
        artifact = make_artifact()
        assert find_structure_violations(artifact) == []
        assert check_structure(artifact) is artifact

    def test_empty(self):
        assert find_structure_violations(make_artifact(())) == ["empty"]

    def test_all_violations_in_order(self):
        artifact = make_artifact(("a", "a", "b"), [("a", "b"), ("b", "a"), ("b", "ghost")])
        assert find_structure_violations(artifact) == ["duplicate_id", "dangling_connection", "no_entry_point"]

    def test_check_structure_raises(self):
        artifact = make_artifact(("a", "b"), [("a", "b"), ("b", "a")])

        with pytest.raises(GenerationError) as exc_info:
            check_structure(artifact)
        assert exc_info.value.violations == ["no_entry_point"]

    def test_regenerate_ids_leaves_unique_ids_alone(self):
        artifact = make_artifact(("trigger", "step", "notify"))
        assert regenerate_ids(artifact) == artifact

    def test_regenerate_ids_avoids_taken_ids(self):
        artifact = make_artifact(("trigger", "step", "step-2", "step"), [])
        assert regenerate_ids(artifact).node_ids() == ["trigger", "step", "step-2", "step-3"]

    def test_drop_dangling(self):
        artifact = make_artifact(("a", "b"), [("a", "b"), ("a", "c")])
        assert drop_dangling_connections(artifact).connections == [Connection(source="a", target="b")]
