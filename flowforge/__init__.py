"""FlowForge: conversational workflow builder.

Turns a free-form description of an automation into a validated,
deployable workflow definition over a multi-turn conversation.
"""

__version__ = "0.1.0"
