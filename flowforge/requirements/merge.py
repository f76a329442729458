"""Monotonic merging of partial specifications.

A merge never loses information that was already present: triggers are
only replaced by resolved ones, actions and integrations only grow,
complexity only rises and a known infeasibility is never forgotten.
"""

from flowforge.graph.state import Action, Complexity, Specification


def max_complexity(a: Complexity, b: Complexity) -> Complexity:
    return a if a.rank >= b.rank else b


def merge_feasible(a: bool | None, b: bool | None) -> bool | None:
    """Conjunction over assessed values; None (not assessed) is neutral."""
    if a is None:
        return b
    if b is None:
        return a
    return a and b


def _merge_action(existing: Action, incoming: Action) -> Action:
    parameters = dict(existing.parameters)
    for key, value in incoming.parameters.items():
        if key not in parameters or parameters[key] in (None, ""):
            parameters[key] = value
    return existing.model_copy(
        update={
            "description": existing.description or incoming.description,
            "parameters": parameters,
        }
    )


def merge_specifications(
    prior: Specification | None,
    new: Specification | None,
) -> Specification | None:
    """Fold a newly extracted specification into the existing one.

    Returns a new Specification; neither input is modified. A frozen
    prior is returned unchanged.
    """
    if new is None:
        return prior
    if prior is None:
        return new.model_copy(deep=True, update={"frozen": False})
    if prior.frozen:
        return prior

    trigger = new.trigger if new.trigger_resolved else prior.trigger
    if new.trigger_resolved and prior.trigger.type == new.trigger.type:
        trigger = new.trigger.model_copy(
            update={
                "description": new.trigger.description or prior.trigger.description,
                "parameters": {**prior.trigger.parameters, **new.trigger.parameters},
            }
        )
    elif not new.trigger_resolved and not prior.trigger_resolved:
        # Keep a hint if only the newer extraction has one
        if getattr(new.trigger, "candidate", None) and not getattr(prior.trigger, "candidate", None):
            trigger = new.trigger

    actions = [action.model_copy(deep=True) for action in prior.actions]
    positions = {action.type: index for index, action in enumerate(actions)}
    for incoming in new.actions:
        if incoming.type in positions:
            index = positions[incoming.type]
            actions[index] = _merge_action(actions[index], incoming)
        else:
            positions[incoming.type] = len(actions)
            actions.append(incoming.model_copy(deep=True))

    issues = list(prior.issues)
    issues.extend(issue for issue in new.issues if issue not in issues)

    return Specification(
        trigger=trigger.model_copy(deep=True),
        actions=actions,
        integrations=[*prior.integrations, *new.integrations],
        complexity=max_complexity(prior.complexity, new.complexity),
        feasible=merge_feasible(prior.feasible, new.feasible),
        issues=issues,
    )
