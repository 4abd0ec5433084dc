"""
lisa context - Print an assembled context package.
"""

import json

from lisa.core.context import (
    assemble_epic_context,
    assemble_milestone_context,
    assemble_project_context,
    assemble_story_context,
    context_to_dict,
)


def _assemble(state, kind: str, element_id: str | None):
    if kind == "project":
        return assemble_project_context(state)
    if not element_id:
        raise ValueError(f"'lisa context {kind}' needs an id")
    if kind == "milestone":
        return assemble_milestone_context(state, element_id)
    if kind == "epic":
        return assemble_epic_context(state, element_id)
    return assemble_story_context(state, element_id)


def _print_project(ctx) -> None:
    project = ctx.project
    print(f"Project: {project.name} ({project.status})")
    if ctx.discovery:
        if ctx.discovery.problem:
            print(f"  Problem: {ctx.discovery.problem}")
        if ctx.discovery.vision:
            print(f"  Vision:  {ctx.discovery.vision}")
        for value in ctx.discovery.values:
            print(f"  Value {value.id}: {value.name}")
    if ctx.constraints:
        for c in ctx.constraints.constraints:
            print(f"  Constraint {c.id} [{c.type}]: {c.constraint}")
    if ctx.config and ctx.config.stack:
        stack = ", ".join(f"{k}={v}" for k, v in ctx.config.stack.items())
        print(f"  Stack: {stack}")


def cmd_context(args, state) -> int:
    """Assemble project/milestone/epic/story context and print it."""
    try:
        ctx = _assemble(state, args.kind, args.id)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2

    if args.json:
        print(json.dumps(context_to_dict(ctx), indent=2))
        return 0

    if args.kind == "project":
        _print_project(ctx)
        return 0

    _print_project(ctx.project)
    print()
    print(f"Milestone: {ctx.milestone.id} {ctx.milestone.name}")
    if ctx.milestone_discovery:
        print(f"  Discovery: {ctx.milestone_discovery.status}")
    for sibling in ctx.sibling_epics:
        print(f"  Epic {sibling.id}: {sibling.name}")

    if args.kind == "milestone":
        return 0

    print()
    print(f"Epic: {ctx.epic.id} {ctx.epic.name}")
    print(f"  {ctx.epic.description}")
    if ctx.epic_discovery:
        print(f"  Discovery: {ctx.epic_discovery.status}")
    for dep in ctx.dependencies:
        prd = "PRD" if dep.has_prd else "no PRD"
        arch = "architecture" if dep.has_architecture else "no architecture"
        print(f"  Depends on {dep.id}: {dep.name} ({prd}, {arch})")

    if args.kind == "epic":
        return 0

    print()
    print(f"PRD: {len(ctx.prd)} chars, architecture: {len(ctx.architecture)} chars")
    print("Requirements:")
    for req in ctx.requirements:
        print(f"  {req.id}: {req.title}")
    return 0
