"""
lisa milestone / epic / story add - Build out the planning tree.
"""

import json

from lisa.core.planning import (
    add_epic,
    add_milestone,
    add_story,
    mark_stories_complete,
    plan_epic,
    save_architecture,
    save_prd,
    save_stories,
)

NEXT_STEP_HINTS = {
    "prd": "NEXT: Generate PRD, then: lisa epic prd {id} <file>",
    "architecture": "NEXT: Generate architecture, then: lisa epic arch {id} <file>",
    "stories": "NEXT: Generate stories, then: lisa epic stories {id} <file.json>",
    "complete": "All artifacts generated. Check with: lisa validate epic {id}",
}


def cmd_milestone_add(args, state) -> int:
    milestone = add_milestone(state, args.name, args.description)
    print(f"Added milestone {milestone.id}: {milestone.name}")
    return 0


def cmd_epic_add(args, state) -> int:
    epic = add_epic(state, args.milestone, args.name, args.description)
    print(f"Created epic {epic.id}: {epic.name}")
    print(f"  Directory: epics/{epic.id}-{epic.slug}")
    print()
    print(f"Next: lisa epic plan {epic.id}")
    return 0


def cmd_epic_plan(args, state) -> int:
    plan = plan_epic(state, args.id)
    epic = plan.context.epic
    milestone = plan.context.milestone
    artifacts = epic.artifacts

    print(f"Planning {epic.id}: {epic.name}")
    print("=" * 60)
    print(f"Description: {epic.description}")
    print(f"Milestone:   {milestone.id} - {milestone.name}")
    print(f"Status:      {plan.status.value}")
    print()
    print("Artifacts:")
    print(f"  PRD:          {artifacts.prd.status} (v{artifacts.prd.version})")
    print(f"  Architecture: {artifacts.architecture.status} (v{artifacts.architecture.version})")
    print(f"  Stories:      {artifacts.stories.status} ({artifacts.stories.count})")

    discovery = plan.context.epic_discovery
    if discovery:
        print()
        print(f"Discovery: {discovery.status}")
        if discovery.problem:
            print(f"  Problem: {discovery.problem[:60]}")

    if plan.context.dependencies:
        print()
        print("Depends on:")
        for dep in plan.context.dependencies:
            print(f"  - {dep.id}: {dep.name} (PRD: {'yes' if dep.has_prd else 'no'}, "
                  f"architecture: {'yes' if dep.has_architecture else 'no'})")

    print()
    print(NEXT_STEP_HINTS[plan.next_step].format(id=epic.id))
    return 0


def cmd_epic_prd(args, state) -> int:
    with args.file as f:
        epic = save_prd(state, args.id, f.read())
    print(f"PRD saved for {epic.id} (v{epic.artifacts.prd.version}, "
          f"{epic.stats.requirements} requirements)")
    print("Next: Generate architecture")
    return 0


def cmd_epic_arch(args, state) -> int:
    with args.file as f:
        epic = save_architecture(state, args.id, f.read())
    print(f"Architecture saved for {epic.id} (v{epic.artifacts.architecture.version})")
    print("Next: Generate stories")
    return 0


def cmd_epic_stories(args, state) -> int:
    """Replace an epic's stories from a JSON list (or {"stories": [...]})."""
    with args.file as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("stories", [])

    stories_file = save_stories(state, args.id, data)
    print(f"Saved {len(stories_file.stories)} stories for {args.id}")
    return 0


def cmd_epic_stories_done(args, state) -> int:
    epic = mark_stories_complete(state, args.id)
    print(f"{epic.id} stories marked complete")
    print(f"Run validation: lisa validate epic {epic.id}")
    return 0


def cmd_story_add(args, state) -> int:
    story = add_story(
        state,
        args.epic,
        args.title,
        description=args.description,
        requirements=args.req or [],
        criteria=args.criterion or [],
    )
    print(f"Added story {story.id}: {story.title}")
    if story.requirements:
        print(f"  Implements: {', '.join(story.requirements)}")
    return 0
