"""
lisa story - Show a story or change its status.
"""

from lisa.core.stories import find_story, mark_story


def cmd_story_show(args, state) -> int:
    """Show story details."""
    located = find_story(state, args.id)
    story = located.story
    epic = state.read_epic(located.epic_id, located.slug)

    print(f"{story.id}: {story.title}")
    print("=" * 60)
    print()
    print(f"Epic:     {located.epic_id}" + (f" ({epic.name})" if epic else ""))
    print(f"Type:     {story.type}")
    print(f"Status:   {story.status}")
    if story.assignee:
        print(f"Assignee: {story.assignee}")
    if story.estimated_points is not None:
        print(f"Points:   {story.estimated_points:g}")
    if story.blocked_reason:
        print(f"Blocked:  {story.blocked_reason}")
    print()

    print("Description:")
    print(f"  {story.description}")
    print()

    if story.requirements:
        print("Requirements:")
        for req in story.requirements:
            print(f"  - {req}")
        print()

    if story.acceptance_criteria:
        print("Acceptance Criteria:")
        for ac in story.acceptance_criteria:
            print(f"  [ ] {ac}")
        print()

    if story.dependencies:
        print("Depends on:")
        for dep in story.dependencies:
            print(f"  - {dep}")

    return 0


def cmd_story_mark(args, state) -> int:
    """Move a story to a new status."""
    old_status, new_status = mark_story(state, args.id, args.status, reason=args.reason)

    print(f"{args.id}: {old_status} -> {new_status}")
    if new_status == "blocked" and args.reason:
        print(f"  Reason: {args.reason}")
    if new_status == "done":
        print("Check for next stories with 'lisa board'")
    return 0
