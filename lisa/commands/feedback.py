"""
lisa feedback - Raise, list and settle feedback on stories.
"""

from lisa.core.feedback import add_feedback, dismiss_feedback, list_feedback, resolve_feedback
from lisa.lib.dates import time_ago


def cmd_feedback_list(args, state) -> int:
    result = list_feedback(state)

    print("Feedback & Blockers")
    print("=" * 60)
    print()

    if result.pending:
        print(f"Pending Feedback ({len(result.pending)}):")
        for item in result.pending:
            print(f"  {item.id} [{item.type}]")
            print(f"     {item.summary}")
            if item.source.story_id:
                print(f"     Story: {item.source.story_id}")
            print(f"     Created: {time_ago(item.created)}")
        print()
    else:
        print("No pending feedback")
        print()

    if result.stuck:
        print(f"Stuck Items ({len(result.stuck)}):")
        for item in result.stuck:
            print(f"  {item['id']}")
            print(f"     {item['summary']}")
            print(f"     Attempts: {len(item.get('attempts', []))}")
            if item.get("priority") is not None:
                print(f"     Priority: {item['priority']}")
            for option in item.get("suggested_options", []):
                print(f"       - {option.get('label')}: {option.get('description')}")
        print()

    if result.recently_incorporated:
        print("Recently Incorporated:")
        for entry in result.recently_incorporated:
            print(f"  {entry.id}: {entry.summary[:50]}")
            print(f"     Changes: {', '.join(entry.changes_made)}")

    return 0


def cmd_feedback_add(args, state) -> int:
    item, blocked = add_feedback(state, args.story, args.type, args.message)

    print(f"Feedback added: {item.id}")
    print(f"  Type:    {item.type}")
    print(f"  Story:   {args.story}")
    print(f"  Message: {item.summary}")
    if blocked:
        print(f"{args.story} marked as blocked")
    return 0


def cmd_feedback_resolve(args, state) -> int:
    item = resolve_feedback(state, args.id, args.resolution)

    print(f"Feedback {item.id} resolved")
    if item.type == "blocker" and item.source.story_id:
        print()
        print(f"Story {item.source.story_id} was blocked by this issue.")
        print(f"To unblock, run: lisa story mark {item.source.story_id} todo")
    return 0


def cmd_feedback_dismiss(args, state) -> int:
    dismiss_feedback(state, args.id)
    print(f"Feedback {args.id} dismissed")
    return 0
