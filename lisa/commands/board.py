"""
lisa board - Stories grouped by status.
"""

from lisa.core.reporting import board

# Columns shown side by side; blocked and deferred are listed below the table
VISIBLE_COLUMNS = ("todo", "in_progress", "review", "done")
COLUMN_WIDTH = 16


def cmd_board(args, state) -> int:
    """Print the story board, optionally for one epic."""
    result = board(state, epic_filter=args.epic)

    print("Lisa Board")
    print("=" * 60)
    print()

    if result.is_empty:
        print("No stories found.")
        return 0

    columns = result.columns
    print("".join(c.upper().ljust(COLUMN_WIDTH) for c in VISIBLE_COLUMNS))
    print("".join(("-" * (COLUMN_WIDTH - 2)).ljust(COLUMN_WIDTH) for _ in VISIBLE_COLUMNS))

    rows = max(len(columns[c]) for c in VISIBLE_COLUMNS)
    for i in range(rows):
        cells = []
        for c in VISIBLE_COLUMNS:
            card = columns[c][i] if i < len(columns[c]) else None
            cells.append((card.story.id if card else "")[:COLUMN_WIDTH - 1].ljust(COLUMN_WIDTH))
        print("".join(cells).rstrip())

    if columns["assigned"]:
        print()
        print(f"ASSIGNED ({len(columns['assigned'])}):")
        for card in columns["assigned"]:
            print(f"  {card.story.id}: {card.story.assignee or 'unassigned'}")

    if columns["blocked"]:
        print()
        print(f"BLOCKED ({len(columns['blocked'])}):")
        for card in columns["blocked"]:
            print(f"  {card.story.id}: {card.story.blocked_reason or 'No reason'}")

    if columns["deferred"]:
        print()
        print(f"DEFERRED ({len(columns['deferred'])}):")
        for card in columns["deferred"]:
            print(f"  {card.story.id}: {card.story.title}")

    return 0
