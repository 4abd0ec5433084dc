"""
lisa status - Project overview with derived milestone and epic status.
"""

from lisa.core.reporting import overview
from lisa.lib.dates import time_ago


def _progress_bar(fraction: float, width: int = 20) -> str:
    filled = int(round(fraction * width))
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def cmd_status(args, state) -> int:
    """Show project, milestones, epics and queues needing attention."""
    if not state.is_initialized():
        print("No lisa project found in this directory.")
        print()
        print("Run 'lisa init' to start planning.")
        return 0

    report = overview(state)
    project = report.project

    print("Lisa Status")
    print("=" * 60)
    print()
    print(f"Project: {project.name}")
    print(f"  Status:  {project.status}")
    print(f"  Updated: {time_ago(project.updated)}")
    if project.current_focus:
        print(f"  Focus:   {project.current_focus}")
    print()

    if report.milestones:
        print("Milestones:")
        for m in report.milestones:
            percent = round(m.progress * 100)
            print(f"  {m.id} {m.name:<30} {_progress_bar(m.progress)} "
                  f"{m.completed_stories}/{m.total_stories} ({percent}%)  {m.status.value}")
        print()

    if report.epics:
        print("Epics:")
        for epic in report.epics:
            print(f"  {epic.id}: {epic.name:<36} {epic.status.value}")
        print()

    if report.stuck_count or report.feedback_count:
        print("Attention Needed:")
        if report.stuck_count:
            print(f"  ! {report.stuck_count} blocked item(s) need resolution")
        if report.feedback_count:
            print(f"  - {report.feedback_count} feedback item(s) pending")
        print()

    print("Stats:")
    print(f"  Milestones: {len(report.milestones)}")
    print(f"  Epics:      {len(report.epics)}")
    print(f"  Stories:    {report.total_stories}")
    print(f"  Completed:  {report.completed_stories}/{report.total_stories}")

    return 0
