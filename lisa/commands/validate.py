"""
lisa validate - Check links, coverage and schema presence.
"""

from lisa.core.integrity import (
    run_full_validation,
    validate_coverage,
    validate_epic,
    validate_links,
)


def _print_broken(links) -> None:
    for link in links.broken:
        print(f"  x {link.source.id} -> {link.target.id} ({link.type})")


def cmd_validate_all(args, state) -> int:
    """Run every check, persist the reports, exit 1 if any errors."""
    result = run_full_validation(state)
    links, coverage, summary = result.links, result.coverage, result.summary

    print("Validation")
    print("=" * 60)
    print()
    print(f"Links:    {links.summary.total_links} total, {links.summary.broken} broken, "
          f"{links.summary.orphans} orphans")
    print(f"Coverage: {coverage.summary.coverage_percent:.1f}% "
          f"({coverage.summary.covered}/{coverage.summary.total_requirements}, "
          f"{coverage.summary.gaps} gaps)")
    print()

    if not result.issues.issues:
        print("All validations passed!")
        return 0

    print(f"{summary.errors} error(s), {summary.warnings} warning(s)")
    print()
    print("Issues:")
    for issue in result.issues.issues:
        print(f"  [{issue.severity.upper()}] {issue.message}")
        print(f"     Location: {issue.location.type}:{issue.location.id}")
        if issue.suggestion:
            print(f"     Suggestion: {issue.suggestion}")

    return 1 if summary.errors else 0


def cmd_validate_links(args, state) -> int:
    links = validate_links(state)

    print("Link Validation")
    print("=" * 60)
    print(f"  Total links: {links.summary.total_links}")
    print(f"  Valid:       {links.summary.valid}")
    print(f"  Broken:      {links.summary.broken}")
    print(f"  Orphans:     {links.summary.orphans}")

    if links.broken:
        print()
        print("Broken Links:")
        _print_broken(links)

    if links.orphans:
        print()
        print("Orphan Items:")
        for orphan in links.orphans:
            print(f"  ! {orphan.type}:{orphan.id} - {orphan.reason}")

    return 1 if links.broken else 0


def cmd_validate_coverage(args, state) -> int:
    coverage = validate_coverage(state)
    summary = coverage.summary

    print("Coverage Validation")
    print("=" * 60)
    print(f"  Total requirements: {summary.total_requirements}")
    print(f"  Covered:            {summary.covered}")
    print(f"  Gaps:               {summary.gaps}")
    print(f"  Coverage:           {summary.coverage_percent:.1f}%")
    print()

    for epic_id, reqs in coverage.coverage.items():
        covered = sum(1 for e in reqs.values() if e.status == "covered")
        percent = covered / len(reqs) * 100 if reqs else 0
        print(f"  {epic_id}: {percent:.0f}% ({covered}/{len(reqs)})")
        for req_id, entry in reqs.items():
            print(f"    {req_id}: {', '.join(entry.stories) or 'no stories'}")

    if coverage.gaps:
        print()
        print("Gaps (Need Stories):")
        for gap in coverage.gaps:
            print(f"  x {gap.requirement}" + (f" {gap.text}" if gap.text else ""))

    return 1 if coverage.gaps else 0


def cmd_validate_epic(args, state) -> int:
    report = validate_epic(state, args.id)

    def mark(present: bool) -> str:
        return "ok" if present else "missing"

    print(f"Validation: {report.epic_id} {report.epic_name}")
    print("=" * 60)
    print(f"  epic.json:       {mark(report.has_epic)}")
    print(f"  Status:          {report.status}")
    print(f"  prd.md:          {mark(report.has_prd)}"
          + (f" ({report.requirement_count} requirements, "
             f"{report.acceptance_criteria} acceptance criteria)" if report.has_prd else ""))
    print(f"  architecture.md: {mark(report.has_architecture)}")
    print(f"  Stories:         {report.story_count}")
    for status, count in report.story_statuses.items():
        print(f"    {status}: {count}")
    print()

    if not report.coverage_computed:
        print("Cannot calculate coverage without PRD and stories")
        return 0

    print(f"Coverage: {report.percent:.1f}% ({report.covered}/{report.total})")
    for req_id in report.uncovered:
        print(f"  x {req_id} NOT covered")

    return 1 if report.uncovered else 0
