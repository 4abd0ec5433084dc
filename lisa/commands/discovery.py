"""
lisa discovery - Show or complete milestone/epic discovery.
"""

from lisa.core.discovery import complete_element_discovery, read_element_discovery


def cmd_discovery_show(args, state) -> int:
    discovery = read_element_discovery(state, args.element_type, args.id)
    if discovery is None:
        print(f"No discovery found for {args.element_type} {args.id}")
        return 1

    print(f"Discovery: {args.element_type} {args.id}")
    print("=" * 60)
    print(f"Status:  {discovery.status}")
    print(f"Source:  {discovery.source}")
    print(f"Updated: {discovery.updated}")
    if discovery.problem:
        print()
        print("Problem:")
        print(f"  {discovery.problem}")

    for title, items in (
        ("Scope", discovery.scope),
        ("Out of Scope", discovery.out_of_scope),
        ("Success Criteria", discovery.success_criteria),
    ):
        if items:
            print()
            print(f"{title}:")
            for item in items:
                print(f"  - {item}")

    return 0


def cmd_discovery_complete(args, state) -> int:
    complete_element_discovery(state, args.element_type, args.id)
    print(f"Discovery for {args.element_type} {args.id} marked as complete")
    return 0
