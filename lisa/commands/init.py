"""
lisa init - Create a new planning tree.
"""


def cmd_init(args, state) -> int:
    """Initialize .lisa/ under the project root."""
    project = state.initialize(args.name)

    print(f"Initialized project: {project.name}")
    print(f"  ID:   {project.id}")
    print(f"  Root: {state.store.get_root_dir()}")
    print()
    print("Next steps:")
    print("  lisa status          # Project overview")
    print("  lisa validate        # Check links and coverage")
    return 0
