#!/usr/bin/env python3
"""lisa CLI entrypoint."""

import sys
import argparse
import logging

from lisa.core.state import StateManager
from lisa.lib.config import resolve_root
from lisa.core.feedback import FEEDBACK_TYPES
from lisa.lib.constants import LOCK_HOLDERS, STORY_STATUSES
from lisa.lib.errors import LisaError
from lisa.lib.validate import ValidationError
from lisa.store.filesystem import create_filesystem_store
from lisa.commands import board as cmd_board_module
from lisa.commands import context as cmd_context_module
from lisa.commands import discovery as cmd_discovery_module
from lisa.commands import feedback as cmd_feedback_module
from lisa.commands import init as cmd_init_module
from lisa.commands import lock as cmd_lock_module
from lisa.commands import plan as cmd_plan_module
from lisa.commands import status as cmd_status_module
from lisa.commands import story as cmd_story_module
from lisa.commands import validate as cmd_validate_module

logger = logging.getLogger(__name__)


def get_state(args) -> StateManager:
    """Build the state manager for the tree under --root / $LISA_ROOT / cwd."""
    root = resolve_root(args.root)
    logger.debug(f"Using project root {root}")
    return StateManager(create_filesystem_store(root))


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='lisa', description='Lisa planning tree CLI')
    parser.add_argument('--root', '-r', help='Project root containing .lisa/ (default: $LISA_ROOT or cwd)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # lisa init
    p_init = subparsers.add_parser('init', help='Initialize a planning tree')
    p_init.add_argument('name', nargs='?', help='Project name')
    p_init.set_defaults(func=cmd_init_module.cmd_init)

    # lisa status
    p_status = subparsers.add_parser('status', help='Project overview')
    p_status.set_defaults(func=cmd_status_module.cmd_status)

    # lisa board
    p_board = subparsers.add_parser('board', help='Stories by status')
    p_board.add_argument('--epic', '-e', help='Only stories of this epic (e.g., E1)')
    p_board.set_defaults(func=cmd_board_module.cmd_board)

    # lisa story
    p_story = subparsers.add_parser('story', help='Show or update a story')
    story_sub = p_story.add_subparsers(dest='story_command', required=True)

    p_story_show = story_sub.add_parser('show', help='Show story details')
    p_story_show.add_argument('id', help='Story ID (e.g., E1.S2)')
    p_story_show.set_defaults(func=cmd_story_module.cmd_story_show)

    p_story_mark = story_sub.add_parser('mark', help='Set story status')
    p_story_mark.add_argument('id', help='Story ID (e.g., E1.S2)')
    p_story_mark.add_argument('status', choices=STORY_STATUSES)
    p_story_mark.add_argument('--reason', help='Why the story is blocked')
    p_story_mark.set_defaults(func=cmd_story_module.cmd_story_mark)

    p_story_add = story_sub.add_parser('add', help='Append a story to an epic')
    p_story_add.add_argument('epic', help='Epic ID (e.g., E1)')
    p_story_add.add_argument('title')
    p_story_add.add_argument('--description', '-d', default='')
    p_story_add.add_argument('--req', action='append', help='Requirement implemented (R1 or E1.R1); repeatable')
    p_story_add.add_argument('--criterion', action='append', help='Acceptance criterion; repeatable')
    p_story_add.set_defaults(func=cmd_plan_module.cmd_story_add)

    # lisa milestone
    p_milestone = subparsers.add_parser('milestone', help='Manage milestones')
    milestone_sub = p_milestone.add_subparsers(dest='milestone_command', required=True)

    p_milestone_add = milestone_sub.add_parser('add', help='Append a milestone')
    p_milestone_add.add_argument('name')
    p_milestone_add.add_argument('--description', '-d', default='')
    p_milestone_add.set_defaults(func=cmd_plan_module.cmd_milestone_add)

    # lisa epic
    p_epic = subparsers.add_parser('epic', help='Create and plan epics')
    epic_sub = p_epic.add_subparsers(dest='epic_command', required=True)

    p_epic_add = epic_sub.add_parser('add', help='Create an epic in a milestone')
    p_epic_add.add_argument('milestone', help='Milestone ID (e.g., M1)')
    p_epic_add.add_argument('name')
    p_epic_add.add_argument('--description', '-d', default='')
    p_epic_add.set_defaults(func=cmd_plan_module.cmd_epic_add)

    p_epic_plan = epic_sub.add_parser('plan', help='Show artifacts and next step')
    p_epic_plan.add_argument('id', help='Epic ID (e.g., E1)')
    p_epic_plan.set_defaults(func=cmd_plan_module.cmd_epic_plan)

    p_epic_prd = epic_sub.add_parser('prd', help='Save the PRD')
    p_epic_prd.add_argument('id', help='Epic ID (e.g., E1)')
    p_epic_prd.add_argument('file', type=argparse.FileType('r', encoding='utf-8'), help='Markdown file, or - for stdin')
    p_epic_prd.set_defaults(func=cmd_plan_module.cmd_epic_prd)

    p_epic_arch = epic_sub.add_parser('arch', help='Save the architecture document')
    p_epic_arch.add_argument('id', help='Epic ID (e.g., E1)')
    p_epic_arch.add_argument('file', type=argparse.FileType('r', encoding='utf-8'), help='Markdown file, or - for stdin')
    p_epic_arch.set_defaults(func=cmd_plan_module.cmd_epic_arch)

    p_epic_stories = epic_sub.add_parser('stories', help='Replace stories from JSON')
    p_epic_stories.add_argument('id', help='Epic ID (e.g., E1)')
    p_epic_stories.add_argument('file', type=argparse.FileType('r', encoding='utf-8'), help='JSON file, or - for stdin')
    p_epic_stories.set_defaults(func=cmd_plan_module.cmd_epic_stories)

    p_epic_done = epic_sub.add_parser('stories-done', help='Mark story generation complete')
    p_epic_done.add_argument('id', help='Epic ID (e.g., E1)')
    p_epic_done.set_defaults(func=cmd_plan_module.cmd_epic_stories_done)

    # lisa feedback
    p_feedback = subparsers.add_parser('feedback', help='Feedback raised while executing stories')
    p_feedback.set_defaults(func=cmd_feedback_module.cmd_feedback_list)
    feedback_sub = p_feedback.add_subparsers(dest='feedback_command')

    p_feedback_list = feedback_sub.add_parser('list', help='Pending feedback and stuck items (default)')
    p_feedback_list.set_defaults(func=cmd_feedback_module.cmd_feedback_list)

    p_feedback_add = feedback_sub.add_parser('add', help='Raise feedback on a story')
    p_feedback_add.add_argument('story', help='Story ID (e.g., E1.S2)')
    p_feedback_add.add_argument('type', choices=FEEDBACK_TYPES)
    p_feedback_add.add_argument('message')
    p_feedback_add.set_defaults(func=cmd_feedback_module.cmd_feedback_add)

    p_feedback_resolve = feedback_sub.add_parser('resolve', help='Mark feedback incorporated')
    p_feedback_resolve.add_argument('id', help='Feedback ID')
    p_feedback_resolve.add_argument('--resolution', help='What changed in the plan')
    p_feedback_resolve.set_defaults(func=cmd_feedback_module.cmd_feedback_resolve)

    p_feedback_dismiss = feedback_sub.add_parser('dismiss', help='Dismiss feedback')
    p_feedback_dismiss.add_argument('id', help='Feedback ID')
    p_feedback_dismiss.set_defaults(func=cmd_feedback_module.cmd_feedback_dismiss)

    # lisa context
    p_context = subparsers.add_parser('context', help='Print an assembled context package')
    p_context.add_argument('kind', nargs='?', default='project',
                           choices=['project', 'milestone', 'epic', 'story'])
    p_context.add_argument('id', nargs='?', help='Milestone ID (M1) or epic ID (E1)')
    p_context.add_argument('--json', action='store_true', help='Print as JSON')
    p_context.set_defaults(func=cmd_context_module.cmd_context)

    # lisa validate
    p_validate = subparsers.add_parser('validate', help='Check links, coverage and schemas')
    p_validate.set_defaults(func=cmd_validate_module.cmd_validate_all)
    validate_sub = p_validate.add_subparsers(dest='validate_command')

    p_validate_all = validate_sub.add_parser('all', help='Run every check (default)')
    p_validate_all.set_defaults(func=cmd_validate_module.cmd_validate_all)

    p_validate_links = validate_sub.add_parser('links', help='Link check only')
    p_validate_links.set_defaults(func=cmd_validate_module.cmd_validate_links)

    p_validate_coverage = validate_sub.add_parser('coverage', help='Coverage check only')
    p_validate_coverage.set_defaults(func=cmd_validate_module.cmd_validate_coverage)

    p_validate_epic = validate_sub.add_parser('epic', help='Report on one epic')
    p_validate_epic.add_argument('id', help='Epic ID (e.g., E1)')
    p_validate_epic.set_defaults(func=cmd_validate_module.cmd_validate_epic)

    # lisa lock
    p_lock = subparsers.add_parser('lock', help='Advisory tree lock')
    p_lock.set_defaults(func=cmd_lock_module.cmd_lock_show)
    lock_sub = p_lock.add_subparsers(dest='lock_command')

    p_lock_show = lock_sub.add_parser('show', help='Show the current lock')
    p_lock_show.set_defaults(func=cmd_lock_module.cmd_lock_show)

    p_lock_acquire = lock_sub.add_parser('acquire', help='Take the lock')
    p_lock_acquire.add_argument('holder', choices=LOCK_HOLDERS)
    p_lock_acquire.add_argument('--task', help='What the holder is doing')
    p_lock_acquire.set_defaults(func=cmd_lock_module.cmd_lock_acquire)

    p_lock_release = lock_sub.add_parser('release', help='Drop the lock')
    p_lock_release.set_defaults(func=cmd_lock_module.cmd_lock_release)

    # lisa discovery
    p_discovery = subparsers.add_parser('discovery', help='Milestone/epic discovery')
    discovery_sub = p_discovery.add_subparsers(dest='discovery_command', required=True)

    p_discovery_show = discovery_sub.add_parser('show', help='Show discovery notes')
    p_discovery_show.add_argument('element_type', choices=['milestone', 'epic'])
    p_discovery_show.add_argument('id', help='Milestone or epic ID')
    p_discovery_show.set_defaults(func=cmd_discovery_module.cmd_discovery_show)

    p_discovery_complete = discovery_sub.add_parser('complete', help='Mark discovery complete')
    p_discovery_complete.add_argument('element_type', choices=['milestone', 'epic'])
    p_discovery_complete.add_argument('id', help='Milestone or epic ID')
    p_discovery_complete.set_defaults(func=cmd_discovery_module.cmd_discovery_complete)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    state = get_state(args)
    try:
        return args.func(args, state)
    except LisaError as e:
        print(f"ERROR: {e}")
        return 1
    except ValidationError as e:
        print(f"ERROR: {e}")
        return 2


if __name__ == '__main__':
    sys.exit(main())
