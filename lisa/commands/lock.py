"""
lisa lock - Inspect or manage the advisory tree lock.
"""

from lisa.lib.dates import parse_iso, utcnow


def cmd_lock_show(args, state) -> int:
    lock = state.read_lock()
    if not lock:
        print("Unlocked")
        return 0

    expired = parse_iso(lock["timeout"]) <= utcnow()
    print(f"Holder:  {lock['holder']}")
    if lock.get("task"):
        print(f"Task:    {lock['task']}")
    print(f"Started: {lock['started']}")
    print(f"Timeout: {lock['timeout']}" + (" (expired)" if expired else ""))
    return 0


def cmd_lock_acquire(args, state) -> int:
    if not state.acquire_lock(args.holder, args.task):
        lock = state.read_lock() or {}
        print(f"ERROR: Lock held by {lock.get('holder', 'unknown')} until {lock.get('timeout', '?')}")
        return 1

    print(f"Lock acquired by {args.holder}")
    return 0


def cmd_lock_release(args, state) -> int:
    state.release_lock()
    print("Lock released")
    return 0
