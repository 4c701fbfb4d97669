"""Best-effort work that follows a committed booking write.

Each task runs in its own boundary: a failure is rolled back, logged and
captured in the result list, and the next task still runs.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from flask import current_app

from models import db


@dataclass
class SideEffectResult:
    name: str
    ok: bool
    error: Optional[str] = None
    skipped: bool = False


@dataclass
class SideEffect:
    name: str
    run: Callable[[], object]


class Skip(Exception):
    """Raised by a task that has nothing to do (e.g. no recipient)."""


def run_side_effects(tasks) -> list:
    results = []
    for task in tasks:
        try:
            task.run()
        except Skip as exc:
            results.append(SideEffectResult(task.name, ok=True, error=str(exc) or None, skipped=True))
        except Exception as exc:
            db.session.rollback()
            current_app.logger.exception("side effect %s failed", task.name)
            results.append(SideEffectResult(task.name, ok=False, error=str(exc)))
        else:
            results.append(SideEffectResult(task.name, ok=True))
    return results


def summarize(results) -> dict:
    return {
        r.name: ("skipped" if r.skipped else "ok" if r.ok else "failed")
        for r in results
    }
