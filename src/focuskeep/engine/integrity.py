# src/focuskeep/engine/integrity.py

"""
Integrity check of the persisted data file.

Loads the file, reports closed-domain violations and repairs them in
memory. Nothing is written back here: persisting `report.state` is up to
the caller and goes through StateStore.save like any other write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .document import decode, looks_like_document
from .model import AppState
from .store import StateStore
from .validate import duplicate_id_issues, iter_violations


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IntegrityReport:
    """
    `issues` lists every problem found; `fixed` lists the repairs applied
    to `state`. Duplicate ids show up in `issues` only.
    """

    ok: bool
    issues: list[str] = field(default_factory=list)
    fixed: list[str] = field(default_factory=list)
    state: Optional[AppState] = None

    @property
    def unfixed(self) -> int:
        return len(self.issues) - len(self.fixed)


async def check_integrity(store: StateStore) -> IntegrityReport:
    if not await store.exists():
        return IntegrityReport(ok=True)

    text = await store.read_text()
    if text is None:
        return IntegrityReport(ok=False, issues=[f"Cannot read data file: {store.path}"])
    if not looks_like_document(text):
        return IntegrityReport(
            ok=False,
            issues=[f"Data file is not a recognisable document: {store.path}"],
        )

    state = decode(text)
    report = IntegrityReport(ok=True, state=state)

    # Describe every violation before repairing any.
    violations = list(iter_violations(state))
    for v in violations:
        report.issues.append(v.describe())
    for v in violations:
        v.repair()
        report.fixed.append(v.describe_fix())

    report.issues.extend(issue.message for issue in duplicate_id_issues(state))

    report.ok = not report.issues
    if not report.ok:
        logger.info(
            "Integrity check of %s: %d issue(s), %d fixed",
            store.path,
            len(report.issues),
            len(report.fixed),
        )
    return report
