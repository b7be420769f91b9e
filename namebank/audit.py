from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from db.models import PublishAudit
from namebank.publish import PublishResult

_log = logging.getLogger(__name__)

SAMPLE_KEY_LIMIT = 10


def record_publish_audit(session: Session, result: PublishResult, actor: Optional[str] = None) -> PublishAudit:
    """Add one audit row summarising a committed publish. The caller commits.

    Dry runs persist nothing, so they are refused here.
    """
    if result.dry_run:
        raise ValueError("dry-run publishes are not audited")
    audit = PublishAudit(
        actor=actor,
        source=result.source,
        total_rows=result.totals.rows,
        inserted=result.inserted,
        duplicates=result.duplicates,
        sample_keys={
            "canonicalKeys": [r.canonical_key for r in result.rows[:SAMPLE_KEY_LIMIT]],
            "source": result.source,
            "totals": result.totals.to_dict(),
        },
    )
    session.add(audit)
    session.flush()
    _log.debug("publish audit %s recorded (actor=%s)", audit.id, actor)
    return audit
