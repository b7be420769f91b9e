#!/usr/bin/env python3
"""
Bulk-publish names from a YAML or JSON file (dry-run by default).

The file holds either a list of rows or a mapping with a ``rows`` key, each row
shaped like the /names/bulk request body:

  rows:
    - canonicalKey: maria
      variants:
        - {locale: en, value: Maria}
        - {locale: ta, value: மரியா}
      meanings:
        - {locale: en, value: beloved}

Usage:
  python scripts/20_loaders/load_names.py --file names.yaml [--db-url sqlite:///./data/namebank.db] [--apply] [--out report.json]
"""
from __future__ import annotations

import json
import sys
from functools import partial
from pathlib import Path
from typing import Any, Dict

# Ensure project root on sys.path for db imports regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pydantic import ValidationError
from ruamel.yaml import YAML

from api.schemas import BulkPublishRequest
from db import get_session, reconfigure
from namebank.audit import record_publish_audit
from namebank.config import load_settings
from namebank.errors import NamebankError
from namebank.languages import LanguageDirectory
from namebank.publish import BulkPublisher


def load_payload(path: Path) -> Dict[str, Any]:
    # JSON is valid YAML 1.2, so one loader covers both
    yaml = YAML(typ="safe")
    with path.open("r", encoding="utf8") as f:
        data = yaml.load(f)
    if data is None:
        return {"rows": []}
    if isinstance(data, list):
        return {"rows": data}
    return dict(data)


def publish_file(path: Path, apply: bool = False, source: str | None = None) -> Dict[str, Any]:
    payload = load_payload(path)
    payload["dryRun"] = not apply
    if source:
        payload["source"] = source
    elif not payload.get("source"):
        payload["source"] = path.name
    request = BulkPublishRequest.model_validate(payload)

    settings = load_settings()
    publisher = BulkPublisher(LanguageDirectory(ttl_seconds=settings.language_cache_ttl))
    with get_session() as session:
        result = publisher.publish(
            session,
            request.to_rows(),
            dry_run=request.dry_run,
            source=request.source,
            before_commit=partial(record_publish_audit, actor="load_names"),
        )
    return result.to_dict()


def main(argv: list[str] | None = None) -> int:
    import argparse

    p = argparse.ArgumentParser(description="Bulk-publish names from YAML/JSON (dry-run by default)")
    p.add_argument("--file", required=True, help="Path to a YAML or JSON rows file")
    p.add_argument("--db-url", dest="db_url", default=None, help="Database URL (overrides NAMEBANK_DB_URL)")
    p.add_argument("--apply", action="store_true", help="Commit changes (default: dry-run, rolled back)")
    p.add_argument("--source", default=None, help="Source label recorded with the publish (default: file name)")
    p.add_argument("--out", default=None, help="Write the full JSON report to this path")
    args = p.parse_args(argv)

    if args.db_url:
        reconfigure(args.db_url)

    path = Path(args.file)
    if not path.exists():
        print("File not found:", path)
        return 2

    try:
        report = publish_file(path, apply=args.apply, source=args.source)
    except ValidationError as e:
        print(f"Invalid rows file {path}:")
        print(e)
        return 1
    except NamebankError as e:
        print(f"[error] publish failed: {e}")
        return 1

    mode = "APPLY" if args.apply else "DRY-RUN"
    totals = report["totals"]
    print(
        f"{mode}: rows={totals['rows']} names={totals['namesEnsured']} "
        f"variants +{totals['variantsInserted']}/dup {totals['variantsDuplicates']} "
        f"meanings +{totals['meaningsInserted']}/dup {totals['meaningsDuplicates']}"
    )
    for d in report["duplicateDetails"][:20]:
        print(f"  dup {d['kind']} row={d['rowIndex']} key={d['canonicalKey']} {d['locale']}:{d['value']}")
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf8")
        print("Wrote report to", out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
