"""
JSON exporter — Writes the audit document consumed by dashboards and issue generators.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..aggregator import AuditAggregate


def export_json(aggregate: AuditAggregate, output_path: Path) -> Path:
    """
    Write the full audit document to `output_path`.

    Returns:
        Path to the created JSON file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(aggregate.to_dict(), fh, indent=2, default=str, ensure_ascii=False)

    return output_path
