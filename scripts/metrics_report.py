"""Print the 24-hour efficiency figures and the live history from the data directory."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from config.settings import load_config
from modules.services.history_service import GenerationHistoryService
from modules.services.metrics_service import MetricsService
from modules.services.storage_service import JsonFileStorage
from modules.ui.dashboard import history_choices, render_dashboard, summarize


def run_report(data_dir: Path, as_json: bool) -> None:
    storage = JsonFileStorage(data_dir)
    stats = MetricsService(storage).stats()
    history = GenerationHistoryService(storage).list()
    if as_json:
        payload = stats.as_dict()
        payload["history"] = [item.to_dict() for item in history]
        print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))
        return
    print(render_dashboard(summarize(stats, history)))
    print()
    for label, _ in history_choices(history):
        print("-", label)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show generation metrics for the last 24 hours.")
    parser.add_argument("--data-dir", type=Path, default=None, help="Defaults to USTAZ_DATA_DIR.")
    parser.add_argument("--json", action="store_true", help="Emit raw statistics as JSON.")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    run_report(args.data_dir or load_config().data_dir, args.json)
