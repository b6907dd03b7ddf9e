"""
Tombola Odds - Draw Analysis Pipeline

Runs several card configurations side by side and writes one report
directory per configuration.

Stages (per configuration):
  Parameters → Distribution table → Cumulative table → Odds report → Files

Configurations are independent units of work: every worker builds its own
engine and memo table, so they run in parallel without coordination.

Usage:
    python -m flows.draw_pipeline tombola cinquina --output-dir ./output
"""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.panel import Panel

from config.draw_schema import GameParameters
from config.settings import OUTPUT_DIR, DrawConfig, configure_logging
from draw_engine import DrawEngineError, get_game_parameters
from tools.draw_math import DrawMathEngine

logger = logging.getLogger("tombola.pipeline")
console = Console()


def emit(event_type: str, **data):
    """Emit structured log events, one JSON payload per line."""
    payload = json.dumps({"event": event_type, **data}, default=str)
    logger.info(f"[EMIT] {payload}")


def _resolve(config: Union[str, GameParameters], drum_size: Optional[int]) -> GameParameters:
    if isinstance(config, GameParameters):
        return config
    if not isinstance(config, str):
        raise ValueError(f"Configuration must be a preset name or GameParameters, got {config!r}")
    return get_game_parameters(config, drum_size)


def _write_json(path: Path, data: dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")


def analyze_configuration(params: GameParameters, output_dir: Optional[Path] = None) -> dict:
    """Build, audit and (optionally) persist the odds for one configuration."""
    started = time.perf_counter()
    emit("stage_start", name=params.label, card_size=params.card_size,
         drum_size=params.drum_size)

    model = DrawMathEngine().model_for_parameters(params)
    report = model.odds_report()

    files = []
    if output_dir is not None:
        od = Path(output_dir) / params.label
        _write_json(od / "distribution.json", model.table.to_dict())
        _write_json(od / "cumulative.json", model.cumulative.to_dict())
        _write_json(od / "odds_report.json", report)
        files = [str(od / n) for n in ("distribution.json", "cumulative.json", "odds_report.json")]

    elapsed = time.perf_counter() - started
    emit("stage_complete", name=params.label, model_hash=model.model_hash,
         seconds=round(elapsed, 4))
    return {
        "label": params.label,
        "status": "complete",
        "model_hash": model.model_hash,
        "integrity": report["integrity"],
        "milestones": report["milestones"],
        "files": files,
        "seconds": round(elapsed, 4),
    }


def run_draw_analysis(configs: list = None, output_dir: Optional[str] = None,
                      drum_size: Optional[int] = None,
                      max_workers: Optional[int] = None) -> dict:
    """Analyze every configuration in parallel.

    Args:
        configs: Preset names and/or GameParameters (default: every preset)
        output_dir: Base output directory; nothing is written when None
        drum_size: Drum size for preset names (default DrawConfig.DEFAULT_DRUM_SIZE)
        max_workers: Thread count (default DrawConfig.MAX_PARALLEL_CONFIGS)
    """
    started = datetime.now().isoformat()
    configs = list(configs or DrawConfig.CARD_SIZES)
    workers = max(1, max_workers or DrawConfig.MAX_PARALLEL_CONFIGS)
    od = Path(output_dir) if output_dir else None

    console.print(Panel(
        f"[bold]🎱 Draw Analysis[/bold]\n\n"
        f"Configurations: {', '.join(str(getattr(c, 'label', c)) for c in configs)}\n"
        f"Drum: {drum_size or DrawConfig.DEFAULT_DRUM_SIZE}\n"
        f"Workers: {workers}\n"
        f"Output: {od or '(none)'}",
        title="Draw Analysis Starting", border_style="cyan",
    ))

    results = {}
    failures = {}
    resolved = []
    labels = set()
    for c in configs:
        try:
            params = _resolve(c, drum_size)
        except (DrawEngineError, ValueError) as e:
            failures[str(c)] = str(e)
            logger.error(f"Rejected configuration {c!r}: {e}")
            continue
        if params.label in labels:
            # Results and output directories are keyed by label
            failures[f"{params.label} (duplicate)"] = f"Duplicate configuration label {params.label!r}"
            logger.error(f"Rejected duplicate configuration {params.label!r}")
            continue
        labels.add(params.label)
        resolved.append(params)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(analyze_configuration, p, od): p for p in resolved}
        for future in as_completed(futures):
            params = futures[future]
            try:
                results[params.label] = future.result()
                console.print(f"[green]✅ {params.label}[/green] "
                              f"hash={results[params.label]['model_hash']}")
            except (DrawEngineError, OSError, ValueError) as e:
                failures[params.label] = str(e)
                logger.error(f"{params.label} failed: {e}")
                console.print(f"[red]❌ {params.label}: {e}[/red]")

    summary = {
        "started": started,
        "finished": datetime.now().isoformat(),
        "status": "complete" if not failures else ("partial" if results else "failed"),
        "results": dict(sorted(results.items())),
        "failures": failures,
    }
    if od is not None:
        _write_json(od / "summary.json", summary)
    return summary


def main(argv=None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Analyze several card configurations")
    parser.add_argument("presets", nargs="*", help=f"Presets (default: {list(DrawConfig.CARD_SIZES)})")
    parser.add_argument("--drum-size", type=int, default=None)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--output-dir", type=str, default=str(OUTPUT_DIR))
    args = parser.parse_args(argv)

    configure_logging()
    summary = run_draw_analysis(args.presets or None, args.output_dir,
                                drum_size=args.drum_size, max_workers=args.workers)
    return 0 if summary["status"] == "complete" else 1


if __name__ == "__main__":
    import sys
    sys.exit(main())
