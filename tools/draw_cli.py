#!/usr/bin/env python3
"""
Tombola Odds - Draw Table CLI

Usage:
    python -m tools.draw_cli tombola
    python -m tools.draw_cli cinquina --cumulative --every 10
    python -m tools.draw_cli custom --card-size 3 --drum-size 6
    python -m tools.draw_cli tombola --json --output-dir ./output
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.table import Table

from config.settings import DrawConfig, configure_logging
from draw_engine import DrawEngineError
from tools.draw_math import DrawMathEngine

logger = logging.getLogger("tombola.cli")


def render_table(model, cumulative: bool = False, every: int = 1) -> Table:
    """Rich table of one model, one row per `every` draws plus the last draw."""
    src = model.cumulative if cumulative else model.table
    title = "P(class ≥ k)" if cumulative else "P(class = k)"
    table = Table(title=f"{model.params.label}: {title}")
    table.add_column("t", style="cyan", justify="right")
    for k in range(model.params.card_size + 1):
        table.add_column(f"k={k}", justify="right")
    d = model.params.drum_size
    for row in src.rows():
        t = row[0]
        if t % every and t != d:
            continue
        table.add_row(str(t), *(f"{v:.6f}" for v in row[1:]))
    return table


def render_milestones(model) -> Table:
    table = Table(title=f"{model.params.label}: milestones")
    table.add_column("Class", style="cyan")
    table.add_column("Median draw", justify="right")
    table.add_column("Expected draws", justify="right")
    table.add_column(f"P(≥k) at t={max(1, model.params.drum_size // 2)}", justify="right")
    for m in model.milestones:
        table.add_row(str(m.k), str(m.median_draw), f"{m.expected_draws:.3f}",
                      f"{m.p_by_half_drum:.6f}")
    return table


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Draw-by-draw hit-class odds for a card")
    parser.add_argument("game_type", choices=list(DrawConfig.CARD_SIZES) + ["custom", "all"])
    parser.add_argument("--card-size", type=int, help="Numbers on the card (custom only)")
    parser.add_argument("--drum-size", type=int, default=None,
                        help=f"Numbers in the drum (default {DrawConfig.DEFAULT_DRUM_SIZE})")
    parser.add_argument("--cumulative", action="store_true", help="Show P(class >= k)")
    parser.add_argument("--every", type=int, default=1, help="Print every Nth draw")
    parser.add_argument("--json", action="store_true", help="Print the JSON report")
    parser.add_argument("--output-dir", type=str, default=None)
    parser.add_argument("--log-level", type=str, default=None)
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    console = Console(stderr=args.json)  # stdout carries only the JSON
    engine = DrawMathEngine()

    if args.game_type == "custom" and args.card_size is None:
        parser.error("custom requires --card-size")
    if args.card_size is not None and args.game_type != "custom":
        parser.error("--card-size only applies to custom")
    if args.every < 1:
        parser.error("--every must be >= 1")

    names = list(DrawConfig.CARD_SIZES) if args.game_type == "all" else [args.game_type]
    out_dir = Path(args.output_dir) if args.output_dir else None

    failed = 0
    for name in names:
        try:
            if name == "custom":
                drum = DrawConfig.DEFAULT_DRUM_SIZE if args.drum_size is None else args.drum_size
                model = engine.model(args.card_size, drum, name="custom")
            else:
                model = engine.model_for_preset(name, args.drum_size)
        except DrawEngineError as e:
            logger.error(f"{name}: {e}")
            console.print(f"[red]❌ {name}: {e}[/red]")
            failed += 1
            continue

        if args.json:
            print(model.to_json(include_tables=True))
        else:
            console.print(render_table(model, cumulative=args.cumulative, every=args.every))
            console.print(render_milestones(model))
            proof = model.probability_proof()
            console.print(f"   📜 Σp={proof['probability_sum_check']} "
                          f"closed-form={proof['hypergeometric_check']} "
                          f"hash={model.model_hash}")

        if out_dir:
            path = out_dir / model.params.label / "odds_report.json"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(model.odds_report(include_tables=True), indent=2,
                                       default=str), encoding="utf-8")
            console.print(f"✅ {model.params.label}: {path}")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
