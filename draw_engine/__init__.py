"""
Tombola Odds - Draw Engine

Exact draw-by-draw distribution of the hit count ("class") of one card.
Each configuration exposes: build_table() and cumulative_at_least().

Usage:
    from draw_engine import build_table, cumulative_at_least, get_game_parameters
    params = get_game_parameters("tombola")          # 15-number card, 90-number drum
    table = build_table(params.card_size, params.drum_size)
    at_least = cumulative_at_least(table)
"""

from config.draw_schema import GameParameters
from config.settings import DrawConfig
from draw_engine.base import (
    CumulativeTable, DistributionTable, DomainError, DrawEngineError,
    ParameterValidationError, TableIntegrityError, validate_parameters,
)
from draw_engine.probability import ProbabilityModel
from draw_engine.recurrence import RecurrenceEngine
from draw_engine.status import GameStatusBuilder, build_table
from draw_engine.cumulative import cumulative_at_least

GAME_PRESETS = dict(DrawConfig.CARD_SIZES)

GAME_TYPES = list(GAME_PRESETS.keys())


def get_game_parameters(name: str, drum_size: int = None) -> GameParameters:
    """Get the parameters for a named preset, on the default drum unless given."""
    card_size = GAME_PRESETS.get(name.lower())
    if card_size is None:
        raise ValueError(f"Unknown game type: {name}. Available: {GAME_TYPES}")
    drum = DrawConfig.DEFAULT_DRUM_SIZE if drum_size is None else drum_size
    return validate_parameters(card_size, drum, name=name.lower())
