"""
Tombola Odds - Game Parameter Schema

One validated configuration per analysis run: how many numbers sit on the
tracked card and how many are in the drum. Every engine instance is built
from exactly one of these, so memo tables are never shared across
configurations.

Usage:
    from config.draw_schema import GameParameters
    params = GameParameters(card_size=15, drum_size=90)
    json_str = params.model_dump_json(indent=2)
"""

from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, model_validator


class GameParameters(BaseModel):
    """Card size `c` and drum size `d`, with 0 <= c <= d and d > 0."""
    model_config = ConfigDict(frozen=True)

    card_size: int = Field(..., ge=0, strict=True)     # numbers on the card
    drum_size: int = Field(..., gt=0, strict=True)     # numbers in the drum
    name: str = ""                                     # preset label, informational

    @model_validator(mode="after")
    def card_fits_in_drum(self):
        if self.card_size > self.drum_size:
            raise ValueError(
                f"card_size ({self.card_size}) cannot exceed drum_size ({self.drum_size})"
            )
        return self

    @property
    def label(self) -> str:
        return self.name or f"c{self.card_size}_d{self.drum_size}"
