"""Game status table: f(t, k) for every t in [1, d] and k in [0, c]."""
import logging
import time

from config.draw_schema import GameParameters
from config.settings import DrawConfig
from draw_engine.base import DistributionTable, validate_parameters
from draw_engine.recurrence import RecurrenceEngine

logger = logging.getLogger("tombola.engine")


class GameStatusBuilder:
    """Assembles the full distribution table for one configuration."""

    def __init__(self, params: GameParameters, tolerance: float = None):
        self.params = params
        self.tolerance = DrawConfig.MASS_TOLERANCE if tolerance is None else tolerance
        self.engine = RecurrenceEngine(params)

    def build(self) -> DistributionTable:
        started = time.perf_counter()
        c = self.params.card_size
        values = tuple(
            tuple(self.engine.fraction_in_class(t, k) for k in range(c + 1))
            for t in range(1, self.params.drum_size + 1)
        )
        table = DistributionTable(params=self.params, values=values)

        drift = table.max_mass_error()
        if drift > self.tolerance:
            logger.warning(f"{self.params.label}: row mass drift {drift:.3e} "
                           f"exceeds tolerance {self.tolerance:.1e}")
        logger.debug(f"{self.params.label}: {len(values)}x{c + 1} table in "
                     f"{(time.perf_counter() - started) * 1000:.1f}ms "
                     f"({self.engine.cells_computed} cells computed)")
        return table


def build_table(card_size: int, drum_size: int, name: str = "") -> DistributionTable:
    """Distribution table for a c-number card and a d-number drum.

    Raises ParameterValidationError before computing anything if
    card_size < 0, drum_size <= 0 or card_size > drum_size.
    """
    params = validate_parameters(card_size, drum_size, name=name)
    return GameStatusBuilder(params).build()
