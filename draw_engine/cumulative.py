"""Probability of having reached at least class k by time t (suffix sums)."""
from config.settings import DrawConfig
from draw_engine.base import CumulativeTable, DistributionTable, TableIntegrityError


def _suffix_sums(row) -> tuple:
    out = [0.0] * len(row)
    running = 0.0
    for k in range(len(row) - 1, -1, -1):
        running += row[k]
        out[k] = running
    return tuple(out)


def cumulative_at_least(table: DistributionTable, tolerance: float = None) -> CumulativeTable:
    """P(class >= k at t) for every cell of `table`.

    The table must be well formed (drum_size rows of card_size + 1 cells,
    each row summing to 1 within tolerance), otherwise TableIntegrityError
    is raised.
    """
    tol = DrawConfig.MASS_TOLERANCE if tolerance is None else tolerance
    if len(table.values) != table.drum_size:
        raise TableIntegrityError(
            f"table has {len(table.values)} rows, expected {table.drum_size}")
    for t, row in zip(table.times, table.values):
        if len(row) != table.card_size + 1:
            raise TableIntegrityError(
                f"row t={t} has {len(row)} classes, expected {table.card_size + 1}")
    for t, total in zip(table.times, table.row_sums()):
        if abs(total - 1.0) > tol:
            raise TableIntegrityError(f"row t={t} sums to {total!r}, expected 1")
    return CumulativeTable(
        params=table.params,
        values=tuple(_suffix_sums(row) for row in table.values),
    )
