"""
Batch draft generation.

Turns a finished allocation into manufacture order line drafts. Drafts
carry a default lot number and expiration date that the user may edit
before committing them.
"""

from datetime import date, timedelta

import structlog

from config import settings
from exceptions import MissingShelfLifeError
from models.batch_planning import AllocationResult
from models.manufacture_order import BatchDraftLine

logger = structlog.get_logger(__name__)


def default_lot_number(variant_code: str, manufacture_date: date) -> str:
    """Lot number of the form ``<variant_code>-<YYYYMMDD>``."""
    return f"{variant_code}-{manufacture_date.strftime(settings.batch_lot_date_format)}"


def generate_drafts(result: AllocationResult, manufacture_date: date) -> list[BatchDraftLine]:
    """
    Build one draft line per non-zero allocation.

    Lines with zero quantity do not become order lines. Overflow-flagged
    results still produce drafts so the user can review and fix them.

    Args:
        result: Allocation result
        manufacture_date: Planned manufacture date (explicit, never "now")

    Returns:
        Draft lines in allocation order

    Raises:
        MissingShelfLifeError: A non-zero line has no shelf life
    """
    drafts = []
    for allocation in result.allocations:
        if allocation.allocated_quantity <= 0:
            continue
        if allocation.shelf_life_days is None:
            raise MissingShelfLifeError(allocation.code)

        drafts.append(BatchDraftLine(
            variant_code=allocation.code,
            display_name=allocation.display_name,
            planned_quantity=allocation.allocated_quantity,
            lot_number=default_lot_number(allocation.code, manufacture_date),
            expiration_date=manufacture_date + timedelta(days=allocation.shelf_life_days),
        ))

    logger.debug(
        "batch_drafts_generated",
        manufacture_date=manufacture_date.isoformat(),
        line_count=len(drafts),
        skipped=len(result.allocations) - len(drafts)
    )
    return drafts
