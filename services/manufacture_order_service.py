"""
Manufacture order hand-off.

Creates a manufacture order from committed batch draft lines. The order
starts in state "draft"; later state transitions belong to the order
workflow, not to batch planning.
"""

from typing import Optional

import structlog

from config import get_admin_client, get_supabase_client
from exceptions import AppError, ManufactureOrderCommitError
from models.manufacture_order import ManufactureOrderCommit, ManufactureOrderCreated

logger = structlog.get_logger(__name__)


def order_number_for(semi_product_code: str, manufacture_date) -> str:
    """Order number of the form ``MO-<semi_product_code>-<YYYYMMDD>``."""
    return f"MO-{semi_product_code}-{manufacture_date.strftime('%Y%m%d')}"


class ManufactureOrderService:
    """
    Manufacture order creation from batch drafts.

    Writes one manufacture_orders row and its manufacture_order_lines.
    """

    def __init__(self):
        try:
            self.db = get_admin_client() or get_supabase_client()
        except Exception as e:
            raise ManufactureOrderCommitError(
                "Manufacture order store is not reachable",
                details={"error": str(e)}
            ) from e
        self.orders_table = "manufacture_orders"
        self.lines_table = "manufacture_order_lines"

    def commit(self, data: ManufactureOrderCommit) -> ManufactureOrderCreated:
        """
        Hand finalized drafts over as a new manufacture order.

        Args:
            data: Semi-product, manufacture date and edited draft lines

        Returns:
            ManufactureOrderCreated

        Raises:
            ManufactureOrderCommitError: Order or lines could not be stored
        """
        order_number = order_number_for(data.semi_product_code, data.manufacture_date)
        logger.info(
            "committing_manufacture_order",
            order_number=order_number,
            line_count=len(data.lines)
        )

        try:
            result = (
                self.db.table(self.orders_table)
                .insert({
                    "order_number": order_number,
                    "semi_product_code": data.semi_product_code,
                    "planned_date": data.manufacture_date.isoformat(),
                    "responsible_person": data.responsible_person,
                    "state": "draft",
                })
                .execute()
            )
            if not result.data:
                raise ManufactureOrderCommitError(
                    "Manufacture order was not created",
                    details={"order_number": order_number}
                )
            order_id = str(result.data[0]["id"])

            rows = [
                {
                    "order_id": order_id,
                    "product_code": line.variant_code,
                    "product_name": line.display_name,
                    "planned_quantity": line.planned_quantity,
                    "lot_number": line.lot_number,
                    "expiration_date": line.expiration_date.isoformat(),
                }
                for line in data.lines
            ]
            try:
                self.db.table(self.lines_table).insert(rows).execute()
            except Exception as insert_err:
                # Best-effort cleanup so no header is left without lines
                logger.error(
                    "manufacture_order_lines_insert_failed",
                    order_id=order_id,
                    error=str(insert_err)
                )
                try:
                    self.db.table(self.orders_table).delete().eq("id", order_id).execute()
                except Exception:
                    logger.error("manufacture_order_cleanup_failed", order_id=order_id)
                raise ManufactureOrderCommitError(
                    f"Failed to store order lines: {insert_err}",
                    details={"order_id": order_id}
                )

            logger.info(
                "manufacture_order_committed",
                order_id=order_id,
                order_number=order_number,
                line_count=len(rows)
            )
            return ManufactureOrderCreated(
                order_id=order_id,
                order_number=order_number,
                semi_product_code=data.semi_product_code,
                line_count=len(rows),
            )

        except AppError:
            raise
        except Exception as e:
            logger.error(
                "commit_manufacture_order_failed",
                order_number=order_number,
                error=str(e)
            )
            raise ManufactureOrderCommitError(str(e), details={"order_number": order_number})


# Singleton instance
_service: Optional[ManufactureOrderService] = None


def get_manufacture_order_service() -> ManufactureOrderService:
    """Get or create ManufactureOrderService instance."""
    global _service
    if _service is None:
        _service = ManufactureOrderService()
    return _service
