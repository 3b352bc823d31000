"""
Catalog service — read-only master data for batch planning.

Fetches the semi-product, the variants manufactured from it, and their
consumption history. Every call reads fresh; nothing is cached between
recomputes.
"""

from collections import defaultdict
from datetime import date
from typing import Optional

import structlog

from config import get_supabase_client
from exceptions import (
    AppError,
    MetadataUnavailableError,
    NoCandidateVariantsError,
    UnknownSemiProductError,
)
from models.batch_planning import CandidateVariant, SemiProductInfo

logger = structlog.get_logger(__name__)


class CatalogService:
    """
    Catalog and consumption-history access.

    Tables:
        products: code, name, minimal_manufacture_quantity, shelf_life_days,
                  packaging_granularity, stock_total
        manufacture_templates: product_code, product_name, ingredient_code
        sales: id, product_code, sale_date, quantity
    """

    def __init__(self):
        try:
            self.db = get_supabase_client()
        except Exception as e:
            raise MetadataUnavailableError(
                "Catalog database is not reachable",
                details={"error": str(e)}
            ) from e
        self.products_table = "products"
        self.templates_table = "manufacture_templates"
        self.sales_table = "sales"
        # PostgREST caps every response at max_rows (1000 by default)
        self.page_size = 1000

    # ===================
    # SEMI-PRODUCT
    # ===================

    def get_semi_product(self, code: str) -> SemiProductInfo:
        """
        Get semi-product metadata.

        Args:
            code: Semi-product code

        Returns:
            SemiProductInfo

        Raises:
            UnknownSemiProductError: Code not in catalog
            MetadataUnavailableError: Catalog backend failed
        """
        logger.debug("getting_semi_product", code=code)

        try:
            result = (
                self.db.table(self.products_table)
                .select("*")
                .eq("code", code)
                .execute()
            )

            if not result.data:
                raise UnknownSemiProductError(code)

            row = result.data[0]
            return SemiProductInfo(
                code=row["code"],
                display_name=row.get("name") or "",
                minimal_manufacturing_quantity=row.get("minimal_manufacture_quantity"),
                packaging_granularity=row.get("packaging_granularity") or None,
            )

        except AppError:
            raise
        except Exception as e:
            logger.error(
                "get_semi_product_failed",
                code=code,
                error=str(e)
            )
            raise MetadataUnavailableError(
                f"Failed to load semi-product {code}",
                details={"error": str(e)}
            )

    # ===================
    # CANDIDATES
    # ===================

    def _daily_rates(
        self,
        product_codes: list[str],
        from_date: date,
        to_date: date,
    ) -> dict[str, float]:
        """
        Average daily consumption per product over the window.

        Both window ends are inclusive, so the window spans
        ``(to_date - from_date).days + 1`` dates. Rows are read page by page
        until a short page comes back.
        """
        totals: dict[str, float] = defaultdict(float)
        offset = 0
        while True:
            result = (
                self.db.table(self.sales_table)
                .select("id, product_code, quantity")
                .in_("product_code", product_codes)
                .gte("sale_date", from_date.isoformat())
                .lte("sale_date", to_date.isoformat())
                .order("id")
                .range(offset, offset + self.page_size - 1)
                .execute()
            )
            for row in result.data:
                totals[row["product_code"]] += float(row.get("quantity") or 0)

            if len(result.data) < self.page_size:
                break
            offset += self.page_size

        logger.debug(
            "sales_window_read",
            product_count=len(product_codes),
            pages=offset // self.page_size + 1
        )

        days = (to_date - from_date).days + 1
        return {
            code: round(totals[code] / days, 2) if days > 0 else 0.0
            for code in product_codes
        }

    def get_candidates(
        self,
        semi_product_code: str,
        from_date: date,
        to_date: date,
    ) -> list[CandidateVariant]:
        """
        Get the variants manufactured from a semi-product.

        Weight factor is the variant's average daily consumption in the
        window; the same figure feeds target-coverage capacity.

        Args:
            semi_product_code: Semi-product code
            from_date: Consumption window start
            to_date: Consumption window end

        Returns:
            Candidate snapshot, template order

        Raises:
            NoCandidateVariantsError: Nothing is made from this semi-product
            MetadataUnavailableError: Catalog backend failed
        """
        logger.info(
            "getting_candidates",
            semi_product_code=semi_product_code,
            from_date=from_date.isoformat(),
            to_date=to_date.isoformat()
        )

        try:
            templates = (
                self.db.table(self.templates_table)
                .select("product_code, product_name")
                .eq("ingredient_code", semi_product_code)
                .execute()
            )

            names: dict[str, str] = {}
            for row in templates.data:
                names.setdefault(row["product_code"], row.get("product_name") or "")
            if not names:
                raise NoCandidateVariantsError(semi_product_code)

            codes = list(names)
            products = (
                self.db.table(self.products_table)
                .select("*")
                .in_("code", codes)
                .execute()
            )
            products_by_code = {row["code"]: row for row in products.data}
            rates = self._daily_rates(codes, from_date, to_date)

            candidates = []
            for code in codes:
                product = products_by_code.get(code)
                if product is None:
                    logger.warning(
                        "template_product_missing_from_catalog",
                        semi_product_code=semi_product_code,
                        product_code=code
                    )
                    continue

                candidates.append(CandidateVariant(
                    code=code,
                    display_name=product.get("name") or names[code],
                    minimal_manufacturing_quantity=product.get("minimal_manufacture_quantity") or 0,
                    weight_factor=rates[code],
                    shelf_life_days=product.get("shelf_life_days"),
                    daily_consumption_rate=rates[code],
                    current_stock=_optional_float(product.get("stock_total")),
                ))

            if not candidates:
                raise NoCandidateVariantsError(semi_product_code)

            logger.info(
                "candidates_retrieved",
                semi_product_code=semi_product_code,
                count=len(candidates)
            )
            return candidates

        except AppError:
            raise
        except Exception as e:
            logger.error(
                "get_candidates_failed",
                semi_product_code=semi_product_code,
                error=str(e)
            )
            raise MetadataUnavailableError(
                f"Failed to load variants of {semi_product_code}",
                details={"error": str(e)}
            )


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


# Singleton instance
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
