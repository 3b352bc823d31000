"""
Unit tests for CatalogService.

Tests cover semi-product lookup, candidate assembly from manufacture
templates and daily consumption rates from sales history.
"""

from datetime import date

import pytest
from unittest.mock import patch

from exceptions import (
    MetadataUnavailableError,
    NoCandidateVariantsError,
    UnknownSemiProductError,
)
from services.catalog_service import CatalogService
from tests.factories import CatalogRowFactory


FROM_DATE = date(2025, 3, 2)
TO_DATE = date(2025, 3, 31)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def catalog(mock_db, mock_supabase):
    """CatalogService reading a small cream family."""
    mock_supabase.set_table_data("products", [
        CatalogRowFactory.product("SEMI-1", name="Base cream", mmq=1000, packaging_granularity=5),
        CatalogRowFactory.product("A", mmq=100, shelf_life_days=730, stock_total=40),
        CatalogRowFactory.product("B", mmq=250, shelf_life_days=365),
        CatalogRowFactory.product("OTHER", mmq=10),
    ])
    mock_supabase.set_table_data("manufacture_templates", [
        CatalogRowFactory.template("A"),
        CatalogRowFactory.template("B"),
        CatalogRowFactory.template("A"),  # second template version
        CatalogRowFactory.template("OTHER", ingredient_code="SEMI-2"),
    ])
    mock_supabase.set_table_data("sales", [
        *CatalogRowFactory.sales("A", daily_quantity=2, days=30, end=TO_DATE),
        *CatalogRowFactory.sales("B", daily_quantity=1, days=15, end=TO_DATE),
        # Outside the window
        *CatalogRowFactory.sales("A", daily_quantity=100, days=5, end=date(2025, 2, 20)),
    ])
    return CatalogService()


# ===================
# SEMI-PRODUCT
# ===================

class TestGetSemiProduct:
    """Tests for get_semi_product."""

    def test_maps_catalog_row(self, catalog):
        semi = catalog.get_semi_product("SEMI-1")

        assert semi.code == "SEMI-1"
        assert semi.display_name == "Base cream"
        assert semi.minimal_manufacturing_quantity == 1000
        assert semi.packaging_granularity == 5

    def test_unknown_code(self, catalog):
        with pytest.raises(UnknownSemiProductError) as exc_info:
            catalog.get_semi_product("NOPE")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "UNKNOWN_SEMI_PRODUCT"

    def test_backend_failure_is_wrapped(self, catalog, mock_supabase):
        mock_supabase.set_table_error("products", RuntimeError("connection reset"))

        with pytest.raises(MetadataUnavailableError) as exc_info:
            catalog.get_semi_product("SEMI-1")

        assert exc_info.value.status_code == 503


# ===================
# CANDIDATES
# ===================

class TestGetCandidates:
    """Tests for get_candidates."""

    def test_one_candidate_per_product(self, catalog):
        candidates = catalog.get_candidates("SEMI-1", FROM_DATE, TO_DATE)

        assert [c.code for c in candidates] == ["A", "B"]

    def test_weight_is_daily_consumption_in_window(self, catalog):
        candidates = {c.code: c for c in catalog.get_candidates("SEMI-1", FROM_DATE, TO_DATE)}

        # 30 inclusive dates: A sold 60, B sold 15
        assert candidates["A"].daily_consumption_rate == 2.0
        assert candidates["A"].weight_factor == 2.0
        assert candidates["B"].daily_consumption_rate == 0.5

    def test_both_window_ends_count(self, catalog):
        """A one-day window divides by one day, not zero."""
        candidates = {c.code: c for c in catalog.get_candidates("SEMI-1", TO_DATE, TO_DATE)}

        assert candidates["A"].daily_consumption_rate == 2.0
        assert candidates["B"].daily_consumption_rate == 1.0

    @pytest.mark.parametrize("page_size,pages", [(7, 7), (5, 10)])
    def test_sales_are_read_past_the_row_cap(self, catalog, mock_supabase, page_size, pages):
        """45 rows in the window are summed in full, however small the cap."""
        mock_supabase.max_rows = page_size
        catalog.page_size = page_size

        candidates = {c.code: c for c in catalog.get_candidates("SEMI-1", FROM_DATE, TO_DATE)}

        assert candidates["A"].daily_consumption_rate == 2.0
        assert candidates["B"].daily_consumption_rate == 0.5
        assert mock_supabase.executions["sales"] == pages

    def test_maps_product_metadata(self, catalog):
        candidates = {c.code: c for c in catalog.get_candidates("SEMI-1", FROM_DATE, TO_DATE)}

        assert candidates["A"].minimal_manufacturing_quantity == 100
        assert candidates["A"].shelf_life_days == 730
        assert candidates["A"].current_stock == 40.0
        assert candidates["B"].current_stock is None
        assert all(not c.is_fixed for c in candidates.values())

    def test_no_templates(self, catalog):
        with pytest.raises(NoCandidateVariantsError):
            catalog.get_candidates("SEMI-9", FROM_DATE, TO_DATE)

    def test_template_product_missing_from_catalog_is_skipped(self, catalog, mock_supabase):
        mock_supabase.set_table_data("manufacture_templates", [
            CatalogRowFactory.template("A"),
            CatalogRowFactory.template("GHOST"),
        ])

        candidates = catalog.get_candidates("SEMI-1", FROM_DATE, TO_DATE)

        assert [c.code for c in candidates] == ["A"]

    def test_sales_failure_is_wrapped(self, catalog, mock_supabase):
        mock_supabase.set_table_error("sales", RuntimeError("timeout"))

        with pytest.raises(MetadataUnavailableError):
            catalog.get_candidates("SEMI-1", FROM_DATE, TO_DATE)


class TestCatalogConnection:
    """Tests for client creation."""

    def test_unreachable_database(self):
        with patch("services.catalog_service.get_supabase_client", side_effect=RuntimeError("no network")):
            with pytest.raises(MetadataUnavailableError):
                CatalogService()
