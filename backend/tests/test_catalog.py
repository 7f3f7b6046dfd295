"""
Tests for the service catalog and order pricing.

Tests: service_id_for, normalize_clothes, compute_total_cost, catalog_service.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from domain.catalog import (
    DEFAULT_SERVICES,
    compute_total_cost,
    normalize_clothes,
    service_id_for,
)
from domain.errors import (
    ConflictError,
    EmptyOrderError,
    InvalidCatalogEntryError,
    NotFoundError,
    ValidationError,
)

NORMAL_WASH = {"shirt": 20, "pant": 25, "dress": 30, "jacket": 50}


class TestServiceIds:

    @pytest.mark.unit
    def test_lowercased_and_underscored(self):
        assert service_id_for("Normal Wash") == "normal_wash"
        assert service_id_for("Express Service") == "express_service"

    @pytest.mark.unit
    def test_collapses_whitespace(self):
        assert service_id_for("  Dry   Clean ") == "dry_clean"

    @pytest.mark.unit
    def test_default_catalog_prices_every_garment(self):
        for entry in DEFAULT_SERVICES:
            assert set(entry["price_per_cloth"]) == {"shirt", "pant", "dress", "jacket"}


class TestNormalizeClothes:

    @pytest.mark.unit
    def test_fills_missing_kinds_with_zero(self):
        assert normalize_clothes({"shirt": 2}) == {"shirt": 2, "pant": 0, "dress": 0, "jacket": 0}

    @pytest.mark.unit
    def test_all_zero_is_empty_order(self):
        with pytest.raises(EmptyOrderError) as exc_info:
            normalize_clothes({"shirt": 0, "pant": 0, "dress": 0, "jacket": 0})
        assert exc_info.value.status_code == 422

    @pytest.mark.unit
    def test_no_garments_is_empty_order(self):
        with pytest.raises(EmptyOrderError):
            normalize_clothes({})

    @pytest.mark.unit
    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_clothes({"shirt": 1, "saree": 2})
        assert "saree" in exc_info.value.message

    @pytest.mark.unit
    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            normalize_clothes({"shirt": 3, "pant": -1})


class TestComputeTotalCost:

    @pytest.mark.unit
    def test_two_shirts_one_pant(self):
        clothes = {"shirt": 2, "pant": 1, "dress": 0, "jacket": 0}
        assert compute_total_cost("Normal Wash", NORMAL_WASH, clothes) == 65

    @pytest.mark.unit
    def test_every_kind(self):
        clothes = {"shirt": 1, "pant": 1, "dress": 1, "jacket": 1}
        assert compute_total_cost("Normal Wash", NORMAL_WASH, clothes) == 125

    @pytest.mark.unit
    def test_missing_price_rejected(self):
        prices = {"shirt": 20, "pant": 25}
        with pytest.raises(InvalidCatalogEntryError) as exc_info:
            compute_total_cost("Shirts Only", prices, {"shirt": 1, "jacket": 2})
        assert exc_info.value.details == {"service": "Shirts Only", "garment": "jacket"}

    @pytest.mark.unit
    def test_missing_price_ignored_for_zero_quantity(self):
        prices = {"shirt": 20}
        assert compute_total_cost("Shirts Only", prices, {"shirt": 3, "jacket": 0}) == 60

    @pytest.mark.unit
    def test_lenient_counts_missing_price_as_zero(self):
        prices = {"shirt": 20}
        total = compute_total_cost("Shirts Only", prices, {"shirt": 1, "jacket": 2}, lenient=True)
        assert total == 20


class TestCatalogService:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_seed_inserts_default_services(self, db_session):
        from services import catalog_service

        inserted = await catalog_service.seed_default_services(db_session)
        assert inserted == 4
        services = await catalog_service.list_services(db_session)
        assert {s.id for s in services} == {
            "normal_wash", "wash_&_iron", "dry_clean", "express_service",
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_seed_is_skipped_when_catalog_exists(self, db_session, catalog):
        from services import catalog_service

        assert await catalog_service.seed_default_services(db_session) == 0
        assert len(await catalog_service.list_services(db_session)) == 4

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_get_service(self, db_session, catalog):
        from services import catalog_service

        service = await catalog_service.get_service(db_session, "dry_clean")
        assert service.name == "Dry Clean"
        assert service.price_per_cloth["jacket"] == 120

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_get_unknown_service(self, db_session, catalog):
        from services import catalog_service

        with pytest.raises(NotFoundError):
            await catalog_service.get_service(db_session, "steam_press")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_create_service(self, db_session, catalog):
        from services import catalog_service

        service = await catalog_service.create_service(
            db_session, name="Shirt Press", description=None, price_per_cloth={"shirt": 15},
        )
        assert service.id == "shirt_press"
        assert catalog_service.service_to_dict(service)["price_per_cloth"] == {"shirt": 15}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_create_duplicate_service(self, db_session, catalog):
        from services import catalog_service

        with pytest.raises(ConflictError):
            await catalog_service.create_service(
                db_session, name="normal  wash", description=None, price_per_cloth={"shirt": 1},
            )

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_create_service_rejects_unknown_garment(self, db_session):
        from services import catalog_service

        with pytest.raises(ValidationError):
            await catalog_service.create_service(
                db_session, name="Hats", description=None, price_per_cloth={"hat": 10},
            )
