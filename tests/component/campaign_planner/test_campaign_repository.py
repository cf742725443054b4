"""
Component Tests for CampaignRepository Class

Tests the PostgreSQL data access layer against a mocked asyncpg pool:
document mapping, SQL parameters and error translation.
"""

import json
import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import InfraConfig
from tests.contracts.campaign_planner.data_contract import CampaignStatus
from microservices.campaign_planner_service.campaign_repository import (
    CampaignRepository,
    campaign_to_document,
    patch_to_document,
    row_to_campaign,
)
from microservices.campaign_planner_service.protocols import (
    CampaignPersistenceError,
    DataShapeError,
)


NOW = datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)


def make_row(document, record_id="cmp_abc", as_text=True):
    return {
        "id": record_id,
        "data": json.dumps(document) if as_text else document,
        "created_at": NOW,
        "updated_at": NOW,
    }


@pytest.fixture
def mock_conn():
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=1)
    conn.execute = AsyncMock(return_value="")
    return conn


@pytest.fixture
def mock_pool(mock_conn):
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = mock_conn
    pool.close = AsyncMock()
    return pool


@pytest.fixture
def repository(mock_pool):
    return CampaignRepository(config=InfraConfig(), pool=mock_pool)


class TestDocumentMapping:
    """Tests for row/document conversion"""

    def test_row_with_text_document(self, factory):
        campaign = row_to_campaign(make_row(factory.make_document()))
        assert campaign.id == "cmp_abc"
        assert campaign.brand == "FC"
        assert campaign.created_at == NOW

    def test_row_with_decoded_document(self, factory):
        campaign = row_to_campaign(make_row(factory.make_document(), as_text=False))
        assert campaign.start_date == date(2025, 1, 1)

    def test_legacy_status_migrated_on_read(self, factory):
        campaign = row_to_campaign(make_row(factory.make_document(status="PENDING")))
        assert campaign.status == CampaignStatus.PLANNED

    def test_missing_dates_raise_data_shape_error(self, factory):
        document = factory.make_document()
        del document["endDate"]
        with pytest.raises(DataShapeError) as exc_info:
            row_to_campaign(make_row(document, record_id="cmp_bad"))
        assert exc_info.value.record_id == "cmp_bad"
        assert "endDate" in str(exc_info.value)

    def test_non_object_document(self):
        with pytest.raises(DataShapeError):
            row_to_campaign(make_row(["not", "a", "document"]))

    def test_invalid_document(self, factory):
        with pytest.raises(DataShapeError):
            row_to_campaign(make_row(factory.make_document(budget=-10)))

    def test_campaign_to_document(self, factory):
        document = campaign_to_document(factory.make_tv_campaign(brand="FC", notes=None))
        assert document["brand"] == "FC"
        assert document["startDate"] == "2025-01-01"
        assert document["expectedGrps"] == 100
        assert "id" not in document
        assert "createdAt" not in document
        assert "notes" not in document

    def test_patch_to_document(self):
        fragment = patch_to_document({"status": CampaignStatus.ACTIVE, "end_date": date(2025, 2, 1)})
        assert fragment == {"status": "ACTIVE", "endDate": "2025-02-01"}


class TestRepositoryLifecycle:
    """Tests for initialize/close/health"""

    @pytest.mark.asyncio
    async def test_initialize_with_pool_creates_table(self, repository, mock_conn):
        await repository.initialize()
        statements = [c.args[0] for c in mock_conn.execute.call_args_list]
        assert "CREATE SCHEMA IF NOT EXISTS campaign_planner" in statements[0]
        assert "campaign_planner.campaigns" in statements[1]

    @pytest.mark.asyncio
    async def test_health_check(self, repository):
        assert await repository.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_without_pool(self):
        assert await CampaignRepository(config=InfraConfig()).health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_on_connection_error(self, repository, mock_conn):
        mock_conn.fetchval.side_effect = OSError("connection reset")
        assert await repository.health_check() is False

    @pytest.mark.asyncio
    async def test_close_releases_pool(self, repository, mock_pool):
        await repository.close()
        mock_pool.close.assert_awaited_once()
        assert repository.pool is None


class TestRepositoryCRUD:
    """Tests for campaign reads and writes"""

    @pytest.mark.asyncio
    async def test_fetch_all(self, repository, mock_conn, factory):
        mock_conn.fetch.return_value = [
            make_row(factory.make_document(brand="FC"), record_id="cmp_1"),
            make_row(factory.make_document(brand="Acme"), record_id="cmp_2"),
        ]
        campaigns = await repository.fetch_all()
        assert [c.id for c in campaigns] == ["cmp_1", "cmp_2"]
        assert "ORDER BY created_at DESC" in mock_conn.fetch.call_args.args[0]

    @pytest.mark.asyncio
    async def test_fetch_all_surfaces_malformed_record(self, repository, mock_conn, factory):
        document = factory.make_document()
        del document["startDate"]
        mock_conn.fetch.return_value = [make_row(document, record_id="cmp_broken")]
        with pytest.raises(DataShapeError):
            await repository.fetch_all()

    @pytest.mark.asyncio
    async def test_get_missing(self, repository):
        assert await repository.get("cmp_missing") is None

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_stores_document(self, repository, mock_conn, factory):
        # Given: the insert echoes back its parameters
        async def echo(query, campaign_id, data, created_at, updated_at):
            return {"id": campaign_id, "data": data, "created_at": created_at, "updated_at": updated_at}
        mock_conn.fetchrow.side_effect = echo
        source = factory.make_campaign(brand="FC", channel="Meta", with_id=False)

        # When: creating
        created = await repository.create(source)

        # Then: fresh cmp_ id, camelCase document without identity
        args = mock_conn.fetchrow.call_args.args
        stored = json.loads(args[2])
        assert created.id.startswith("cmp_")
        assert created.created_at is not None
        assert stored["brand"] == "FC"
        assert "id" not in stored
        assert "startDate" in stored

    @pytest.mark.asyncio
    async def test_update_merges_fragment(self, repository, mock_conn, factory):
        mock_conn.fetchrow.return_value = make_row(factory.make_document(budget=900), record_id="cmp_1")

        updated = await repository.update("cmp_1", {"budget": 900.0})

        args = mock_conn.fetchrow.call_args.args
        assert "data || $2::jsonb" in args[0]
        assert json.loads(args[2]) == {"budget": 900.0}
        assert updated.budget == 900

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, repository):
        assert await repository.update("cmp_missing", {"notes": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete(self, repository, mock_conn):
        mock_conn.execute.return_value = "DELETE 1"
        assert await repository.delete("cmp_1") is True
        mock_conn.execute.return_value = "DELETE 0"
        assert await repository.delete("cmp_1") is False

    @pytest.mark.asyncio
    async def test_database_error_translated(self, repository, mock_conn, factory):
        mock_conn.fetchrow.side_effect = OSError("connection refused")
        with pytest.raises(CampaignPersistenceError):
            await repository.create(factory.make_campaign(with_id=False))
