"""
Campaign Planner Data Repository

Data access layer - PostgreSQL (Async)

Campaigns are stored as camelCase JSONB documents:
    campaign_planner.campaigns(id, data, created_at, updated_at)
"""

import json
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import asyncpg
from pydantic import ValidationError

from core.config import InfraConfig

from .models import Campaign, CampaignUpdate
from .protocols import CampaignPersistenceError, DataShapeError

logger = logging.getLogger(__name__)


REQUIRED_FIELDS = ("startDate", "endDate")

DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class ExtendedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles date and datetime types"""
    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def json_dumps(obj):
    """JSON dumps with date and datetime support"""
    return json.dumps(obj, cls=ExtendedJSONEncoder)


def campaign_to_document(campaign: Campaign) -> Dict[str, Any]:
    """Stored document of a campaign, without identity and audit columns"""
    return campaign.model_dump(
        mode="json",
        by_alias=True,
        exclude={"id", "created_at", "updated_at"},
        exclude_none=True,
    )


def patch_to_document(patch: Dict[str, Any]) -> Dict[str, Any]:
    """camelCase JSON fragment of a snake_case field patch"""
    return CampaignUpdate.model_validate(patch).model_dump(
        mode="json", by_alias=True, exclude_unset=True
    )


def row_to_campaign(row) -> Campaign:
    """
    Map a stored row to a Campaign.

    Raises DataShapeError when the document is missing its dates or
    otherwise fails validation.
    """
    record_id = row["id"]
    data = row["data"]
    if isinstance(data, str):
        data = json.loads(data)
    if not isinstance(data, dict):
        raise DataShapeError(f"Campaign {record_id} has no document", record_id=record_id)

    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise DataShapeError(
            f"Campaign {record_id} is missing required fields: {', '.join(missing)}",
            record_id=record_id,
        )

    try:
        return Campaign.model_validate({
            **data,
            "id": record_id,
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        })
    except (ValidationError, ValueError) as e:
        raise DataShapeError(f"Campaign {record_id} is malformed: {e}", record_id=record_id)


class CampaignRepository:
    """Campaign planner data repository - PostgreSQL (Async)"""

    def __init__(self, config: Optional[InfraConfig] = None, pool=None):
        self.config = config or InfraConfig.from_env()
        self.pool = pool
        self.schema = self.config.postgres_schema
        self.campaigns_table = "campaigns"

    @property
    def table(self) -> str:
        return f"{self.schema}.{self.campaigns_table}"

    async def initialize(self):
        """Create the connection pool and the campaigns table"""
        if self.pool is None:
            logger.info(
                f"Connecting to PostgreSQL at {self.config.postgres_host}:{self.config.postgres_port}"
            )
            self.pool = await asyncpg.create_pool(
                host=self.config.postgres_host,
                port=self.config.postgres_port,
                user=self.config.postgres_user,
                password=self.config.postgres_password,
                database=self.config.postgres_db,
                min_size=self.config.postgres_pool_min,
                max_size=self.config.postgres_pool_max,
            )

        async with self.pool.acquire() as conn:
            await conn.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
            await conn.execute(f'''
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id TEXT PRIMARY KEY,
                    data JSONB NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL
                )
            ''')
        logger.info("Campaign planner repository initialized with PostgreSQL")

    async def close(self):
        """Close the connection pool"""
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
        logger.info("Campaign planner repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except DB_ERRORS as e:
            logger.error(f"Health check failed: {e}")
            return False

    # ====================
    # Campaign CRUD
    # ====================

    async def fetch_all(self) -> List[Campaign]:
        """All campaigns, newest first"""
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(f'''
                    SELECT id, data, created_at, updated_at
                    FROM {self.table}
                    ORDER BY created_at DESC
                ''')
        except DB_ERRORS as e:
            logger.error(f"Error fetching campaigns: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to fetch campaigns: {e}") from e

        return [row_to_campaign(row) for row in rows]

    async def get(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(f'''
                    SELECT id, data, created_at, updated_at
                    FROM {self.table}
                    WHERE id = $1
                ''', campaign_id)
        except DB_ERRORS as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to get campaign {campaign_id}: {e}") from e

        return row_to_campaign(row) if row else None

    async def create(self, campaign: Campaign) -> Campaign:
        """Insert a campaign under a fresh id"""
        campaign_id = f"cmp_{uuid.uuid4().hex}"
        now = datetime.now(timezone.utc)

        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(f'''
                    INSERT INTO {self.table} (id, data, created_at, updated_at)
                    VALUES ($1, $2::jsonb, $3, $4)
                    RETURNING id, data, created_at, updated_at
                ''', campaign_id, json_dumps(campaign_to_document(campaign)), now, now)
        except DB_ERRORS as e:
            logger.error(f"Error creating campaign: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to create campaign: {e}") from e

        return row_to_campaign(row)

    async def update(self, campaign_id: str, patch: Dict[str, Any]) -> Optional[Campaign]:
        """Merge a field patch into the stored document"""
        fragment = patch_to_document(patch)
        now = datetime.now(timezone.utc)

        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(f'''
                    UPDATE {self.table}
                    SET data = data || $2::jsonb, updated_at = $3
                    WHERE id = $1
                    RETURNING id, data, created_at, updated_at
                ''', campaign_id, json_dumps(fragment), now)
        except DB_ERRORS as e:
            logger.error(f"Error updating campaign {campaign_id}: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to update campaign {campaign_id}: {e}") from e

        return row_to_campaign(row) if row else None

    async def delete(self, campaign_id: str) -> bool:
        """Delete campaign"""
        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute(
                    f"DELETE FROM {self.table} WHERE id = $1", campaign_id
                )
        except DB_ERRORS as e:
            logger.error(f"Error deleting campaign {campaign_id}: {e}", exc_info=True)
            raise CampaignPersistenceError(f"Failed to delete campaign {campaign_id}: {e}") from e

        return result == "DELETE 1"
