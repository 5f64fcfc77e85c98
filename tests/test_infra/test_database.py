"""Tests for database helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from catalog_import.infra.database import transaction, verify_db_connection
from catalog_import.models import Brand


async def _brand_count(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(Brand))


class TestTransaction:
    """Tests for the per-record transaction scope."""

    @pytest.mark.asyncio
    async def test_commits_on_success(self, session_factory):
        async with transaction(session_factory) as session:
            session.add(Brand(name="Puma", slug="puma"))

        assert await _brand_count(session_factory) == 1

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self, session_factory):
        with pytest.raises(RuntimeError, match="boom"):
            async with transaction(session_factory) as session:
                session.add(Brand(name="Puma", slug="puma"))
                await session.flush()
                raise RuntimeError("boom")

        assert await _brand_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_earlier_commits_survive_later_failure(self, session_factory):
        async with transaction(session_factory) as session:
            session.add(Brand(name="Puma", slug="puma"))

        with pytest.raises(RuntimeError):
            async with transaction(session_factory) as session:
                session.add(Brand(name="Reebok", slug="reebok"))
                await session.flush()
                raise RuntimeError("boom")

        assert await _brand_count(session_factory) == 1


@pytest.mark.asyncio
async def test_verify_db_connection(session_factory):
    assert await verify_db_connection(session_factory) is True


@pytest.mark.asyncio
async def test_verify_db_connection_reports_failure():
    session = AsyncMock()
    session.execute.side_effect = ConnectionRefusedError("connection refused")
    factory = MagicMock(return_value=session)

    assert await verify_db_connection(factory) is False
    session.rollback.assert_awaited_once()
    session.close.assert_awaited_once()
