"""Tests for the slot-checked confirmation query, on a mocked connection."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def _cursor(value):
    cur = MagicMock()
    cur.fetchone = AsyncMock(return_value=value)
    return cur


class TestConfirmRegistration:
    @pytest.fixture
    def row_cursor(self):
        cur = MagicMock()
        cur.execute = AsyncMock()
        cur.fetchone = AsyncMock(return_value={"activity_id": 4, "user_id": "u1", "status": "confirmed"})
        return cur

    @pytest.fixture
    def mock_connection(self, row_cursor):
        conn = MagicMock()
        tx = MagicMock()
        tx.__aenter__ = AsyncMock(return_value=None)
        tx.__aexit__ = AsyncMock(return_value=False)
        conn.transaction = MagicMock(return_value=tx)
        conn.cursor = MagicMock(return_value=row_cursor)
        return conn

    @pytest.fixture
    def mock_get_connection(self, mock_connection):
        cm = MagicMock()
        cm.__aenter__ = AsyncMock(return_value=mock_connection)
        cm.__aexit__ = AsyncMock(return_value=False)
        return MagicMock(return_value=cm)

    @pytest.mark.asyncio
    async def test_confirms_while_a_slot_is_free(self, mock_get_connection, mock_connection, row_cursor):
        mock_connection.execute = AsyncMock(side_effect=[_cursor((2,)), _cursor((1,))])
        with patch("portal.db.registrations._get_connection", mock_get_connection):
            from portal.db.registrations import confirm_registration

            row = await confirm_registration("4", "u1", "participant")

        assert row["status"] == "confirmed"
        mock_get_connection.assert_called_once_with(autocommit=False)
        lock_query = mock_connection.execute.await_args_list[0].args[0]
        assert "FOR UPDATE" in repr(lock_query)
        assert "participant_slots" in repr(lock_query)
        assert mock_connection.execute.await_args_list[1].args[1] == (4, "participant", "u1")
        assert row_cursor.execute.await_args.args[1] == (4, "u1", "participant", "confirmed", None)

    @pytest.mark.asyncio
    async def test_full_activity_is_not_written(self, mock_get_connection, mock_connection, row_cursor):
        mock_connection.execute = AsyncMock(side_effect=[_cursor((2,)), _cursor((2,))])
        with patch("portal.db.registrations._get_connection", mock_get_connection):
            from portal.db.registrations import confirm_registration

            assert await confirm_registration(4, "u1", "participant") is None
        row_cursor.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_null_slot_column_uses_default(self, mock_get_connection, mock_connection, row_cursor):
        mock_connection.execute = AsyncMock(side_effect=[_cursor((None,)), _cursor((19,))])
        with patch("portal.db.registrations._get_connection", mock_get_connection):
            from portal.db.registrations import confirm_registration

            assert await confirm_registration(4, "u1", "participant", default_slots=20) is not None

    @pytest.mark.asyncio
    async def test_volunteer_counts_volunteer_slots(self, mock_get_connection, mock_connection, row_cursor):
        mock_connection.execute = AsyncMock(side_effect=[_cursor((1,)), _cursor((0,))])
        with patch("portal.db.registrations._get_connection", mock_get_connection):
            from portal.db.registrations import confirm_registration

            await confirm_registration(4, "v1", "volunteer", "Logistics")

        assert "volunteer_slots" in repr(mock_connection.execute.await_args_list[0].args[0])
        assert row_cursor.execute.await_args.args[1] == (4, "v1", "volunteer", "confirmed", "Logistics")

    @pytest.mark.asyncio
    async def test_missing_activity(self, mock_get_connection, mock_connection, row_cursor):
        mock_connection.execute = AsyncMock(side_effect=[_cursor(None)])
        with patch("portal.db.registrations._get_connection", mock_get_connection):
            from portal.db.registrations import confirm_registration

            assert await confirm_registration(4, "u1", "participant") is None
        row_cursor.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_user_type(self):
        from portal.db.registrations import confirm_registration

        with pytest.raises(ValueError):
            await confirm_registration(4, "s1", "staff")
