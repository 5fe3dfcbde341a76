"""
Tests for the asyncpg repositories (users, saved tokens, audit history)
against a mocked connection.
"""

import json

import asyncpg
import pytest

from hubauditor.core.security import decrypt_token, encrypt_token, hash_password
from hubauditor.models.enums import AuditType, TokenType, UserRole
from hubauditor.models.schemas import AuditReport
from hubauditor.services.audit_history import list_audit_history, record_audit
from hubauditor.services.sync_integrity import calculate_sync_integrity, format_sync_integrity
from hubauditor.services.tokens import (
    delete_user_token,
    get_user_token,
    list_user_tokens,
    save_user_token,
)
from hubauditor.services.users import (
    EmailAlreadyRegisteredError,
    change_password,
    create_user,
    get_user_stats,
    list_users,
    update_user_profile,
    verify_user,
)
from hubauditor.sql import (
    INSERT_AUDIT_RECORD,
    INSERT_USER,
    UPDATE_PASSWORD_HASH,
    UPSERT_USER_TOKEN,
)
from hubauditor.tests.conftest import FIXED_NOW, user_row


KEY = 'test-encryption-key'


class TestUsers:

    @pytest.mark.asyncio
    async def test_create_user_normalizes_email_and_hashes(self, mock_conn):
        mock_conn.fetchrow.return_value = user_row(email='jane@acme.com')

        user = await create_user(mock_conn, '  Jane@Acme.COM ', 'secret-pass', 'Jane', bcrypt_rounds=4)

        assert user.email == 'jane@acme.com'
        assert user.role == UserRole.USER
        query, email, password_hash, name = mock_conn.fetchrow.await_args.args
        assert query == INSERT_USER
        assert email == 'jane@acme.com'
        assert password_hash.startswith('$2') and password_hash != 'secret-pass'
        assert name == 'Jane'

    @pytest.mark.asyncio
    async def test_create_user_duplicate_email(self, mock_conn):
        mock_conn.fetchrow.side_effect = asyncpg.UniqueViolationError('duplicate key')

        with pytest.raises(EmailAlreadyRegisteredError):
            await create_user(mock_conn, 'jane@acme.com', 'secret-pass', bcrypt_rounds=4)

    @pytest.mark.asyncio
    async def test_verify_user(self, mock_conn):
        mock_conn.fetchrow.return_value = user_row(password_hash=hash_password('secret-pass', rounds=4))

        assert (await verify_user(mock_conn, 'JANE@acme.com', 'secret-pass')).id == 1
        assert await verify_user(mock_conn, 'jane@acme.com', 'wrong-pass') is None

        mock_conn.fetchrow.return_value = None
        assert await verify_user(mock_conn, 'nobody@acme.com', 'secret-pass') is None

    @pytest.mark.asyncio
    async def test_update_profile(self, mock_conn):
        mock_conn.fetchrow.return_value = user_row(name='Janet')

        user = await update_user_profile(mock_conn, 1, name='Janet', email=' New@Acme.com ')

        assert user.name == 'Janet'
        assert mock_conn.fetchrow.await_args.args[1:] == (1, 'Janet', 'new@acme.com')

    @pytest.mark.asyncio
    async def test_update_profile_email_taken(self, mock_conn):
        mock_conn.fetchrow.side_effect = asyncpg.UniqueViolationError('duplicate key')

        with pytest.raises(EmailAlreadyRegisteredError):
            await update_user_profile(mock_conn, 1, email='taken@acme.com')

    @pytest.mark.asyncio
    async def test_change_password(self, mock_conn):
        mock_conn.fetchval.return_value = hash_password('old-pass', rounds=4)

        assert await change_password(mock_conn, 1, 'wrong', 'new-pass-123', bcrypt_rounds=4) is False
        mock_conn.execute.assert_not_awaited()

        assert await change_password(mock_conn, 1, 'old-pass', 'new-pass-123', bcrypt_rounds=4) is True
        query, user_id, new_hash = mock_conn.execute.await_args.args
        assert query == UPDATE_PASSWORD_HASH
        assert user_id == 1
        assert new_hash.startswith('$2')

    @pytest.mark.asyncio
    async def test_list_users_and_stats(self, mock_conn):
        mock_conn.fetch.return_value = [user_row(1), user_row(2, email='admin@acme.com', role='admin')]
        mock_conn.fetchrow.return_value = {
            'total_users': 2, 'admin_users': 1, 'new_users_7d': 2,
            'total_tokens': 3, 'total_audits': None,
        }

        users = await list_users(mock_conn)
        stats = await get_user_stats(mock_conn)

        assert [u.role for u in users] == [UserRole.USER, UserRole.ADMIN]
        assert stats.totalUsers == 2
        assert stats.adminUsers == 1
        assert stats.totalTokens == 3
        assert stats.totalAudits == 0


class TestTokens:

    @pytest.mark.asyncio
    async def test_save_encrypts(self, mock_conn):
        await save_user_token(mock_conn, 1, 'Main portal', 'pat-na1-secret', KEY)

        query, user_id, name, encrypted, token_type = mock_conn.execute.await_args.args
        assert query == UPSERT_USER_TOKEN
        assert (user_id, name, token_type) == (1, 'Main portal', 'hubspot')
        assert encrypted != 'pat-na1-secret'
        assert decrypt_token(encrypted, KEY) == 'pat-na1-secret'

    @pytest.mark.asyncio
    async def test_get_decrypts(self, mock_conn):
        mock_conn.fetchval.return_value = encrypt_token('pat-na1-secret', KEY)
        assert await get_user_token(mock_conn, 1, 'Main portal', KEY) == 'pat-na1-secret'

        mock_conn.fetchval.return_value = None
        assert await get_user_token(mock_conn, 1, 'Missing', KEY) is None

    @pytest.mark.asyncio
    async def test_delete_reports_whether_a_row_was_removed(self, mock_conn):
        mock_conn.execute.return_value = 'DELETE 1'
        assert await delete_user_token(mock_conn, 1, 'Main portal') is True

        mock_conn.execute.return_value = 'DELETE 0'
        assert await delete_user_token(mock_conn, 1, 'Main portal') is False

    @pytest.mark.asyncio
    async def test_list_never_includes_values(self, mock_conn):
        mock_conn.fetch.return_value = [
            {'token_name': 'Main portal', 'token_type': 'hubspot', 'created_at': FIXED_NOW},
        ]

        tokens = await list_user_tokens(mock_conn, 1)

        assert tokens[0].tokenName == 'Main portal'
        assert tokens[0].tokenType == TokenType.HUBSPOT
        assert 'token' not in tokens[0].model_dump()


class TestAuditHistory:

    @staticmethod
    def report() -> AuditReport:
        metrics = calculate_sync_integrity()
        return AuditReport(
            auditType=AuditType.SYNC_INTEGRITY,
            timestamp=FIXED_NOW.isoformat(),
            metrics=metrics,
            metricGroups=format_sync_integrity(metrics),
            analysis='## Overview\nNo data.',
        )

    @pytest.mark.asyncio
    async def test_record_audit_stores_summary(self, mock_conn):
        mock_conn.fetchrow.return_value = {
            'id': 10, 'user_id': 1, 'audit_type': 'sync-integrity',
            'audit_data': '{"timestamp": "2024-06-01T12:00:00+00:00"}', 'created_at': FIXED_NOW,
        }

        entry = await record_audit(mock_conn, 1, self.report())

        query, user_id, audit_type, audit_data = mock_conn.fetchrow.await_args.args
        assert query == INSERT_AUDIT_RECORD
        assert (user_id, audit_type) == (1, 'sync-integrity')
        stored = json.loads(audit_data)
        assert stored['metrics']['dataAvailable'] is False
        assert stored['timestamp'] == FIXED_NOW.isoformat()
        assert entry.id == 10
        assert entry.auditData['timestamp'] == '2024-06-01T12:00:00+00:00'

    @pytest.mark.asyncio
    async def test_list_history(self, mock_conn):
        mock_conn.fetch.return_value = [
            {'id': 2, 'user_id': 1, 'audit_type': 'lead-scoring', 'audit_data': {'a': 1}, 'created_at': FIXED_NOW},
            {'id': 1, 'user_id': 1, 'audit_type': 'contact-quality', 'audit_data': None, 'created_at': FIXED_NOW},
        ]

        history = await list_audit_history(mock_conn, 1, limit=5)

        assert [h.id for h in history] == [2, 1]
        assert history[1].auditData == {}
        assert mock_conn.fetch.await_args.args[1:] == (1, 5)
