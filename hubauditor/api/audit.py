"""
FastAPI router for running audits.

Implements:
- GET /api/audit/types: the available audit types
- POST /api/audit: run one audit against a HubSpot account

POST /api/audit flow:
1. Resolve the HubSpot token: ``hubspotToken`` from the body, or the
   signed-in user's saved token named ``tokenName``
2. Check the token against HubSpot (401 when it is rejected)
3. Run the audit pipeline
4. For signed-in users, record the run in audit_history

Only steps 1 and 4 touch the database, each on a briefly borrowed
connection. With no database every caller is anonymous, so a pasted token
still works.

Error responses use ``{"error": <kind>, "message": <text>}``. HubSpot and
generation failures are mapped per hubauditor.api.errors; the user can
simply retry the request.
"""

import logging
from typing import List

import asyncpg
from fastapi import APIRouter, status

from hubauditor.api.errors import api_error, generation_http_error, hubspot_http_error
from hubauditor.core.dependencies import (
    CurrentUserOptionalDep,
    DBPoolDep,
    GenerationClientDep,
    HttpClientDep,
    SettingsDep,
)
from hubauditor.core.security import TokenEncryptionError
from hubauditor.models.enums import AuditType
from hubauditor.models.schemas import AuditReport, AuditRequest, AuditTypeInfo
from hubauditor.services.audit_history import record_audit
from hubauditor.services.audit_pipeline import run_audit
from hubauditor.services.audit_registry import AuditThresholds, get_audit_definition
from hubauditor.services.generation_client import GenerationError
from hubauditor.services.hubspot_client import HubSpotClient, HubSpotError
from hubauditor.services.tokens import get_user_token


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/types", response_model=List[AuditTypeInfo])
async def list_audit_types() -> List[AuditTypeInfo]:
    return [
        AuditTypeInfo(
            auditType=audit_type,
            displayName=get_audit_definition(audit_type).display_name,
            description=get_audit_definition(audit_type).description,
        )
        for audit_type in AuditType
    ]


@router.post("", response_model=AuditReport)
async def create_audit(
    body: AuditRequest,
    pool: DBPoolDep,
    settings: SettingsDep,
    http_client: HttpClientDep,
    generation_client: GenerationClientDep,
    user: CurrentUserOptionalDep,
) -> AuditReport:
    """
    Run an audit and return the report.

    Database connections are borrowed only for the saved-token lookup and
    the history write, never across HubSpot or generation calls. Without a
    database, audits with a pasted token still run anonymously.

    Raises:
        HTTPException 400: Neither hubspotToken nor tokenName supplied.
        HTTPException 401: HubSpot rejected the token, or tokenName used
            without being signed in.
        HTTPException 404: No saved token with that name.
        HTTPException 429/502/503/500: Upstream failures (see api.errors).
    """
    hubspot_token = body.hubspotToken
    if not hubspot_token and body.tokenName:
        if user is None:
            raise api_error(status.HTTP_401_UNAUTHORIZED, "not_authenticated",
                            "Sign in to use a saved token")
        try:
            async with pool.acquire() as connection:
                hubspot_token = await get_user_token(
                    connection, user.id, body.tokenName, settings.encryption_key,
                )
        except TokenEncryptionError:
            logger.error(f"Saved token '{body.tokenName}' of user {user.id} could not be decrypted")
            raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "token_unreadable",
                            "The saved token could not be decrypted")
        if hubspot_token is None:
            raise api_error(status.HTTP_404_NOT_FOUND, "token_not_found",
                            f"No saved token named '{body.tokenName}'")

    if not hubspot_token:
        raise api_error(status.HTTP_400_BAD_REQUEST, "missing_fields",
                        "Missing required fields: auditType and hubspotToken")

    hubspot_client = HubSpotClient(hubspot_token, http_client, settings)
    if not await hubspot_client.test_connection():
        raise api_error(status.HTTP_401_UNAUTHORIZED, "hubspot_connection_failed",
                        "Failed to connect to HubSpot. Please check your API token.")

    try:
        report = await run_audit(
            body.auditType,
            hubspot_client,
            generation_client,
            account_context=body.accountContext,
            thresholds=AuditThresholds.from_settings(settings),
        )
    except HubSpotError as e:
        raise hubspot_http_error(e) from e
    except GenerationError as e:
        raise generation_http_error(e) from e

    # A signed-in user implies the pool exists
    if user is not None:
        try:
            async with pool.acquire() as connection:
                await record_audit(connection, user.id, report)
        except (asyncpg.PostgresError, OSError) as e:
            # History is best-effort; the report is returned regardless
            logger.error(f"Failed to record audit history for user {user.id}: {e}")

    return report
