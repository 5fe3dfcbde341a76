"""
FastAPI router for saved CRM tokens.

Implements:
- GET /api/tokens: list token names for the signed-in user
- POST /api/tokens: save (or replace) a named token
- DELETE /api/tokens: delete a named token
- GET /api/tokens/get?name=: return a decrypted token value

Token values are encrypted at rest and never appear in the list endpoint.
"""

import logging

from fastapi import APIRouter, Query, status

from hubauditor.api.errors import api_error
from hubauditor.core.dependencies import CurrentUserDep, DBSessionDep, SettingsDep
from hubauditor.core.security import TokenEncryptionError
from hubauditor.models.schemas import (
    MessageResponse,
    TokenDeleteRequest,
    TokenListResponse,
    TokenSaveRequest,
    TokenValueResponse,
)
from hubauditor.services.tokens import (
    delete_user_token,
    get_user_token,
    list_user_tokens,
    save_user_token,
)


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=TokenListResponse)
async def list_tokens(user: CurrentUserDep, db: DBSessionDep) -> TokenListResponse:
    return TokenListResponse(tokens=await list_user_tokens(db, user.id))


@router.post("", response_model=MessageResponse)
async def save_token(
    body: TokenSaveRequest,
    user: CurrentUserDep,
    db: DBSessionDep,
    settings: SettingsDep,
) -> MessageResponse:
    await save_user_token(db, user.id, body.tokenName, body.token, settings.encryption_key, body.tokenType)
    return MessageResponse(message="Token saved successfully")


@router.delete("", response_model=MessageResponse)
async def delete_token(
    body: TokenDeleteRequest,
    user: CurrentUserDep,
    db: DBSessionDep,
) -> MessageResponse:
    if not await delete_user_token(db, user.id, body.tokenName):
        raise api_error(status.HTTP_404_NOT_FOUND, "token_not_found",
                        f"No saved token named '{body.tokenName}'")
    return MessageResponse(message="Token deleted successfully")


@router.get("/get", response_model=TokenValueResponse)
async def get_token(
    user: CurrentUserDep,
    db: DBSessionDep,
    settings: SettingsDep,
    name: str = Query(..., min_length=1, max_length=100),
) -> TokenValueResponse:
    try:
        token = await get_user_token(db, user.id, name, settings.encryption_key)
    except TokenEncryptionError:
        logger.error(f"Saved token '{name}' of user {user.id} could not be decrypted")
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "token_unreadable",
                        "The saved token could not be decrypted")
    if token is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "token_not_found", f"No saved token named '{name}'")
    return TokenValueResponse(tokenName=name, token=token)
