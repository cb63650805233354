"""
FastAPI routes for SoundCloud sign-in and the signed-in user's data.
"""

from __future__ import annotations

import logging
import uuid
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from app.clients.kv_store import KeyValueStoreError
from app.clients.soundcloud import SoundCloudAPIError
from app.dependencies import (
    get_app_settings,
    get_session_id,
    get_soundcloud_auth_service,
    get_soundcloud_client,
)
from app.schemas import (
    AuthorizationUrlResponse,
    ExchangeTokenPayload,
    ExchangeTokenResponse,
    LogoutResponse,
)
from app.services.soundcloud_auth import AuthorizationResult, InvalidOAuthStateError
from app.services.token_store import SESSION_TTL

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_LIKED_TRACKS_PAGE = 200


def _set_session_cookie(response: Response, session_id: str, settings: Any) -> None:
    response.set_cookie(
        key=settings.session.cookie_name,
        value=session_id,
        max_age=int(SESSION_TTL.total_seconds()),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def _clear_session_cookie(response: Response, settings: Any) -> None:
    response.delete_cookie(
        key=settings.session.cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


async def _complete_authorization(
    auth_service: Any, code: Optional[str], state: Optional[str]
) -> AuthorizationResult:
    if not code or not state:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Missing code or state parameter",
        )
    try:
        return await auth_service.complete_authorization(code=code, state=state)
    except InvalidOAuthStateError as exc:
        logger.warning("Rejected OAuth callback: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Invalid or expired state parameter",
        ) from exc
    except (SoundCloudAPIError, KeyValueStoreError) as exc:
        logger.exception("Token exchange error")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to exchange code for token",
        ) from exc


def _parse_exchange_payload(body: Any) -> ExchangeTokenPayload:
    # Absent or malformed bodies fall through to the missing-parameter check.
    if not isinstance(body, dict):
        return ExchangeTokenPayload()
    try:
        return ExchangeTokenPayload.model_validate(body)
    except ValidationError:
        return ExchangeTokenPayload()


async def _require_access_token(auth_service: Any, session_id: Optional[str]) -> str:
    """Resolve the caller's session to a usable SoundCloud access token."""
    if not session_id:
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="No session found")

    session = await auth_service.resolve_session(session_id)
    if session is None:
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Invalid session")

    access_token = await auth_service.get_valid_access_token(session.user_id)
    if not access_token:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED, detail="No valid access token"
        )
    return access_token


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/soundcloud", status_code=HTTPStatus.TEMPORARY_REDIRECT)
async def start_soundcloud_oauth_flow(
    auth_service: Annotated[Any, Depends(get_soundcloud_auth_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    redirect: bool = Query(
        default=True,
        description="When false, return the consent URL as JSON instead of redirecting.",
    ),
) -> Response:
    """
    Kick off sign-in: mint a session id, park the PKCE verifier and send the
    browser to SoundCloud.
    """
    session_id = uuid.uuid4().hex
    try:
        authorization_url = await auth_service.start_authorization(session_id)
    except KeyValueStoreError as exc:
        logger.exception("Error initiating SoundCloud auth")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to initiate authentication",
        ) from exc

    response: Response
    if redirect:
        response = RedirectResponse(
            url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT
        )
    else:
        response = JSONResponse(
            AuthorizationUrlResponse(authorization_url=authorization_url).model_dump()
        )
    _set_session_cookie(response, session_id, settings)
    return response


@router.post(
    "/auth/exchange-token",
    status_code=HTTPStatus.OK,
    response_model=ExchangeTokenResponse,
)
async def exchange_token(
    response: Response,
    auth_service: Annotated[Any, Depends(get_soundcloud_auth_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    body: Annotated[Any, Body(description="JSON object with `code` and `state`.")] = None,
) -> dict:
    """Complete the OAuth exchange, store tokens and establish the session."""
    payload = _parse_exchange_payload(body)
    result = await _complete_authorization(auth_service, payload.code, payload.state)
    _set_session_cookie(response, result.session_id, settings)
    return {"success": True, "user": result.user.model_dump(mode="json")}


@router.get("/auth/callback", status_code=HTTPStatus.OK)
async def handle_soundcloud_oauth_callback(
    auth_service: Annotated[Any, Depends(get_soundcloud_auth_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    code: Optional[str] = Query(default=None, description="Authorization code."),
    state: Optional[str] = Query(default=None, description="OAuth state value."),
    error: Optional[str] = Query(default=None, description="Error reported by SoundCloud."),
    redirect: bool = Query(
        default=True,
        description="When false, return JSON even if a front-end URL is configured.",
    ),
) -> Response:
    """Browser redirect target that performs the exchange server-side."""
    if error:
        logger.info("SoundCloud reported authorization error: %s", error)
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Authentication was cancelled or failed",
        )

    result = await _complete_authorization(auth_service, code, state)

    response: Response
    if settings.frontend_base_url and redirect:
        response = RedirectResponse(
            url=str(settings.frontend_base_url),
            status_code=HTTPStatus.TEMPORARY_REDIRECT,
        )
    else:
        response = JSONResponse(
            {"success": True, "user": result.user.model_dump(mode="json")}
        )
    _set_session_cookie(response, result.session_id, settings)
    return response


@router.post("/auth/logout", status_code=HTTPStatus.OK, response_model=LogoutResponse)
async def logout(
    response: Response,
    auth_service: Annotated[Any, Depends(get_soundcloud_auth_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    session_id: Annotated[Optional[str], Depends(get_session_id)],
) -> dict:
    """Drop the stored session and clear the cookie."""
    if session_id:
        try:
            await auth_service.logout(session_id)
        except KeyValueStoreError as exc:
            logger.exception("Error during logout")
            raise HTTPException(
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
                detail="Failed to logout",
            ) from exc
        _clear_session_cookie(response, settings)
    return {"success": True}


@router.get("/user/profile", status_code=HTTPStatus.OK)
async def get_user_profile(
    auth_service: Annotated[Any, Depends(get_soundcloud_auth_service)],
    oauth_client: Annotated[Any, Depends(get_soundcloud_client)],
    session_id: Annotated[Optional[str], Depends(get_session_id)],
) -> dict:
    """Return the signed-in user's SoundCloud profile."""
    try:
        access_token = await _require_access_token(auth_service, session_id)
        profile = await oauth_client.get_user_profile(access_token)
    except (SoundCloudAPIError, KeyValueStoreError) as exc:
        logger.exception("Error fetching user profile")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user profile",
        ) from exc

    logger.debug("Fetched profile for SoundCloud user %s", profile.id)
    return profile.model_dump(mode="json")


@router.get("/user/liked-tracks", status_code=HTTPStatus.OK)
async def get_liked_tracks(
    auth_service: Annotated[Any, Depends(get_soundcloud_auth_service)],
    oauth_client: Annotated[Any, Depends(get_soundcloud_client)],
    session_id: Annotated[Optional[str], Depends(get_session_id)],
    limit: int = Query(default=20, ge=1, le=MAX_LIKED_TRACKS_PAGE),
    offset: int = Query(default=0, ge=0),
) -> dict:
    """Return one page of the signed-in user's liked tracks."""
    try:
        access_token = await _require_access_token(auth_service, session_id)
        liked = await oauth_client.get_liked_tracks(access_token, limit=limit, offset=offset)
    except (SoundCloudAPIError, KeyValueStoreError) as exc:
        logger.exception("Error fetching liked tracks")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to fetch liked tracks",
        ) from exc

    logger.info(
        "Fetched %d liked tracks (offset=%d, has_next=%s)",
        len(liked.collection),
        offset,
        bool(liked.next_href),
    )
    return liked.model_dump(mode="json")
