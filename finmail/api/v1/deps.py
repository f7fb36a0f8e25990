"""
Shared FastAPI dependencies.
"""

import os

from fastapi import HTTPException, Request, Response

from finmail import config
from finmail.exceptions import GmailAuthError
from finmail.services import gmail_service
from finmail.services.gmail_service import GmailSession


def set_token_cookie(response: Response, token_json: str) -> None:
    """Store the OAuth token bundle in the httpOnly session cookie."""
    response.set_cookie(
        config.TOKEN_COOKIE_NAME,
        token_json,
        max_age=config.TOKEN_COOKIE_MAX_AGE,
        httponly=True,
        secure=os.getenv("ENVIRONMENT") == "production",
        samesite="lax",
    )


def get_gmail_session(request: Request, response: Response) -> GmailSession:
    """
    Build a GmailSession from the token cookie set by /auth/callback.

    A token refreshed while opening the session is written back to the
    cookie, so the next request does not refresh again.

    Usage:
        @router.get("/emails")
        def list_emails(session: GmailSession = Depends(get_gmail_session)):
            ...
    """
    token = request.cookies.get(config.TOKEN_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="User not authenticated. Please sign in via /api/v1/auth/login"
        )

    try:
        session = gmail_service.open_session(token)
    except GmailAuthError as e:
        raise HTTPException(status_code=401, detail=f"{e} Please sign in via /api/v1/auth/login")

    if session.refreshed:
        set_token_cookie(response, session.token_json)
    return session
