"""
Google OAuth authentication endpoints for Gmail API access.

Flow:
1. GET /auth/login -> Redirects to Google OAuth consent screen
2. Google redirects back to /auth/callback with code
3. /auth/callback exchanges code for tokens and stores them in an
   httpOnly cookie; every later request builds its own Gmail session
"""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from google_auth_oauthlib.flow import Flow
from pydantic import BaseModel

from finmail import config
from finmail.api.v1.deps import set_token_cookie
from finmail.exceptions import GmailAuthError
from finmail.services.gmail_service import SCOPES, credentials_from_token


# Response Models
class AuthStatusResponse(BaseModel):
    """Authentication status check response."""
    authenticated: bool
    expired: bool
    has_refresh_token: bool
    message: str


router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_oauth_flow(redirect_uri: str) -> Flow:
    """Create OAuth flow from the configured client id/secret."""
    if not config.GOOGLE_CLIENT_ID or not config.GOOGLE_CLIENT_SECRET:
        raise HTTPException(
            status_code=500,
            detail="GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not configured."
        )

    client_config = {
        "web": {
            "client_id": config.GOOGLE_CLIENT_ID,
            "client_secret": config.GOOGLE_CLIENT_SECRET,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": [redirect_uri],
        }
    }
    return Flow.from_client_config(
        client_config,
        scopes=SCOPES,
        redirect_uri=redirect_uri,
        autogenerate_code_verifier=False,
    )


@router.get("/status", response_model=AuthStatusResponse)
def auth_status(request: Request) -> AuthStatusResponse:
    """Check whether the caller holds a usable token bundle."""
    token = request.cookies.get(config.TOKEN_COOKIE_NAME)

    if not token:
        return AuthStatusResponse(
            authenticated=False,
            expired=True,
            has_refresh_token=False,
            message="No token found. Please sign in."
        )

    try:
        creds = credentials_from_token(token)
    except GmailAuthError as e:
        return AuthStatusResponse(
            authenticated=False,
            expired=True,
            has_refresh_token=False,
            message=f"Error reading token: {e}"
        )

    if creds.valid:
        message = "Token is valid."
    elif creds.refresh_token:
        message = "Token expired; it will be refreshed on the next request."
    else:
        message = "Token expired and no refresh token. Please sign in."

    return AuthStatusResponse(
        authenticated=bool(creds.valid or creds.refresh_token),
        expired=not creds.valid,
        has_refresh_token=bool(creds.refresh_token),
        message=message
    )


@router.get("/login")
def login():
    """
    Start OAuth flow - redirects to Google consent screen.

    After user grants permission, Google redirects to /auth/callback.
    """
    flow = get_oauth_flow(config.GOOGLE_REDIRECT_URI)

    auth_url, _state = flow.authorization_url(
        access_type="offline",  # Get refresh token
        include_granted_scopes="true",
        prompt="consent"  # Force consent to get refresh token
    )

    return RedirectResponse(url=auth_url)


@router.get("/callback")
def callback(code: str = None, error: str = None):
    """
    OAuth callback - exchanges authorization code for tokens.

    The token bundle is passed through unchanged into a cookie.
    """
    if error:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": error,
                "message": "Authentication was denied or failed."
            }
        )

    if not code:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "missing_code",
                "message": "No authorization code received."
            }
        )

    try:
        flow = get_oauth_flow(config.GOOGLE_REDIRECT_URI)
        flow.fetch_token(code=code)
        credentials = flow.credentials
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": str(e),
                "message": "Failed to exchange authorization code for tokens."
            }
        )

    response = JSONResponse(
        content={
            "success": True,
            "message": "✅ Authentication successful! You can now fetch emails at /api/v1/emails/fetch.",
            "has_refresh_token": bool(credentials.refresh_token)
        }
    )
    set_token_cookie(response, credentials.to_json())
    return response


@router.delete("/logout")
def logout():
    """
    Drop the stored token cookie (logout).

    After this, you'll need to sign in again via /auth/login.
    """
    response = JSONResponse(content={"success": True, "message": "Logged out. Token cookie cleared."})
    response.delete_cookie(config.TOKEN_COOKIE_NAME)
    return response
