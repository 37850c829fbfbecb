"""
Authentication endpoints – Supabase email/password flow with a JWT session cookie.
"""

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from studio_tracker.dependencies import (
    CurrentUser,
    Submitter,
    clear_session_cookie,
    create_session_cookie,
)
from studio_tracker.models import (
    AuthResponse,
    MessageResponse,
    SignInRequest,
    SignUpRequest,
    UserInfo,
)
from studio_tracker.rate_limit import AUTH, limiter
from studio_tracker.services.auth import (
    AuthAttemptResult,
    AuthMode,
    Credentials,
    Failure,
    FailureKind,
    NeedsConfirmation,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _raise_for_failure(result: Failure, mode: AuthMode) -> None:
    if result.kind is FailureKind.RATE_LIMITED:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=result.message,
            headers={"Retry-After": str(result.retry_after_seconds)},
        )
    if result.kind is FailureKind.CLIENT_INIT:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=result.message,
        )
    raise HTTPException(
        status_code=(
            status.HTTP_401_UNAUTHORIZED
            if mode is AuthMode.SIGN_IN
            else status.HTTP_400_BAD_REQUEST
        ),
        detail=result.message,
    )


def _finish(
    result: AuthAttemptResult, mode: AuthMode, response: Response
) -> AuthResponse | JSONResponse:
    if isinstance(result, Failure):
        _raise_for_failure(result, mode)
    if isinstance(result, NeedsConfirmation):
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"message": f"Confirmation email sent to {result.email}"},
        )

    create_session_cookie(response, result.user)
    return AuthResponse(
        message="Account created" if mode is AuthMode.SIGN_UP else "Signed in successfully",
        user=UserInfo(
            id=result.user.id,
            email=result.user.email or "",
            name=result.user.name,
        ),
    )


@router.post(
    "/sign-in",
    response_model=AuthResponse,
    operation_id="signIn",
    summary="Sign in with email and password",
)
@limiter.limit(AUTH)
async def sign_in(
    request: Request, body: SignInRequest, response: Response, submitter: Submitter
):
    result = await submitter.submit(
        AuthMode.SIGN_IN, Credentials(email=body.email, password=body.password)
    )
    return _finish(result, AuthMode.SIGN_IN, response)


@router.post(
    "/sign-up",
    response_model=AuthResponse,
    operation_id="signUp",
    summary="Create an account and its employee profile",
    responses={202: {"model": MessageResponse, "description": "Email confirmation required"}},
)
@limiter.limit(AUTH)
async def sign_up(
    request: Request, body: SignUpRequest, response: Response, submitter: Submitter
):
    result = await submitter.submit(
        AuthMode.SIGN_UP,
        Credentials(email=body.email, password=body.password, name=body.name),
    )
    return _finish(result, AuthMode.SIGN_UP, response)


@router.post(
    "/logout",
    response_model=MessageResponse,
    operation_id="logout",
    summary="Clear the session cookie",
)
async def logout(current_user: CurrentUser, response: Response) -> MessageResponse:
    clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=UserInfo,
    operation_id="getMe",
    summary="Get current authenticated user info",
)
async def get_me(current_user: CurrentUser) -> UserInfo:
    return current_user
