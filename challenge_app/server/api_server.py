"""FastAPI server that exposes the challenge to participants and supervisors.

Authentication is handled in front of this service; the authenticated user
id arrives in the ``X-User-Id`` header and is trusted as-is.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictBool, StrictInt
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from challenge_app.constants.about import APP_NAME, APP_VERSION
from challenge_app.constants.challenge_constants import (
    DEFAULT_CUTOFF_TIME,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_TIMEZONE,
    OVERRIDE_LOG_PAGE_SIZE,
)
from challenge_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, USER_ID_HEADER
from challenge_app.core.challenge_manager import ChallengeManager
from challenge_app.core.errors import (
    AuthorizationError,
    ChallengeError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from challenge_app.core.models import RawAnswers

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[ChallengeError], int] = {
    ValidationError: 422,
    NotFoundError: 404,
    AuthorizationError: 403,
    ConflictError: 409,
}


class CreateGroupPayload(BaseModel):
    """Payload schema for creating a group."""

    name: str
    display_name: str
    start_date: date | None = None
    timezone: str = DEFAULT_TIMEZONE
    cutoff_time: str = DEFAULT_CUTOFF_TIME
    max_players: int = DEFAULT_MAX_PLAYERS


class JoinPayload(BaseModel):
    """Payload schema for joining a group by invite code."""

    invite_code: str
    display_name: str


class GroupSettingsPayload(BaseModel):
    name: str | None = None
    start_date: date | None = None
    timezone: str | None = None
    cutoff_time: str | None = None
    max_players: int | None = None


class DayContentPayload(BaseModel):
    hadith_text: str = ""
    fiqh_statement_text: str = ""
    impact_task_text: str = ""
    correct_answer: bool = True


class SubmissionPayload(BaseModel):
    """Payload schema for a participant's answers for one day."""

    quran_points: StrictInt
    hadith_points: StrictInt
    fiqh_answer: StrictBool
    impact_done: StrictBool


class OverridePayload(BaseModel):
    """Payload schema for a supervisor override; null clears the override."""

    new_override_total: StrictInt | None = None
    reason: str
    expected_total_points: StrictInt | None = None


class LeaderboardKind(str, Enum):
    DAILY = "daily"
    OVERALL = "overall"
    STREAKS = "streaks"


_KIND_BY_STATUS: dict[int, str] = {
    401: "authentication",
    403: "authorization",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation",
}


def _status_for(exc: ChallengeError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_response(status_code: int, detail: str, kind: str, retryable: bool = False) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error": kind, "retryable": retryable},
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    message = first.get("msg", "invalid value")
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {message}" if location else message


def _get_manager_dependency(manager: ChallengeManager):
    def dependency() -> ChallengeManager:
        return manager

    return dependency


def _current_user(user_id: str | None = Header(default=None, alias=USER_ID_HEADER)) -> str:
    if user_id is None or not user_id.strip():
        raise HTTPException(status_code=401, detail=f"Missing {USER_ID_HEADER} header.")
    return user_id.strip()


def create_api_app(manager: ChallengeManager) -> FastAPI:
    """Create a FastAPI application wired to the provided challenge manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    manager_dep = _get_manager_dependency(manager)

    @app.exception_handler(ChallengeError)
    async def handle_challenge_error(request: Request, exc: ChallengeError) -> JSONResponse:
        status_code = _status_for(exc)
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, status_code, exc)
        return _error_response(status_code, str(exc), exc.kind, exc.retryable)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        detail = _describe_validation_error(exc)
        logger.info("%s %s rejected (422): %s", request.method, request.url.path, detail)
        return _error_response(422, detail, "validation")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        kind = _KIND_BY_STATUS.get(exc.status_code, "error")
        return _error_response(exc.status_code, str(exc.detail), kind)

    @app.post("/groups", status_code=201)
    def create_group(
        payload: CreateGroupPayload,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        group, member = challenge.create_group(
            user_id,
            payload.display_name,
            payload.name,
            start_date=payload.start_date,
            timezone_name=payload.timezone,
            cutoff_time=payload.cutoff_time,
            max_players=payload.max_players,
        )
        return jsonable_encoder({"group": group, "member": member})

    @app.post("/groups/join", status_code=201)
    def join_group(
        payload: JoinPayload,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        group, member = challenge.join_group(user_id, payload.display_name, payload.invite_code)
        return jsonable_encoder({"group": group, "member": member})

    @app.get("/groups/{group_id}")
    def get_group(
        group_id: str,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        group = challenge.get_group(group_id, user_id)
        members = challenge.get_members(group_id, user_id)
        return jsonable_encoder(
            {
                "group": group,
                "members": members,
                "current_day_number": challenge.current_day_number(group_id),
            }
        )

    @app.patch("/groups/{group_id}")
    def update_group(
        group_id: str,
        payload: GroupSettingsPayload,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        group = challenge.update_group_settings(
            group_id,
            user_id,
            name=payload.name,
            start_date=payload.start_date,
            timezone_name=payload.timezone,
            cutoff_time=payload.cutoff_time,
            max_players=payload.max_players,
        )
        return jsonable_encoder({"group": group})

    @app.get("/groups/{group_id}/days/{day_number}")
    def get_day(
        group_id: str,
        day_number: int,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return jsonable_encoder(challenge.get_day(group_id, user_id, day_number))

    @app.put("/groups/{group_id}/days/{day_number}/content")
    def save_day_content(
        group_id: str,
        day_number: int,
        payload: DayContentPayload,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        content = challenge.save_day_content(
            group_id,
            user_id,
            day_number,
            hadith_text=payload.hadith_text,
            fiqh_statement_text=payload.fiqh_statement_text,
            impact_task_text=payload.impact_task_text,
            correct_answer=payload.correct_answer,
        )
        return jsonable_encoder({"content": content, "correct_answer": payload.correct_answer})

    @app.post("/groups/{group_id}/days/{day_number}/post", status_code=201)
    def post_day(
        group_id: str,
        day_number: int,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return jsonable_encoder({"post": challenge.post_day(group_id, user_id, day_number)})

    @app.put("/groups/{group_id}/days/{day_number}/submission")
    def submit_day(
        group_id: str,
        day_number: int,
        payload: SubmissionPayload,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        raw = RawAnswers(
            quran_points=payload.quran_points,
            hadith_points=payload.hadith_points,
            fiqh_answer=payload.fiqh_answer,
            impact_done=payload.impact_done,
        )
        submission = challenge.submit_day(group_id, user_id, day_number, raw)
        rows = challenge.daily_leaderboard(group_id, user_id, day_number)
        return jsonable_encoder(
            {"submission": submission, "rank": challenge.rank_of(rows, user_id)}
        )

    @app.get("/groups/{group_id}/days/{day_number}/submissions")
    def list_day_submissions(
        group_id: str,
        day_number: int,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        rows = challenge.list_day_submissions(group_id, user_id, day_number)
        return jsonable_encoder({"submissions": rows})

    @app.post("/groups/{group_id}/submissions/{submission_id}/override")
    def apply_override(
        group_id: str,
        submission_id: str,
        payload: OverridePayload,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        submission, entry = challenge.apply_override(
            group_id,
            user_id,
            submission_id,
            payload.new_override_total,
            payload.reason,
            expected_total_points=payload.expected_total_points,
        )
        return jsonable_encoder({"submission": submission, "log_entry": entry})

    @app.get("/groups/{group_id}/overrides")
    def list_overrides(
        group_id: str,
        limit: int = OVERRIDE_LOG_PAGE_SIZE,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        entries = challenge.list_overrides(group_id, user_id, limit=max(1, limit))
        return jsonable_encoder({"overrides": entries})

    @app.get("/groups/{group_id}/leaderboards/{kind}")
    def get_leaderboard(
        group_id: str,
        kind: LeaderboardKind,
        day: int | None = None,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        if kind is LeaderboardKind.DAILY:
            rows = challenge.daily_leaderboard(group_id, user_id, day)
        elif kind is LeaderboardKind.STREAKS:
            rows = challenge.streak_leaderboard(group_id, user_id, day)
        else:
            rows = challenge.overall_leaderboard(group_id, user_id)
        return jsonable_encoder(
            {
                "kind": kind.value,
                "day_number": day if day is not None else challenge.current_day_number(group_id),
                "rows": rows,
                "my_rank": challenge.rank_of(rows, user_id),
            }
        )

    @app.get("/groups/{group_id}/history")
    def get_history(
        group_id: str,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return jsonable_encoder(challenge.history(group_id, user_id))

    @app.get("/groups/{group_id}/reports/{target_user_id}")
    def get_player_report(
        group_id: str,
        target_user_id: str,
        user_id: str = Depends(_current_user),
        challenge: ChallengeManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return jsonable_encoder(challenge.player_report(group_id, user_id, target_user_id))

    return app


def run_api_server(
    manager: ChallengeManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level.lower())
    server = uvicorn.Server(config)
    server.run()
