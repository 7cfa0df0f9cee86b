"""FastAPI backend for the feed UI: local store reads/writes plus sync triggers."""

from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import duckdb
import structlog
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from syncial.api.schemas import (
    BetEstimateResponse,
    CategoryItem,
    CommentCreateRequest,
    ErrorResponse,
    HealthResponse,
    LeaderboardResponse,
    LikeResponse,
    OddsResponse,
    PollCreateRequest,
    PollsListResponse,
    PostCreateRequest,
    PostsListResponse,
    ReputationUpsertRequest,
    StatsResponse,
    SyncAllResponse,
    SyncOneResponse,
)
from syncial.config import Settings, get_settings
from syncial.derived import MIN_BET_AMOUNT, calculate_odds, calculate_tier, estimate_bet, fee_breakdown
from syncial.ingestion.ledger.client import LedgerReader
from syncial.ingestion.reconciler import Reconciler
from syncial.ingestion.scheduler import run_periodic
from syncial.models import Comment, Poll, Post, ReputationRecord
from syncial.storage.polls import SORT_COLUMNS, is_known_category
from syncial.storage.store import LocalStore

log = structlog.get_logger(__name__)

NOT_FOUND = {404: {"description": "Not found", "model": ErrorResponse}}


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


def _store(request: Request) -> LocalStore:
    return request.app.state.store


def _reconciler(request: Request) -> Reconciler:
    return request.app.state.reconciler


router = APIRouter(prefix="/api")


# --- Polls ---
@router.get("/polls", response_model=PollsListResponse)
def polls_list(
    request: Request,
    status: int | None = Query(None, ge=0, le=2, description="0 Active, 1 Resolved, 2 Cancelled"),
    category: str | None = Query(None, description="Category name, or All"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: str = Query("created_at", description=f"One of {', '.join(SORT_COLUMNS)}"),
) -> PollsListResponse:
    rows = _store(request).list_polls(
        status=status, category=category, limit=limit, offset=offset, sort_by=sort_by
    )
    return PollsListResponse(polls=[Poll(**r) for r in rows], limit=limit, offset=offset)


@router.post("/polls", response_model=Poll, status_code=201)
def polls_create(request: Request, body: PollCreateRequest):
    if not is_known_category(body.category):
        return _error_json("invalid_category", f"Unknown category: {body.category}", 422)
    poll = Poll(
        id=body.id or uuid.uuid4().hex,
        poll_id_onchain=body.poll_id_onchain,
        question=body.question,
        option_a=body.option_a,
        option_b=body.option_b,
        category=body.category,
        description=body.description,
        creator_address_hash=body.creator_address_hash,
        deadline=body.deadline,
        created_at=_now_ms(),
    )
    store = _store(request)
    try:
        store.create_poll(poll)
    except duckdb.ConstraintException as e:
        return _error_json("conflict", f"Poll already exists: {e}", 409)
    return Poll(**store.get_poll(poll.id))


@router.get("/polls/{poll_id}", response_model=Poll, responses=NOT_FOUND)
def polls_get(request: Request, poll_id: str):
    row = _store(request).get_poll(poll_id)
    if not row:
        return _error_json("not_found", f"Poll not found: {poll_id}")
    return Poll(**row)


@router.get("/polls/{poll_id}/odds", response_model=OddsResponse, responses=NOT_FOUND)
def polls_odds(request: Request, poll_id: str):
    row = _store(request).get_poll(poll_id)
    if not row:
        return _error_json("not_found", f"Poll not found: {poll_id}")
    odds_a, odds_b = calculate_odds(row["pool_option_a"], row["pool_option_b"])
    split = fee_breakdown(row["total_pool"])
    return OddsResponse(
        poll_id=row["id"],
        odds_a=odds_a,
        odds_b=odds_b,
        winner_pool=split["winner_pool"],
        creator_reward=split["creator_reward"],
        platform_fee=split["platform_fee"],
        known=bool(row["ledger_state_known"]),
    )


@router.get("/polls/{poll_id}/estimate", response_model=BetEstimateResponse, responses=NOT_FOUND)
def polls_estimate(
    request: Request,
    poll_id: str,
    option: int = Query(..., ge=1, le=2, description="1 = option A, 2 = option B"),
    amount: int = Query(..., ge=MIN_BET_AMOUNT, description="Bet amount in microcredits"),
):
    row = _store(request).get_poll(poll_id)
    if not row:
        return _error_json("not_found", f"Poll not found: {poll_id}")
    est = estimate_bet(row["pool_option_a"], row["pool_option_b"], option, amount)
    return BetEstimateResponse(poll_id=row["id"], **est)


# --- Posts ---
@router.get("/posts", response_model=PostsListResponse)
def posts_list(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> PostsListResponse:
    rows = _store(request).list_posts(limit=limit, offset=offset)
    return PostsListResponse(posts=[Post(**r) for r in rows], limit=limit, offset=offset)


@router.post("/posts", response_model=Post, status_code=201)
def posts_create(request: Request, body: PostCreateRequest):
    now = _now_ms()
    post = Post(
        id=body.id or uuid.uuid4().hex,
        post_id_onchain=body.post_id_onchain,
        content=body.content,
        content_hash=body.content_hash,
        author_address_hash=body.author_address_hash,
        author_username=body.author_username,
        is_poll=body.is_poll,
        poll_id=body.poll_id,
        timestamp=body.timestamp if body.timestamp is not None else now,
        created_at=now,
    )
    store = _store(request)
    try:
        store.create_post(post)
    except duckdb.ConstraintException as e:
        return _error_json("conflict", f"Post already exists: {e}", 409)
    return Post(**store.get_post(post.id))


@router.get("/posts/{post_id}", response_model=Post, responses=NOT_FOUND)
def posts_get(request: Request, post_id: str):
    row = _store(request).get_post(post_id)
    if not row:
        return _error_json("not_found", f"Post not found: {post_id}")
    return Post(**row)


@router.post("/posts/{post_id}/like", response_model=LikeResponse, responses=NOT_FOUND)
def posts_like(request: Request, post_id: str):
    likes = _store(request).like_post(post_id)
    if likes is None:
        return _error_json("not_found", f"Post not found: {post_id}")
    return LikeResponse(post_id=post_id, likes=likes)


@router.get("/posts/{post_id}/comments", response_model=list[Comment])
def comments_list(request: Request, post_id: str) -> list[Comment]:
    return [Comment(**r) for r in _store(request).list_comments(post_id)]


@router.post("/posts/{post_id}/comments", response_model=Comment, status_code=201)
def comments_add(request: Request, post_id: str, body: CommentCreateRequest):
    comment = Comment(
        id=body.id or uuid.uuid4().hex,
        post_id=post_id,
        author_address_hash=body.author_address_hash,
        author_username=body.author_username,
        content=body.content,
        timestamp=body.timestamp if body.timestamp is not None else _now_ms(),
    )
    try:
        _store(request).add_comment(comment)
    except duckdb.ConstraintException as e:
        return _error_json("conflict", f"Comment already exists: {e}", 409)
    return comment


# --- Reputation ---
@router.get("/reputation/leaderboard", response_model=LeaderboardResponse)
def reputation_leaderboard(request: Request, limit: int = Query(20, ge=1, le=100)) -> LeaderboardResponse:
    rows = _store(request).get_leaderboard(limit)
    return LeaderboardResponse(users=[ReputationRecord(**r) for r in rows])


@router.get("/reputation/{user_hash}", response_model=ReputationRecord, responses=NOT_FOUND)
def reputation_get(request: Request, user_hash: str):
    row = _store(request).get_reputation(user_hash)
    if not row:
        return _error_json("not_found", f"No public reputation for {user_hash}")
    return ReputationRecord(**row)


@router.put("/reputation/{user_hash}", response_model=ReputationRecord)
def reputation_upsert(request: Request, user_hash: str, body: ReputationUpsertRequest) -> ReputationRecord:
    record = ReputationRecord(
        user_hash=user_hash,
        level=calculate_tier(body.total_predictions, body.accuracy_score),
        last_synced=_now_ms(),
        **body.model_dump(),
    )
    store = _store(request)
    store.upsert_reputation(record, keep_username=False)
    return ReputationRecord(**store.get_reputation(user_hash))


# --- Stats ---
@router.get("/stats", response_model=StatsResponse)
def stats(request: Request) -> StatsResponse:
    return StatsResponse(**_store(request).get_stats())


@router.get("/categories", response_model=list[CategoryItem])
def categories(request: Request) -> list[CategoryItem]:
    return [CategoryItem(**r) for r in _store(request).list_categories()]


# --- Sync triggers ---
@router.post("/sync", response_model=SyncAllResponse)
async def sync_all(request: Request) -> SyncAllResponse:
    reconciler = _reconciler(request)
    if reconciler.pass_running:
        return SyncAllResponse(attempted=0, skipped=True)
    attempted = await reconciler.sync_all()
    return SyncAllResponse(attempted=attempted)


@router.post("/sync/polls/{poll_id}", response_model=SyncOneResponse, responses=NOT_FOUND)
async def sync_poll(request: Request, poll_id: str):
    store = _store(request)
    row = store.get_poll(poll_id)
    if not row or not row["poll_id_onchain"]:
        return _error_json("not_found", f"No ledger-confirmed poll: {poll_id}")
    synced = await _reconciler(request).sync_poll(row["poll_id_onchain"])
    return SyncOneResponse(poll_id=row["id"], synced=synced, poll=Poll(**store.get_poll(row["id"])))


@router.post("/sync/users/{user_hash}", response_model=ReputationRecord, responses={502: {"model": ErrorResponse}})
async def sync_user(request: Request, user_hash: str):
    record = await _reconciler(request).sync_user(user_hash)
    if record is None:
        return _error_json("sync_failed", f"Reputation sync failed for {user_hash}", 502)
    return ReputationRecord(**_store(request).get_reputation(user_hash))


def create_app(
    settings: Settings | None = None,
    *,
    store: LocalStore | None = None,
    reader: LedgerReader | None = None,
    background_sync: bool | None = None,
) -> FastAPI:
    """Build the app. Store and reader are created from settings unless injected;
    injected ones are left open at shutdown."""
    settings = settings or get_settings()
    run_sync = settings.sync_enabled if background_sync is None else background_sync

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or LocalStore(settings.db_path)
        app_reader = reader or LedgerReader(
            settings.ledger_api_base,
            settings.ledger_network,
            timeout=settings.ledger_timeout_sec,
        )
        app_store.open()
        reconciler = Reconciler(
            app_store,
            app_reader,
            betting_program=settings.betting_program,
            reputation_program=settings.reputation_program,
            max_concurrency=settings.sync_max_concurrency,
            market_timeout_sec=settings.sync_market_timeout_sec,
        )
        app.state.settings = settings
        app.state.store = app_store
        app.state.reader = app_reader
        app.state.reconciler = reconciler

        sync_task = None
        sync_stop = None
        if run_sync:
            sync_stop = asyncio.Event()
            sync_task = asyncio.create_task(
                run_periodic(reconciler.sync_all, settings.sync_interval_sec, stop_event=sync_stop)
            )
            log.info("sync_loop_started", interval_sec=settings.sync_interval_sec)

        yield

        if sync_task is not None and sync_stop is not None:
            sync_stop.set()
            await sync_task
        if reader is None:
            await app_reader.aclose()
        if store is None:
            app_store.close()

    app = FastAPI(title="Syncial Indexer API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.include_router(router)

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request, deployments: bool = Query(True)) -> HealthResponse:
        state = request.app.state
        deployment_status = None
        if deployments:
            deployment_status = await state.reader.check_deployments(
                {
                    "core": settings.core_program,
                    "betting": settings.betting_program,
                    "reputation": settings.reputation_program,
                }
            )
        return HealthResponse(
            timestamp=datetime.now(timezone.utc).isoformat(),
            stats=state.store.get_stats(),
            deployments=deployment_status,
            sync=state.reconciler.get_status(),
        )

    return app


def run_api(
    host: str | None = None,
    port: int | None = None,
    profile: str | None = None,
    background_sync: bool | None = None,
    settings: Settings | None = None,
) -> None:
    settings = settings or get_settings(profile)
    import uvicorn

    uvicorn.run(
        create_app(settings, background_sync=background_sync),
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=False,
    )
