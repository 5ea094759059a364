"""FastAPI application exposing the Asha AI chat services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ashaai.api.schemas import (
    ClearResponse,
    ConfidenceModel,
    MessageCreate,
    MessageExchangeResponse,
    TurnModel,
)
from ashaai.cache import TTLCache
from ashaai.config import Settings, get_settings
from ashaai.metrics.observability import (
    bind_correlation_id,
    clear_correlation_id,
    configure_logging,
    get_correlation_id,
    get_logger,
)
from ashaai.models import PipelineRequest
from ashaai.retrieval import RetrievalAugmenter, RetrievalConfig, default_sources
from ashaai.services.generation import (
    CompletionConfig,
    CompletionProvider,
    OpenAICompletionProvider,
    UnconfiguredCompletionProvider,
    build_openai_client,
)
from ashaai.services.pipeline import PipelineConfig, ResponsePipeline
from ashaai.services.prompts import PromptBuilder, PromptBuilderConfig
from ashaai.services.retry import retry_async
from ashaai.services.sentiment import SentimentAnalyzer, SentimentConfig
from ashaai.storage import InMemoryMessageStore, MessageStore, StoreError


@dataclass(frozen=True)
class AppDependencies:
    store: MessageStore
    pipeline: ResponsePipeline


def _completion_provider(settings: Settings, *, model: str, timeout_seconds: float) -> CompletionProvider:
    if not settings.llm_api_key:
        return UnconfiguredCompletionProvider()
    client = build_openai_client(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        timeout_seconds=timeout_seconds,
    )
    return OpenAICompletionProvider(client, CompletionConfig(model=model, timeout_seconds=timeout_seconds))


def _build_dependencies(settings: Settings) -> AppDependencies:
    prompt_builder = PromptBuilder(PromptBuilderConfig(history_window=settings.history_window))
    retrieval_config = RetrievalConfig(
        cache_ttl_seconds=settings.retrieval_cache_ttl_seconds,
        cache_size=settings.retrieval_cache_size,
        source_timeout_seconds=settings.retrieval_source_timeout_seconds,
        global_timeout_seconds=settings.retrieval_global_timeout_seconds,
        max_items=settings.retrieval_max_items,
    )
    sources = default_sources(settings.retrieval_source_urls_tuple) if settings.retrieval_live_sources else []
    retriever = RetrievalAugmenter(sources, retrieval_config)

    sentiment = SentimentAnalyzer(
        _completion_provider(
            settings,
            model=settings.sentiment_model,
            timeout_seconds=settings.sentiment_timeout_seconds,
        ),
        SentimentConfig(max_tokens=settings.sentiment_max_tokens, temperature=settings.sentiment_temperature),
        prompt_builder,
    )
    pipeline = ResponsePipeline(
        _completion_provider(settings, model=settings.chat_model, timeout_seconds=settings.chat_timeout_seconds),
        sentiment,
        retriever,
        PipelineConfig(
            chat_max_tokens=settings.chat_max_tokens,
            chat_temperature=settings.chat_temperature,
            completion_attempts=settings.completion_attempts,
            retry_base_delay_seconds=settings.retry_base_delay_seconds,
            failure_escalation_threshold=settings.failure_escalation_threshold,
            repeat_window_seconds=settings.repeat_window_seconds,
            repeat_cache_size=settings.repeat_cache_size,
            retrieval_enabled=settings.retrieval_enabled,
        ),
        prompt_builder=prompt_builder,
        recent_queries=TTLCache(
            max_entries=settings.repeat_cache_size,
            ttl_seconds=settings.repeat_window_seconds,
        ),
    )
    return AppDependencies(store=InMemoryMessageStore(), pipeline=pipeline)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid message data: " + "; ".join(parts)


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    deps = dependencies or _build_dependencies(settings)

    configure_logging(settings.log_level)
    logger = get_logger("api")
    app = FastAPI(title="Asha AI API", version="0.1.0")
    app.state.dependencies = deps

    # Optional CORS
    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    store_retry = retry_async(
        max_attempts=settings.store_attempts,
        base_delay=settings.retry_base_delay_seconds,
        retry_on=(StoreError,),
    )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.warning("request.invalid", path=request.url.path, detail=message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        correlation_id = get_correlation_id()
        logger.error("store.error", correlation_id=correlation_id, detail=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Failed to process message", "details": str(exc), "correlation_id": correlation_id},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        logger.error("unhandled.error", correlation_id=correlation_id, detail=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error", "details": str(exc), "correlation_id": correlation_id},
        )

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    def get_store(dep: AppDependencies = Depends(get_dependencies)) -> MessageStore:
        return dep.store

    def get_pipeline(dep: AppDependencies = Depends(get_dependencies)) -> ResponsePipeline:
        return dep.pipeline

    @app.post("/api/messages", response_model=MessageExchangeResponse)
    async def create_message(
        payload: MessageCreate,
        store: MessageStore = Depends(get_store),
        pipeline: ResponsePipeline = Depends(get_pipeline),
    ) -> MessageExchangeResponse:
        history = await store_retry(store.get_messages)(payload.session_id)
        user_turn = await store_retry(store.add_message)("user", payload.content, payload.session_id)
        request = PipelineRequest(
            user_text=payload.content,
            session_history=history,
            session_id=payload.session_id,
            language_override=payload.language,
        )
        result = await pipeline.respond(request, remember=False)
        assistant_turn = await store_retry(store.add_message)("assistant", result.text, payload.session_id)
        if result.outcome in ("ok", "parse_fallback"):
            pipeline.remember(request)
        logger.info(
            "message.exchanged",
            session_id=payload.session_id,
            outcome=result.outcome,
            topic=result.topic.value,
            latency_ms=result.latency_ms,
        )
        return MessageExchangeResponse(
            user_message=TurnModel.from_turn(user_turn),
            assistant_message=TurnModel.from_turn(assistant_turn),
            confidence_analysis=ConfidenceModel.from_analysis(result.confidence),
        )

    @app.get("/api/messages/{session_id}", response_model=List[TurnModel])
    async def list_messages(session_id: str, store: MessageStore = Depends(get_store)) -> List[TurnModel]:
        turns = await store_retry(store.get_messages)(session_id)
        return [TurnModel.from_turn(turn) for turn in turns]

    @app.delete("/api/messages/{session_id}", response_model=ClearResponse)
    async def clear_messages(session_id: str, store: MessageStore = Depends(get_store)) -> ClearResponse:
        await store_retry(store.clear_messages)(session_id)
        return ClearResponse(success=True)

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        from ashaai import __version__

        return {"status": "ok", "version": __version__, "environment": settings.environment}

    @app.head("/healthz")
    async def healthcheck_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/livez")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    return app


app = create_app()
