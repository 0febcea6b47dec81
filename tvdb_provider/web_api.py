#!/usr/bin/env python3
"""
TVDB Provider Web API

FastAPI application exposing the TV provider to the media client. All provider
routes live under `/tv`:

    GET  /tv                                           Provider definition
    GET  /tv/library/metadata/{ratingKey}              Single entity
    GET  /tv/library/metadata/{ratingKey}/children     Seasons or episodes, paged
    GET  /tv/library/metadata/{ratingKey}/grandchildren  All episodes of a show, paged
    GET  /tv/library/metadata/{ratingKey}/images       Every image of an entity
    POST /tv/library/metadata/matches                  Match hints to entities
    GET  /health                                       Liveness probe

Request context arrives in the client's headers (X-Plex-Language,
X-Plex-Country). Paging parameters (X-Plex-Container-Start/Size) are read from
the query string first and from headers otherwise.

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from .config_models import DEFAULT_CONFIG_PATH, AppConfig, ConfigurationValidator, ProviderConfig
from .match_service import MatchRequest, MatchService
from .metadata_service import (
    MetadataNotFoundError,
    MetadataOptions,
    MetadataService,
    PagingOptions,
    UnsupportedMetadataTypeError,
)
from .metadata_tvdb import TVDB, TVDBAPIError, TVDBNotFoundError
from .provider import TV_PROVIDER_BASE_PATH, TV_PROVIDER_TITLE, TV_PROVIDER_VERSION, get_tv_provider_response
from .rating_keys import InvalidRatingKeyError
from .utils import get_logger, setup_logging

# Global instances shared by the request handlers, created during startup
app_config: Optional[AppConfig] = None
tvdb_client: Optional[TVDB] = None
metadata_service: Optional[MetadataService] = None
match_service: Optional[MatchService] = None

logger = get_logger("tvdb_provider.api")


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """
    Load configuration, set up logging and create the TheTVDB client and services.

    The client's HTTP session is opened on the first request and closed on
    shutdown.

    Raises:
        SystemExit: If the configuration is invalid
    """
    global app_config, tvdb_client, metadata_service, match_service

    app_config = ConfigurationValidator().load_and_validate_config(os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH))
    setup_logging(log_level=app_config.server.log_level, log_dir=app_config.server.log_dir)

    tvdb_client = TVDB(
        api_key=app_config.tvdb.api_key,
        pin=app_config.tvdb.subscriber_pin,
        base_url=app_config.tvdb.base_url,
        timeout=app_config.tvdb.timeout_seconds,
        max_retries=app_config.tvdb.max_retries,
    )
    metadata_service = MetadataService(tvdb_client)
    match_service = MatchService(tvdb_client)

    logger.info(f"{TV_PROVIDER_TITLE} {TV_PROVIDER_VERSION} ready on {app_config.server.host}:{app_config.server.port}")

    try:
        yield
    finally:
        logger.info("Shutting down, closing TheTVDB session")
        await tvdb_client.close()


app = FastAPI(
    title="TVDB Provider",
    description="TheTVDB metadata provider for Plex custom metadata agents",
    version=TV_PROVIDER_VERSION,
    lifespan=lifespan
)

router = APIRouter(prefix=TV_PROVIDER_BASE_PATH)


# ==================== DEPENDENCIES ====================

def get_metadata_service() -> MetadataService:
    if metadata_service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return metadata_service


def get_match_service() -> MatchService:
    if match_service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return match_service


def get_provider_config() -> ProviderConfig:
    return app_config.provider if app_config else ProviderConfig()


def get_metadata_options(
    include_children: bool = Query(default=False, alias="includeChildren"),
    x_plex_language: Optional[str] = Header(default=None, alias="X-Plex-Language"),
    x_plex_country: Optional[str] = Header(default=None, alias="X-Plex-Country"),
    provider_config: ProviderConfig = Depends(get_provider_config),
) -> MetadataOptions:
    return MetadataOptions(
        language=x_plex_language or provider_config.default_language,
        country=x_plex_country or provider_config.default_country,
        include_children=include_children,
    )


def get_paging_options(
    start_query: Optional[int] = Query(default=None, alias="X-Plex-Container-Start"),
    size_query: Optional[int] = Query(default=None, alias="X-Plex-Container-Size"),
    start_header: Optional[int] = Header(default=None, alias="X-Plex-Container-Start"),
    size_header: Optional[int] = Header(default=None, alias="X-Plex-Container-Size"),
    provider_config: ProviderConfig = Depends(get_provider_config),
) -> PagingOptions:
    start = start_query if start_query is not None else start_header
    size = size_query if size_query is not None else size_header
    return PagingOptions(
        container_start=start if start is not None else 1,
        container_size=size if size is not None else provider_config.default_container_size,
    )


# ==================== MIDDLEWARE & ERRORS ====================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Incoming Request: {request.method} {request.url.path}")
    return await call_next(request)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


@app.exception_handler(InvalidRatingKeyError)
async def invalid_rating_key_handler(request: Request, exc: InvalidRatingKeyError):
    logger.warning(f"Rejected {request.url.path}: {exc}")
    return _error_response(400, exc)


@app.exception_handler(UnsupportedMetadataTypeError)
async def unsupported_type_handler(request: Request, exc: UnsupportedMetadataTypeError):
    logger.warning(f"Rejected {request.url.path}: {exc}")
    return _error_response(400, exc)


@app.exception_handler(MetadataNotFoundError)
async def metadata_not_found_handler(request: Request, exc: MetadataNotFoundError):
    logger.warning(f"Not found {request.url.path}: {exc}")
    return _error_response(404, exc)


@app.exception_handler(TVDBAPIError)
async def tvdb_error_handler(request: Request, exc: TVDBAPIError):
    if isinstance(exc, TVDBNotFoundError):
        logger.warning(f"TheTVDB has no record for {request.url.path}: {exc}")
        return _error_response(404, exc)
    logger.error(f"TheTVDB request failed for {request.url.path}: {exc}")
    return _error_response(502, exc)


# ==================== ROUTES ====================

@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("")
async def provider_definition() -> Dict[str, Any]:
    """MediaProvider definition the client registers."""
    return get_tv_provider_response()


@router.post("/library/metadata/matches")
async def match_metadata(
    match_request: MatchRequest,
    options: MetadataOptions = Depends(get_metadata_options),
    service: MatchService = Depends(get_match_service),
) -> Dict[str, Any]:
    response = await service.match(match_request, options)
    return response.to_wire()


@router.get("/library/metadata/{rating_key}")
async def get_metadata(
    rating_key: str,
    options: MetadataOptions = Depends(get_metadata_options),
    service: MetadataService = Depends(get_metadata_service),
) -> Dict[str, Any]:
    response = await service.get_metadata(rating_key, options)
    return response.to_wire()


@router.get("/library/metadata/{rating_key}/children")
async def get_children(
    rating_key: str,
    options: MetadataOptions = Depends(get_metadata_options),
    paging: PagingOptions = Depends(get_paging_options),
    service: MetadataService = Depends(get_metadata_service),
) -> Dict[str, Any]:
    response = await service.get_children(rating_key, options, paging)
    return response.to_wire()


@router.get("/library/metadata/{rating_key}/grandchildren")
async def get_grandchildren(
    rating_key: str,
    options: MetadataOptions = Depends(get_metadata_options),
    paging: PagingOptions = Depends(get_paging_options),
    service: MetadataService = Depends(get_metadata_service),
) -> Dict[str, Any]:
    response = await service.get_grandchildren(rating_key, options, paging)
    return response.to_wire()


@router.get("/library/metadata/{rating_key}/images")
async def get_images(
    rating_key: str,
    options: MetadataOptions = Depends(get_metadata_options),
    service: MetadataService = Depends(get_metadata_service),
) -> Dict[str, Any]:
    response = await service.get_images(rating_key, options)
    return response.to_wire()


app.include_router(router)
