"""FastAPI app: contact import, natural-language search and conflict checks.

Handlers are thin: they validate the payload, call a pipeline and map typed
errors to HTTP responses.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from io import BytesIO
from typing import Any

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from relevance.conflicts import SourceProfile, detect_all_conflicts
from relevance.contacts import Contact
from relevance.duplicates import DuplicateGroup
from relevance.intent import SCENARIOS
from relevance.tags import generate_searchable_tags, generate_tags
from relevance.taxonomy import TAXONOMY_VERSION

from .config import settings
from .db import get_session
from .logging_config import setup_logging
from .parsers import ParseError, parse_file
from .pipelines.ingest import ContactImportError, import_contacts, resolve_and_save
from .pipelines.search import get_suggestions, search_by_scenario, search_contacts
from .store import ContactStore, SqlContactStore, StoreError

logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_EXTENSIONS = {'.csv', '.xlsx', '.xlsm'}


# Pydantic request/response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class ImportRequest(BaseModel):
    """Bulk contact import request."""
    contacts: list[dict[str, Any]] = Field(min_length=1)


class ImportResponse(BaseModel):
    """Contact import response."""
    status: str
    imported: int
    skipped: list[dict[str, Any]] = Field(default_factory=list)
    duplicate_groups: list[dict[str, Any]] = Field(default_factory=list)
    message: str


class DuplicateGroupDTO(BaseModel):
    """Duplicate group as returned by an import."""
    contacts: list[dict[str, Any]] = Field(min_length=2)
    reasons: list[str] = Field(default_factory=list)


class ResolveDuplicatesRequest(BaseModel):
    """Resolve pending duplicate groups."""
    action: str = Field(description="consolidate, separate or review")
    groups: list[DuplicateGroupDTO] = Field(min_length=1)


class ResolveDuplicatesResponse(BaseModel):
    """Resolution outcome."""
    status: str
    action: str
    saved: int
    contact_ids: list[str]


class SearchRequest(BaseModel):
    """Natural-language search request."""
    query: str = Field(min_length=1, max_length=500)
    near: str | None = Field(default=None, description="Caller location for 'near me' queries")
    limit: int | None = Field(default=None, ge=1, le=500)
    include_trace: bool = False


class ScenarioSearchRequest(BaseModel):
    """Structured scenario search request."""
    scenario: str
    value: str = Field(min_length=1, max_length=255)
    location: str | None = None
    limit: int | None = Field(default=None, ge=1, le=500)
    include_trace: bool = False


class SourceProfileDTO(BaseModel):
    """One source's view of a contact."""
    source: str = Field(min_length=1)
    profile: dict[str, Any]


class ConflictRequest(BaseModel):
    """Compare two source profiles of one contact."""
    contact_name: str = "Contact"
    source_a: SourceProfileDTO
    source_b: SourceProfileDTO


class ConflictResponse(BaseModel):
    """Conflict questions, highest priority first."""
    contact_name: str
    conflicts: list[dict[str, Any]]
    total: int


class TagRequest(BaseModel):
    """Contact record to tag."""
    contact: dict[str, Any]


class TagResponse(BaseModel):
    """Generated tags."""
    tags: list[str]
    searchable_tags: list[dict[str, Any]]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    setup_logging()
    logger.info(f"{settings.app_name} API starting up")

    yield

    logger.info(f"{settings.app_name} API shutting down")


app = FastAPI(
    title="BeeTagged Contact Search",
    version=settings.version,
    description="Contact import, auto-tagging and natural-language relevance search",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],  # Frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=str(exc)).model_dump(),
    )


# Exception handlers
@app.exception_handler(ParseError)
async def parse_error_handler(request, exc: ParseError):
    """Handle upload parsing errors."""
    logger.error(f"Parse error: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, "parse_error", exc)


@app.exception_handler(ContactImportError)
async def import_error_handler(request, exc: ContactImportError):
    """Handle rejected import batches."""
    logger.error(f"Import error: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, "import_error", exc)


@app.exception_handler(StoreError)
async def store_error_handler(request, exc: StoreError):
    """Handle persistence failures."""
    logger.error(f"Store error: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "store_error", exc)


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Handle invalid scenario names, resolution actions and filters."""
    logger.warning(f"Invalid request: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, "invalid_request", exc)


async def get_contact_store(session: AsyncSession = Depends(get_session)) -> ContactStore:
    """Contact store dependency bound to the request's session."""
    return SqlContactStore(session)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=settings.version)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.version,
        "taxonomy_version": TAXONOMY_VERSION,
        "scenarios": list(SCENARIOS),
        "endpoints": {
            "health": "GET /health",
            "import": "POST /users/{user_id}/contacts/import",
            "upload": "POST /users/{user_id}/contacts/upload",
            "resolve_duplicates": "POST /users/{user_id}/contacts/resolve-duplicates",
            "search": "POST /users/{user_id}/search",
            "scenario_search": "POST /users/{user_id}/search/scenario",
            "suggestions": "GET /users/{user_id}/search/suggestions",
            "conflicts": "POST /conflicts/detect",
            "tags": "POST /tags/generate",
            "docs": "GET /docs",
        },
    }


def _import_response(result) -> ImportResponse:
    pending = sum(len(g.contacts) for g in result.duplicates)
    return ImportResponse(
        status="success",
        imported=len(result.saved),
        skipped=result.skipped,
        duplicate_groups=[g.to_dict() for g in result.duplicates],
        message=(
            f"Imported {len(result.saved)} contacts; "
            f"{pending} contacts in {len(result.duplicates)} duplicate groups need review"
        ),
    )


@app.post(
    "/users/{user_id}/contacts/import",
    response_model=ImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_contact_records(
    user_id: str,
    request: ImportRequest,
    store: ContactStore = Depends(get_contact_store),
) -> ImportResponse:
    """Import contacts from JSON records.

    Records are cleaned, auto-tagged and checked for duplicates within the
    batch. Duplicate groups are returned unsaved for resolution.
    """
    logger.info(f"Received {len(request.contacts)} contact records for user {user_id}")
    result = await import_contacts(store, user_id, request.contacts)
    return _import_response(result)


@app.post(
    "/users/{user_id}/contacts/upload",
    response_model=ImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_contacts(
    user_id: str,
    file: UploadFile = File(..., description="Contact export (CSV or Excel)"),
    store: ContactStore = Depends(get_contact_store),
) -> ImportResponse:
    """Import contacts from a CSV or Excel export (LinkedIn exports included).

    Raises:
        HTTPException: For a missing filename or unsupported file type
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    file_ext = '.' + file.filename.rsplit('.', 1)[-1].lower() if '.' in file.filename else ''
    if file_ext not in ALLOWED_UPLOAD_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type. Allowed: {', '.join(sorted(ALLOWED_UPLOAD_EXTENSIONS))}",
        )

    logger.info(f"Received contact upload for user {user_id}: {file.filename}")
    try:
        content = await file.read()
        records = parse_file(BytesIO(content), file.filename)
        result = await import_contacts(store, user_id, records)
    finally:
        await file.close()

    return _import_response(result)


@app.post(
    "/users/{user_id}/contacts/resolve-duplicates",
    response_model=ResolveDuplicatesResponse,
)
async def resolve_duplicate_groups(
    user_id: str,
    request: ResolveDuplicatesRequest,
    store: ContactStore = Depends(get_contact_store),
) -> ResolveDuplicatesResponse:
    """Consolidate or keep separate the duplicate groups from an import."""
    groups = [
        DuplicateGroup(contacts=[Contact.from_record(r) for r in group.contacts])
        for group in request.groups
    ]
    saved = await resolve_and_save(store, user_id, groups, request.action)
    return ResolveDuplicatesResponse(
        status="success",
        action=request.action,
        saved=len(saved),
        contact_ids=[c.id for c in saved],
    )


@app.post("/users/{user_id}/search")
async def search(
    user_id: str,
    request: SearchRequest,
    store: ContactStore = Depends(get_contact_store),
) -> dict[str, Any]:
    """Natural-language contact search ("marketing people in Seattle")."""
    response = await search_contacts(
        store, user_id, request.query, near=request.near, limit=request.limit
    )
    return response.to_dict(include_trace=request.include_trace)


@app.post("/users/{user_id}/search/scenario")
async def scenario_search(
    user_id: str,
    request: ScenarioSearchRequest,
    store: ContactStore = Depends(get_contact_store),
) -> dict[str, Any]:
    """Structured search: job-search, travel, skill-help, function-referral,
    industry-networking or interest."""
    response = await search_by_scenario(
        store,
        user_id,
        request.scenario,
        request.value,
        location=request.location,
        limit=request.limit,
    )
    return response.to_dict(include_trace=request.include_trace)


@app.get("/users/{user_id}/search/suggestions")
async def search_suggestions(
    user_id: str,
    limit: int | None = None,
    store: ContactStore = Depends(get_contact_store),
) -> dict[str, list[str]]:
    """Most common companies, locations, titles, skills and tags."""
    return await get_suggestions(store, user_id, limit)


@app.post("/conflicts/detect", response_model=ConflictResponse)
async def detect_conflicts(request: ConflictRequest) -> ConflictResponse:
    """Questions for fields where two sources disagree about a contact."""
    profile_a = SourceProfile.from_payload(request.source_a.source, request.source_a.profile)
    profile_b = SourceProfile.from_payload(request.source_b.source, request.source_b.profile)
    questions = detect_all_conflicts(profile_a, profile_b, request.contact_name)
    return ConflictResponse(
        contact_name=request.contact_name,
        conflicts=[q.to_dict() for q in questions],
        total=len(questions),
    )


@app.post("/tags/generate", response_model=TagResponse)
async def generate_contact_tags(request: TagRequest) -> TagResponse:
    """Preview the tags a contact record would receive."""
    contact = Contact.from_record(request.contact)
    return TagResponse(
        tags=generate_tags(contact),
        searchable_tags=[t.to_dict() for t in generate_searchable_tags(contact)],
    )
