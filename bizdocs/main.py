"""
FastAPI application exposing the document engine.
Renders invoices, ledger statements and analytics reports, and optionally
persists them to local object storage.
"""

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from typing import Optional
import os
import re
import logging
from sqlalchemy.orm import Session

from bizdocs.config import EngineConfig, load_config
from bizdocs.database import SessionLocal, get_db, init_db
from bizdocs.models import DocumentArtifact
from bizdocs.api_schemas import (
    ErrorResponse,
    InvoiceDocumentRequest,
    LedgerDocumentRequest,
    OrgProfileResponse,
    ReportDocumentRequest,
    StoredDocumentResponse,
)
from bizdocs.services.artifact_storage import LocalArtifactStorage, unique_document_name
from bizdocs.services.errors import DocumentGenerationError
from bizdocs.services.invoice_pdf import render_invoice
from bizdocs.services.ledger_pdf import render_ledger
from bizdocs.services.org_profile_cache import OrgProfileCache, resolve_org_profile
from bizdocs.services.report_pdf import render_report
from bizdocs.services.store_profile import make_profile_fetcher
from bizdocs.services.watermark import client_watermark_ref

logger = logging.getLogger("bizdocs.api")

app = FastAPI(
    title="Business Documents Service",
    description="Invoice, ledger and analytics report PDF rendering",
    version="1.0.0"
)

_cors_origins_env = os.getenv("CORS_ALLOW_ORIGINS")
if _cors_origins_env and _cors_origins_env.strip() != "*":
    _cors_origins = [o.strip() for o in _cors_origins_env.split(",") if o.strip()]
else:
    _cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_config = load_config()
_profile_cache = OrgProfileCache(make_profile_fetcher(SessionLocal), ttl=_config.profile_ttl)
_storage = LocalArtifactStorage(_config.storage_base_path, _config.public_base_url)


def get_config() -> EngineConfig:
    return _config


def get_profile_cache() -> OrgProfileCache:
    """Process-wide organization profile cache (overridable in tests)."""
    return _profile_cache


def get_storage() -> LocalArtifactStorage:
    return _storage


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    init_db()


@app.exception_handler(DocumentGenerationError)
async def generation_error_handler(request: Request, exc: DocumentGenerationError):
    logger.error("document_generation_failed", extra={"path": request.url.path, "error": str(exc)})
    body = ErrorResponse(error_code="GENERATION_FAILED", message=str(exc))
    return JSONResponse(status_code=500, content=body.model_dump())


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "bizdocs",
        "version": "1.0.0"
    }


@app.get("/api/org-profile", response_model=OrgProfileResponse)
def get_org_profile(refresh: bool = False, cache: OrgProfileCache = Depends(get_profile_cache)):
    """The organization profile documents are currently printed with."""
    if refresh:
        cache.get(force_refresh=True)
    profile = resolve_org_profile(None, cache)
    return OrgProfileResponse(
        profile=profile,
        cache_state=cache.state.value,
        fetched_at=cache.fetched_at.isoformat() if cache.fetched_at else None,
    )


def _safe_filename_part(value: Optional[str]) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "-", value or "").strip("-")
    return cleaned[:60] or "document"


def _watermark_for(requested: Optional[str], config: EngineConfig) -> Optional[str]:
    """Client refs are screened; the configured default is trusted as-is."""
    if requested and requested.strip():
        return client_watermark_ref(requested, config.watermark_hosts)
    return config.default_watermark


def _deliver(
    kind: str,
    subject_ref: Optional[str],
    data: bytes,
    persist: bool,
    db: Session,
    storage: LocalArtifactStorage,
):
    prefix = f"{kind}-{_safe_filename_part(subject_ref)}"
    if not persist:
        return Response(
            content=data,
            media_type="application/pdf",
            headers={"Content-Disposition": f'inline; filename="{prefix}.pdf"'},
        )

    stored = storage.upload(data, f"{kind}/{unique_document_name(prefix)}")
    artifact = DocumentArtifact(
        kind=kind,
        subject_ref=subject_ref,
        storage_path=stored.path,
        public_url=stored.public_url,
        byte_size=stored.byte_size,
    )
    db.add(artifact)
    db.commit()
    db.refresh(artifact)
    logger.info("document_persisted", extra={"kind": kind, "artifact_id": artifact.id, "path": stored.path})
    return StoredDocumentResponse(
        artifact_id=artifact.id,
        kind=kind,
        subject_ref=subject_ref,
        storage_path=stored.path,
        public_url=stored.public_url,
        byte_size=stored.byte_size,
    )


@app.post("/api/documents/invoice", response_model=None)
def create_invoice_document(
    request: InvoiceDocumentRequest,
    persist: bool = False,
    db: Session = Depends(get_db),
    cache: OrgProfileCache = Depends(get_profile_cache),
    storage: LocalArtifactStorage = Depends(get_storage),
    config: EngineConfig = Depends(get_config),
):
    data = render_invoice(
        request.invoice,
        request.customer,
        request.order_items,
        request.org_profile,
        profile_cache=cache,
        watermark=_watermark_for(request.watermark, config),
        asset_dir=config.asset_dir,
        fetch_timeout=config.fetch_timeout_seconds,
    )
    return _deliver("invoice", request.invoice.invoice_number, data, persist, db, storage)


@app.post("/api/documents/ledger", response_model=None)
def create_ledger_document(
    request: LedgerDocumentRequest,
    persist: bool = False,
    db: Session = Depends(get_db),
    cache: OrgProfileCache = Depends(get_profile_cache),
    storage: LocalArtifactStorage = Depends(get_storage),
    config: EngineConfig = Depends(get_config),
):
    data = render_ledger(
        request.customer,
        request.transactions,
        request.date_range,
        request.opening_balance,
        _watermark_for(request.watermark, config),
        profile_cache=cache,
        asset_dir=config.asset_dir,
        fetch_timeout=config.fetch_timeout_seconds,
    )
    subject = request.customer.id or request.customer.display_name
    return _deliver("ledger", subject, data, persist, db, storage)


@app.post("/api/documents/report", response_model=None)
def create_report_document(
    request: ReportDocumentRequest,
    persist: bool = False,
    db: Session = Depends(get_db),
    cache: OrgProfileCache = Depends(get_profile_cache),
    storage: LocalArtifactStorage = Depends(get_storage),
    config: EngineConfig = Depends(get_config),
):
    data = render_report(
        request.sales_summary,
        request.health_metrics,
        request.turnover_rows,
        request.aging_rows,
        request.ledger_summary,
        request.period,
        _watermark_for(request.watermark, config),
        profile_cache=cache,
        asset_dir=config.asset_dir,
        fetch_timeout=config.fetch_timeout_seconds,
    )
    return _deliver("report", request.period, data, persist, db, storage)
