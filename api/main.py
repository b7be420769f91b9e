from __future__ import annotations

import logging
from typing import Generator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.schemas import BulkPublishRequest, SearchRequest, SearchResponse
from db.session import get_session
from namebank.audit import record_publish_audit
from namebank.config import load_settings
from namebank.errors import ConfigurationError, TransactionFailure, UnsupportedLocale
from namebank.languages import LanguageDirectory
from namebank.publish import BulkPublisher
from namebank.read_paths import build_read_path
from namebank.search import NameSearch

_log = logging.getLogger(__name__)

settings = load_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Built once: the read path is a deployment-time choice
languages = LanguageDirectory(ttl_seconds=settings.language_cache_ttl)
name_search = NameSearch(build_read_path(settings.use_search_model), languages)
publisher = BulkPublisher(languages)


def get_db() -> Generator[Session, None, None]:
    # Wrap the existing contextmanager for FastAPI dependency injection
    with get_session() as s:
        yield s


def get_name_search() -> NameSearch:
    return name_search


def get_publisher() -> BulkPublisher:
    return publisher


app = FastAPI(title="Namebank API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
def _invalid_payload(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid payload", "details": details})


@app.exception_handler(UnsupportedLocale)
def _unsupported_locale(request: Request, exc: UnsupportedLocale) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ConfigurationError)
def _misconfigured(request: Request, exc: ConfigurationError) -> JSONResponse:
    _log.error("configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Server misconfigured"})


@app.exception_handler(TransactionFailure)
def _publish_failed(request: Request, exc: TransactionFailure) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "Bulk publish failed; no changes were saved", "rowIndex": exc.row_index},
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/names/search", response_model=SearchResponse, response_model_by_alias=True)
def search_names(
    body: SearchRequest,
    db: Session = Depends(get_db),
    search: NameSearch = Depends(get_name_search),
):
    page = search.search(
        db,
        text=body.search_text,
        locale=body.locale,
        page_size=body.page_size,
        page=body.page,
        cursor=body.cursor,
    )
    return page.to_dict()


@app.post("/names/bulk")
def bulk_publish(
    body: BulkPublishRequest,
    db: Session = Depends(get_db),
    pub: BulkPublisher = Depends(get_publisher),
):
    # The audit row commits with the batch; dry runs skip it
    result = pub.publish(
        db, body.to_rows(), dry_run=body.dry_run, source=body.source, before_commit=record_publish_audit
    )
    return result.to_dict()
