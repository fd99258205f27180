from fastapi import FastAPI, Request, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse
from typing import Any, Dict, Optional
import logging

from ..ahnentafel import AhnentafelService
from ..config import Config, load_config
from ..descendancy import DescendancyService
from ..errors import NotFoundError, QueryCancelled, StoreError
from ..pedigree import PedigreeService
from ..storage import Storage


def _bind_services(app: FastAPI, store: Any) -> None:
    pedigree = PedigreeService(store)
    app.state.store = store
    app.state.descendancy = DescendancyService(store)
    app.state.pedigree = pedigree
    app.state.ahnentafel = AhnentafelService(pedigree)


def _generations(request: Request, generations: Optional[int]) -> Optional[int]:
    # the services clamp; missing or non-positive values take the configured default
    if generations is None or generations <= 0:
        return request.app.state.config.default_generations
    return generations


def create_app(store: Any = None, cfg: Optional[Config] = None) -> FastAPI:
    """Build the query API. Without an explicit `store`, an SQLite Storage
    rooted at the configured data directory is opened at startup."""
    cfg = cfg or load_config()
    logging.basicConfig(level=cfg.log_level)
    app = FastAPI(title="lineage-py")
    app.state.config = cfg
    if store is not None:
        _bind_services(app, store)

    @app.on_event("startup")
    def _open_storage_on_startup():
        if getattr(app.state, "store", None) is not None:
            return
        _bind_services(app, Storage(cfg.data_dir))
        app.state.owns_store = True
        logging.info("Storage opened at %s", str(cfg.data_dir))

    @app.on_event("shutdown")
    def _close_storage_on_shutdown():
        if getattr(app.state, "owns_store", False):
            app.state.store.close()

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    async def _store_failed(request: Request, exc: StoreError):
        logging.error("store failure on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=503, content={"detail": "record store unavailable"})

    @app.exception_handler(QueryCancelled)
    async def _cancelled(request: Request, exc: QueryCancelled):
        return JSONResponse(status_code=503, content={"detail": "query cancelled"})

    @app.get("/api/person/{pid}")
    def api_person(request: Request, pid: str) -> Dict[str, Any]:
        p = request.app.state.store.get_person(pid)
        if p is None:
            raise HTTPException(status_code=404, detail="Person not found")
        d = p.to_dict()
        d["birth_date"] = p.birth_date.to_dict() if p.birth_date else None
        d["death_date"] = p.death_date.to_dict() if p.death_date else None
        return d

    @app.get("/api/descendancy/{pid}")
    def api_descendancy(request: Request, pid: str, generations: Optional[int] = None) -> Dict[str, Any]:
        result = request.app.state.descendancy.get_descendancy(pid, _generations(request, generations))
        return result.to_dict()

    @app.get("/api/pedigree/{pid}")
    def api_pedigree(request: Request, pid: str, generations: Optional[int] = None) -> Dict[str, Any]:
        result = request.app.state.pedigree.get_pedigree(pid, _generations(request, generations))
        return result.to_dict()

    @app.get("/api/ahnentafel/{pid}")
    def api_ahnentafel(request: Request, pid: str, generations: Optional[int] = None, format: str = Query("json")):
        if format not in ("json", "text"):
            raise HTTPException(status_code=400, detail=f"Invalid format: {format}; valid formats are 'json' or 'text'")
        service: AhnentafelService = request.app.state.ahnentafel
        result = service.get_ahnentafel(pid, _generations(request, generations))
        if format == "text":
            return PlainTextResponse(service.render_text(result))
        return result.to_dict()

    return app


app = create_app()
