"""MedSOS dispatch HTTP service.

Start with: uvicorn medsos_api.main:create_app --factory
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from medsos_dispatch.engine import DispatchEngine
from medsos_dispatch.errors import DispatchError
from medsos_dispatch.models import Coordinate, Responder, ResponderRole
from medsos_dispatch.settings import DispatchSettings

from .config import AUDIT_LOG_LIMIT, CORS_ORIGINS, DASHBOARD_LIMIT, DB_PATH, EXPORT_LIMIT, LOG_LEVEL
from .db import init_db, recent_audit, write_audit
from .reports import build_pdf_summary
from .schemas import (
    AvailabilityIn,
    ContactIn,
    DispatchIn,
    RequestIn,
    ResponderIn,
    candidate_out,
    contact_out,
    dashboard_out,
    grant_out,
    request_out,
    responder_out,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "NotFound": 404,
    "DuplicateId": 409,
    "InvalidTransition": 409,
    "ActiveRequestExists": 409,
    "InvalidCoordinate": 422,
    "InvalidAmount": 422,
    "InvalidRadius": 422,
    "InvalidResponder": 422,
    "InvalidProfile": 422,
}


def get_engine(request: Request) -> DispatchEngine:
    return request.app.state.engine


def audit(request: Request, action: str, subject_id: Optional[str], details: str = "") -> None:
    ip = request.client.host if request.client else "unknown"
    write_audit(request.app.state.db_path, action, subject_id, ip, details)


def create_app(engine: Optional[DispatchEngine] = None, db_path: Optional[Path] = None) -> FastAPI:
    app = FastAPI(title="MedSOS Dispatch API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine or DispatchEngine(settings=DispatchSettings.from_env())
    app.state.db_path = Path(db_path or DB_PATH)
    init_db(app.state.db_path)

    @app.exception_handler(DispatchError)
    async def dispatch_error_handler(request: Request, exc: DispatchError):
        status = ERROR_STATUS.get(exc.kind, 400)
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.kind, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc), "error": exc.kind})

    @app.post("/responders", status_code=201)
    def register_responder(body: ResponderIn, request: Request, engine: DispatchEngine = Depends(get_engine)):
        responder = Responder(
            responder_id=body.responder_id.strip(),
            name=body.name.strip(),
            contact_handle=body.contact_handle.strip(),
            role=ResponderRole.parse(body.role),
            location=Coordinate(body.latitude, body.longitude),
            specialty=(body.specialty or "").strip() or None,
            available=body.available,
            credit_points=body.credit_points,
        )
        engine.register_responder(responder)
        audit(request, "register_responder", responder.responder_id, f"role={responder.role.value}")
        return responder_out(responder)

    @app.get("/responders/{responder_id}")
    def get_responder(responder_id: str, engine: DispatchEngine = Depends(get_engine)):
        return responder_out(engine.get_responder(responder_id))

    @app.patch("/responders/{responder_id}/availability")
    def set_availability(
        responder_id: str, body: AvailabilityIn, request: Request, engine: DispatchEngine = Depends(get_engine)
    ):
        responder = engine.set_availability(responder_id, body.available)
        audit(request, "set_availability", responder_id, f"available={responder.available}")
        return responder_out(responder)

    @app.delete("/responders/{responder_id}")
    def deactivate_responder(responder_id: str, request: Request, engine: DispatchEngine = Depends(get_engine)):
        responder = engine.deactivate_responder(responder_id)
        audit(request, "deactivate_responder", responder_id)
        return responder_out(responder)

    @app.post("/requests", status_code=201)
    def create_request(body: RequestIn, request: Request, engine: DispatchEngine = Depends(get_engine)):
        emergency = engine.create_request(body.requester_id, Coordinate(body.latitude, body.longitude))
        audit(request, "create_request", emergency.request_id, f"requester={body.requester_id}")
        return request_out(emergency)

    @app.get("/requests/export/pdf")
    def export_requests_pdf(engine: DispatchEngine = Depends(get_engine)):
        requests = engine.requests.recent(EXPORT_LIMIT)
        grants = {}
        for r in requests:
            grant = engine.rewards.find(r.request_id)
            if grant is not None:
                grants[r.request_id] = grant
        content = build_pdf_summary(requests, grants)
        return StreamingResponse(
            io.BytesIO(content),
            media_type="application/pdf",
            headers={"Content-Disposition": "attachment; filename=medsos_requests_summary.pdf"},
        )

    @app.get("/requests/{request_id}")
    def get_request(request_id: str, engine: DispatchEngine = Depends(get_engine)):
        return request_out(engine.get_request(request_id))

    @app.post("/requests/{request_id}/dispatch")
    def dispatch(
        request_id: str,
        request: Request,
        body: Optional[DispatchIn] = None,
        engine: DispatchEngine = Depends(get_engine),
    ):
        radius = body.radius_km if body else None
        candidates = engine.dispatch(request_id, radius)
        emergency = engine.get_request(request_id)
        audit(request, "dispatch", request_id, f"radius_km={emergency.dispatch_radius_km};found={len(candidates)}")
        return {
            "request_id": request_id,
            "state": emergency.state.value,
            "radius_km": emergency.dispatch_radius_km,
            "candidates": [candidate_out(c) for c in candidates],
            "message": f"Found {len(candidates)} nearby responders" if candidates else "No responders nearby",
        }

    @app.post("/requests/{request_id}/contact")
    def mark_contacted(
        request_id: str, body: ContactIn, request: Request, engine: DispatchEngine = Depends(get_engine)
    ):
        contact = engine.mark_contacted(request_id, body.responder_id)
        audit(request, "mark_contacted", request_id, f"responder={body.responder_id}")
        return contact_out(contact)

    @app.post("/requests/{request_id}/resolve")
    def resolve(request_id: str, request: Request, engine: DispatchEngine = Depends(get_engine)):
        grant = engine.resolve(request_id)
        audit(request, "resolve", request_id, f"responder={grant.responder_id};points={grant.points}")
        return grant_out(grant)

    @app.get("/requests/{request_id}/reward")
    def get_reward(request_id: str, engine: DispatchEngine = Depends(get_engine)):
        engine.get_request(request_id)
        return grant_out(engine.get_grant(request_id))

    @app.post("/requests/{request_id}/abandon")
    def abandon(request_id: str, request: Request, engine: DispatchEngine = Depends(get_engine)):
        emergency = engine.abandon(request_id)
        audit(request, "abandon", request_id)
        return request_out(emergency)

    @app.get("/dashboard")
    def dashboard(engine: DispatchEngine = Depends(get_engine)):
        return dashboard_out(engine.dashboard(DASHBOARD_LIMIT))

    @app.get("/audit-logs")
    def audit_logs(request: Request):
        return recent_audit(request.app.state.db_path, AUDIT_LOG_LIMIT)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s: %(name)s - %(message)s")
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    run()
