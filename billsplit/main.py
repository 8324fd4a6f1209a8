# billsplit/main.py
# FastAPI entry point for billsplit: users, groups, contributions, payments
# and the group settle-up ("who owes whom") plan.

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv
load_dotenv()

from billsplit.db import Base, engine  # noqa: E402
from billsplit.utils.balance import InvalidContributionError, SettlementError  # noqa: E402

from billsplit.routers.users import router as users_router  # noqa: E402
from billsplit.routers.groups import router as groups_router  # noqa: E402
from billsplit.routers.contributions import router as contributions_router  # noqa: E402
from billsplit.routers.payments import router as payments_router  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

app = FastAPI(
    title="billsplit backend",
    description="Bill splitting backend: groups, contributions, payments and settle-up plans.",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(users_router,         prefix="/api/users",         tags=["Users"])
app.include_router(groups_router,        prefix="/api/groups",        tags=["Groups"])
app.include_router(contributions_router, prefix="/api/contributions", tags=["Contributions"])
app.include_router(payments_router,      prefix="/api/payments",      tags=["Payments"])


@app.exception_handler(InvalidContributionError)
async def _invalid_contribution_handler(request: Request, exc: InvalidContributionError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(SettlementError)
async def _settlement_error_handler(request: Request, exc: SettlementError):
    log.error("settle-up failed for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Settle-up calculation failed"})


@app.get("/")
def root():
    """Simple healthcheck."""
    return {"message": "billsplit backend is running", "docs": "/docs"}


@app.on_event("startup")
def _startup_create_tables():
    # Local/dev convenience; production schemas are managed by Alembic.
    if os.getenv("AUTO_CREATE_TABLES") == "1":
        Base.metadata.create_all(bind=engine)
        log.info("tables created (AUTO_CREATE_TABLES=1)")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("billsplit.main:app", host="0.0.0.0", port=8000, reload=False)
