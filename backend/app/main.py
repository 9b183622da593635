from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env file in project root
# backend/app/main.py -> backend -> project root
env_path = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(env_path)

from app.api.auth_routes import router as auth_router  # noqa: E402
from app.api.debt_routes import router as debt_router  # noqa: E402
from app.api.routes import router as api_router  # noqa: E402
from app.core.config import get_settings  # noqa: E402
from app.core.exceptions import PocketLedgerError  # noqa: E402
from app.core.logging import get_logger  # noqa: E402

logger = get_logger("pocketledger.main")

app = FastAPI(title="Pocket Ledger API", version="0.1.0")

settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(PocketLedgerError)
async def handle_pocketledger_error(request: Request, exc: PocketLedgerError) -> JSONResponse:
    logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred", "error": exc.message},
    )


app.include_router(api_router)
app.include_router(debt_router)
app.include_router(auth_router)
