from contextlib import asynccontextmanager
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loopscope.api import loops
from loopscope.config import settings
from loopscope.core.fft import get_fft
from loopscope.core.key_detection import FRAME_SIZE

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", env=settings.APP_ENV, version="1.0.0")
    get_fft(FRAME_SIZE)
    log.info("fft_plan_ready", size=FRAME_SIZE)
    log.info("startup_complete")
    yield
    log.info("shutdown")


app = FastAPI(
    title="Loopscope",
    description="Tempo, key and waveform analysis for uploaded audio loops",
    version="1.0.0",
    lifespan=lifespan,
)

# The loop player front end posts uploads cross-origin; a plain
# "https://a.example,https://b.example" env value is split into a list
cors_origins = settings.CORS_ORIGINS
if isinstance(cors_origins, str):
    cors_origins = [o.strip() for o in cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(loops.router, prefix="/api/v1/loops", tags=["Loops"])


@app.get("/health", tags=["System"])
async def health():
    return {"status": "ok", "version": "1.0.0", "env": settings.APP_ENV}


@app.get("/", tags=["System"])
async def root():
    return {"name": "Loopscope API", "docs": "/docs", "health": "/health"}


def run():
    """Console entry point: serve the API on API_HOST:API_PORT."""
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
