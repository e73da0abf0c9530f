from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
import base64

from mastering import config
from mastering.chain.presets import CHAINS, TIER_CHAINS
from mastering.errors import DecodeFailure
from mastering.pipeline import MasteringPipeline

# Configure Logging
logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger("mastering")

app = FastAPI(
    title="Mastering Engine",
    version="1.0.0",
    description="Tiered offline audio mastering"
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

pipeline = MasteringPipeline()


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "mastering-engine"}


@app.get("/tiers")
async def list_tiers():
    """Tier tokens and the stages each chain runs."""
    return {
        "tiers": TIER_CHAINS,
        "chains": {
            name: [stage.describe() for stage in chain]
            for name, chain in CHAINS.items()
        },
    }


@app.post("/master")
async def master_track(request: Request, tier: str = "basic"):
    """
    Masters the uploaded audio (raw body, MIME from Content-Type).
    Returns JSON with base64-encoded preview (<= 60 s) and full WAVs.
    Tier gating, quotas and auth are the caller's business.
    """
    data = await request.body()
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"Upload exceeds {config.MAX_UPLOAD_MB:g} MB")

    mime = request.headers.get("content-type")
    try:
        result = await pipeline.master_async(data, tier=tier, mime=mime)
    except DecodeFailure as e:
        logger.info("Rejected upload (%s): %s", mime, e)
        status = 415 if e.unsupported_type else 422
        raise HTTPException(status_code=status, detail=str(e))

    return {
        "tier": result.tier,
        "preview": base64.b64encode(result.preview_bytes).decode("utf-8"),
        "full": base64.b64encode(result.full_bytes).decode("utf-8"),
        "sample_rate": result.sample_rate,
        "channels": result.channels,
        "full_length": result.full_length,
        "preview_length": result.preview_length,
        "applied_gain": result.applied_gain,
        "rerendered": result.rerendered,
        "degraded": result.degraded,
        "analysis": result.analysis.summary() if result.analysis else None,
    }


if __name__ == "__main__":
    uvicorn.run("mastering.main:app", host=config.HOST, port=config.PORT, reload=config.DEV)
