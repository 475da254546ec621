from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from dotenv import load_dotenv

from wayfarer.config import settings
from wayfarer.journey.engine import create_engine
from wayfarer.journey.normalize import normalize_itinerary
from wayfarer.providers.client import RapidApiClient
from wayfarer.types import JourneyRequest
from wayfarer.utils.dates import to_iso_date
from wayfarer.obs.middleware import ObservabilityMiddleware
from wayfarer.obs.metrics import get_metrics_snapshot
from wayfarer.obs.logger import log_event

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log_event("startup", env=settings.APP_ENV, live_providers=bool(settings.RAPIDAPI_KEY))
    if not settings.RAPIDAPI_KEY:
        log_event("startup", level="WARNING", detail="RAPIDAPI_KEY not set; live providers will return no options")

    app.state.client = RapidApiClient()
    app.state.engine = create_engine(app.state.client)

    yield

    # Shutdown
    await app.state.client.aclose()
    log_event("shutdown")


app = FastAPI(
    title="Wayfarer Journey Resolver",
    version="1.0.0",
    lifespan=lifespan
)
app.add_middleware(ObservabilityMiddleware)


@app.get("/")
async def root():
    return {
        "service": "Wayfarer Journey Resolver",
        "version": "1.0.0",
        "status": "running",
        "features": [
            "Rail, flight and local-transfer providers",
            "Flight fallback for waitlisted rail routes",
            "Hub routing for minor locations",
            "Always-valid journey output",
        ]
    }


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "wayfarer"}


@app.get("/metrics")
async def metrics(request: Request):
    # State is missing when the app runs without its lifespan (bare TestClient)
    client = getattr(request.app.state, "client", None)
    engine = getattr(request.app.state, "engine", None)

    snapshot = get_metrics_snapshot()
    snapshot.update({
        "circuit_breakers": client.breaker_states() if client else [],
        "location_caches": engine.cache_stats() if engine else {},
    })
    return snapshot


@app.post("/journey")
async def resolve_journey(body: JourneyRequest, request: Request):
    iso = to_iso_date(body.date, tz=settings.TZ)
    if not iso:
        raise HTTPException(status_code=422, detail=f"Unrecognised travel date: {body.date!r}")
    body = body.model_copy(update={"date": iso})

    journey = await request.app.state.engine.resolve(body)
    return journey.model_dump(by_alias=True, mode="json")


@app.post("/itinerary/normalize")
async def normalize_narrative(payload: dict):
    """Guard for the narrative generator's output: always returns a usable itinerary."""
    destination = payload.get("destination") or ""
    itinerary = normalize_itinerary(payload.get("itinerary"), destination, payload.get("journey"))
    return itinerary.model_dump(by_alias=True, mode="json")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.APP_ENV == "dev")
