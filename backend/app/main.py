from fastapi import FastAPI, Depends, Request, status
from fastapi.responses import JSONResponse

from backend.app import schemas
from backend.app.auth import verify_api_key
from backend.app.metrics import RequestLoggingMiddleware
from backend.app.summary import AggregationError, get_summary
from shared.database import EventStore, get_event_store, event_store

app = FastAPI(
    title="User Event Dashboard API",
    description="Aggregated user event statistics for the analytics dashboard",
    version="1.0.0",
)

app.add_middleware(RequestLoggingMiddleware)


@app.on_event("shutdown")
async def shutdown_event():
    event_store.dispose()


@app.exception_handler(AggregationError)
async def aggregation_error_handler(request: Request, exc: AggregationError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=schemas.ErrorResponse(error=exc.message, details=exc.details).model_dump()
    )


@app.get(
    "/analytics",
    response_model=schemas.AnalyticsSummary,
    responses={500: {"model": schemas.ErrorResponse}},
)
async def get_analytics(
        store: EventStore = Depends(get_event_store),
        api_key: str = Depends(verify_api_key)
):
    """
    Get the dashboard summary.

    Runs the eight event aggregations (event types, events over the last
    seven days, hourly activity, subscription status, platform, feature usage
    by subscription, environment and retention) and returns them in one payload.
    An empty event store yields empty lists and a zeroed retention record.
    Requires valid API key authentication.
    """
    return await get_summary(store)


@app.get("/")
def root():
    return {
        "message": "User Event Dashboard API",
        "version": "1.0.0",
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
