"""
FastAPI Service for House Price Prediction

REST API with:
- POST /api/v1/predict-price: Get price prediction for one house
- POST /api/v1/predict-price/batch: Get price predictions for many houses
- GET /health: Service health check
- Input type coercion with Pydantic
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, configure_logging, get_settings
from .exceptions import ModelNotReadyError
from .predictor import HousePricePredictor, PredictionResult
from .preprocessing import EXAMPLE_RECORD, FeatureRecord

logger = logging.getLogger(__name__)

# ==================== API MODELS (Request/Response Schemas) ====================

class PredictionRequest(FeatureRecord):
    """Request schema for a single price prediction."""
    model_config = ConfigDict(json_schema_extra={"example": EXAMPLE_RECORD})


class BatchPredictionRequest(BaseModel):
    """Request schema for batch price prediction."""
    records: List[FeatureRecord] = Field(..., description="Houses to price")


class PredictionResponse(BaseModel):
    """Response schema for price prediction."""
    predicted_price: float = Field(..., description="Predicted price")


class BatchPredictionResponse(BaseModel):
    predicted_prices: List[float] = Field(..., description="Predicted prices, in request order")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    model_loaded: bool
    model_state: str
    load_errors: Dict[str, str] = Field(default_factory=dict)
    uptime_seconds: Optional[float] = None

    model_config = ConfigDict(protected_namespaces=())


# ==================== HELPER FUNCTIONS ====================

def raise_for_result(result: PredictionResult) -> None:
    """Map a failed PredictionResult to the matching HTTP error."""
    if result.ok:
        return
    if isinstance(result.error, ModelNotReadyError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Model not loaded. Please check server logs."
        )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=result.error.message
    )


def get_predictor(request: Request) -> HousePricePredictor:
    return request.app.state.predictor


# ==================== FASTAPI APPLICATION ====================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    The model is loaded once at startup into a predictor owned by the app.
    A failed load keeps the service up and reports unhealthy.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.start_time = datetime.now()
        app.state.predictor = HousePricePredictor(settings)
        logger.info(f"Loading model from: {settings.model_parameters_source}, {settings.normalization_source}")
        if not await app.state.predictor.initialize():
            logger.error("❌ Model failed to load; predictions will return 503")
        yield

    app = FastAPI(
        title="House Price Prediction API",
        description="Neural network house price prediction service",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """
        Service health check endpoint.

        Returns:
        - Service status
        - Model loading state and any load errors
        - Uptime
        """
        predictor = get_predictor(request)
        uptime = (datetime.now() - request.app.state.start_time).total_seconds()

        return HealthResponse(
            status="healthy" if predictor.is_ready() else "unhealthy",
            model_loaded=predictor.is_ready(),
            model_state=predictor.state.value,
            load_errors={name: e.message for name, e in predictor.store.errors.items()},
            uptime_seconds=uptime
        )

    @app.post("/api/v1/predict-price", response_model=PredictionResponse, tags=["Prediction"])
    async def predict_price(payload: PredictionRequest, request: Request):
        """
        Predict a house price.

        Raises:
            503: Model not loaded
            422: Invalid input types
            500: Prediction error
        """
        result = get_predictor(request).predict(payload)
        raise_for_result(result)
        return PredictionResponse(predicted_price=result.price)

    @app.post("/api/v1/predict-price/batch", response_model=BatchPredictionResponse, tags=["Prediction"])
    async def predict_price_batch(payload: BatchPredictionRequest, request: Request):
        """Predict prices for several houses in one forward pass."""
        results = get_predictor(request).predict_batch(payload.records)
        for result in results:
            raise_for_result(result)
        return BatchPredictionResponse(predicted_prices=[r.price for r in results])

    # ==================== ERROR HANDLERS ====================

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        """Custom HTTP exception handler"""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.detail,
                "status_code": exc.status_code
            }
        )

    return app


app = create_app()


# ==================== MAIN (for local testing) ====================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)

    print("Starting House Price Prediction API...")
    print(f"API Documentation: http://localhost:{settings.api_port}/docs")
    print(f"Health Check: http://localhost:{settings.api_port}/health")

    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower()
    )
