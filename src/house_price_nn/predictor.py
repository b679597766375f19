"""
Predictor facade: record in, price out.

Pipeline: encode -> normalize -> forward -> denormalize. The predictor owns a
ModelStore and never raises from predict(); failures come back as a
PredictionResult carrying the error.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import httpx

from .config import Settings, get_settings
from .exceptions import ModelNotReadyError, PredictionComputationError, PredictorException
from .model import ModelState, ModelStore, Source, forward_propagation
from .preprocessing import (
    RecordLike,
    build_feature_frame,
    denormalize_prediction,
    encode_features,
    feature_vector_to_dict,
    normalize_features,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionResult:
    """Outcome of one prediction: a price, or the error that prevented it."""
    price: Optional[float] = None
    error: Optional[PredictorException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class HousePricePredictor:
    """
    Neural network house price predictor.

    Usage:
        predictor = HousePricePredictor()
        if await predictor.initialize('model_parameters.json', 'normalization.json'):
            result = predictor.predict(record)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.settings = settings or get_settings()
        self.alpha = self.settings.leaky_relu_alpha
        self.store = ModelStore(client=client, timeout=self.settings.request_timeout_seconds)

    @property
    def state(self) -> ModelState:
        return self.store.state

    def is_ready(self) -> bool:
        return self.store.is_ready()

    async def initialize(
        self,
        parameters_source: Optional[Source] = None,
        normalization_source: Optional[Source] = None
    ) -> bool:
        """
        Load model parameters and normalization stats.

        Sources default to the configured locations. Returns True only when
        both documents loaded; details of a failure are in self.store.errors.
        """
        if parameters_source is None:
            parameters_source = self.settings.model_parameters_source
        if normalization_source is None:
            normalization_source = self.settings.normalization_source

        ready = await self.store.initialize(parameters_source, normalization_source)
        if ready:
            logger.info("✓ Predictor initialized successfully")
        return ready

    def _not_ready(self) -> PredictionResult:
        error = ModelNotReadyError(self.store.state.value)
        logger.warning(f"⚠️  {error.message}")
        return PredictionResult(error=error)

    def _failed(self, e: Exception) -> PredictionResult:
        logger.exception(f"❌ Error during prediction: {e}")
        error = PredictionComputationError(f"{type(e).__name__}: {e}")
        error.__cause__ = e
        return PredictionResult(error=error)

    def predict(self, record: RecordLike) -> PredictionResult:
        """
        Predict the price of one house.

        Args:
            record: FeatureRecord or mapping with the same keys

        Returns:
            PredictionResult with .price set on success, .error otherwise
        """
        if not self.is_ready():
            return self._not_ready()

        try:
            # Step 1: Encode record
            features = encode_features(record)
            logger.debug(f"Encoded features: {feature_vector_to_dict(features)}")

            # Step 2: Normalize input
            X = normalize_features(features, self.store.normalization)

            # Step 3: Forward propagation
            normalized_prediction = forward_propagation(X, self.store.parameters, self.alpha)

            # Step 4: Denormalize output
            price = denormalize_prediction(normalized_prediction[0][0], self.store.normalization)
        except Exception as e:
            return self._failed(e)

        return PredictionResult(price=float(price))

    def predict_batch(self, records: Iterable[RecordLike]) -> List[PredictionResult]:
        """
        Predict prices for many houses with one forward pass over the batch.

        A failure anywhere in the batch fails every record in it.
        """
        records = list(records)
        if not self.is_ready():
            failure = self._not_ready()
            return [failure] * len(records)
        if not records:
            return []

        try:
            features = build_feature_frame(records).to_numpy()
            X = normalize_features(features, self.store.normalization)
            normalized_predictions = forward_propagation(X, self.store.parameters, self.alpha)
            prices = denormalize_prediction(normalized_predictions[:, 0], self.store.normalization)
        except Exception as e:
            failure = self._failed(e)
            return [failure] * len(records)

        return [PredictionResult(price=float(price)) for price in prices]
