"""
Model Module for House Price Prediction

This module handles:
1. Dense matrix primitives used by the forward pass
2. 4-layer forward propagation (Leaky-ReLU x3, linear output)
3. Loading and validating the parameter / normalization documents
4. ModelStore: the loaded/unloaded lifecycle of those documents

Key Technical Decisions:
- Weights are [in_dim, out_dim] so a layer is X @ W + b on row batches
- Layer shapes are checked once at load time, not on every forward pass
- Loaded arrays are frozen (read-only) so predictions cannot mutate them
- Load failures are logged and reported as False, never raised to the caller
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import httpx
import numpy as np
from pydantic import BaseModel, ValidationError

from .exceptions import ModelLoadError
from .preprocessing import FEATURE_COUNT

logger = logging.getLogger(__name__)

LEAKY_RELU_ALPHA = 0.01
N_LAYERS = 4

Source = Union[str, Path, Mapping[str, Any]]


# ==================== MATRIX PRIMITIVES ====================

def matrix_multiply(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Dense matrix product, [A.rows, A.cols] x [A.cols, B.cols] -> [A.rows, B.cols]."""
    return np.matmul(A, B)


def add_bias(matrix: np.ndarray, bias: np.ndarray) -> np.ndarray:
    """Add a [1, cols] bias row to every row of matrix."""
    return matrix + bias


def leaky_relu(z, alpha: float = LEAKY_RELU_ALPHA):
    """
    Leaky ReLU: z where z > 0, alpha * z elsewhere.

    Applied elementwise to arrays; a scalar input returns a float.
    """
    z = np.asarray(z, dtype=float)
    out = np.where(z > 0, z, alpha * z)
    return out if out.ndim else float(out)


# ==================== DATA HOLDERS ====================

@dataclass(frozen=True)
class ModelParameters:
    """Weights w1..w4 ([in_dim, out_dim]) and biases b1..b4 ([1, out_dim])."""
    w1: np.ndarray
    w2: np.ndarray
    w3: np.ndarray
    w4: np.ndarray
    b1: np.ndarray
    b2: np.ndarray
    b3: np.ndarray
    b4: np.ndarray

    @property
    def layers(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        return [(self.w1, self.b1), (self.w2, self.b2), (self.w3, self.b3), (self.w4, self.b4)]

    @property
    def architecture(self) -> List[int]:
        """Layer widths, input first, e.g. [14, 64, 32, 16, 1]."""
        return [self.w1.shape[0]] + [w.shape[1] for w, _ in self.layers]


@dataclass(frozen=True)
class NormalizationStats:
    """Training-set mean/std for the 14 inputs and the single output."""
    mean_x: np.ndarray
    std_x: np.ndarray
    mean_y: np.ndarray
    std_y: np.ndarray


# ==================== FORWARD PASS ====================

def forward_propagation(
    X: np.ndarray,
    parameters: ModelParameters,
    alpha: float = LEAKY_RELU_ALPHA
) -> np.ndarray:
    """
    Run normalized inputs through the network.

    Layers 1-3: Z = A @ W + b, A = leaky_relu(Z)
    Layer 4:    Z = A @ W + b, A = Z (linear regression output)

    Args:
        X: Normalized input rows, shape [n, 14]
        parameters: Loaded network weights and biases
        alpha: Negative slope of the Leaky-ReLU

    Returns:
        Normalized predictions, shape [n, 1]
    """
    A = X
    last = len(parameters.layers) - 1
    for i, (W, b) in enumerate(parameters.layers):
        Z = add_bias(matrix_multiply(A, W), b)
        A = Z if i == last else leaky_relu(Z, alpha)
    return A


# ==================== DOCUMENT SCHEMAS ====================

class ModelParametersDocument(BaseModel):
    """JSON layout of model_parameters.json."""
    w1: List[List[float]]
    w2: List[List[float]]
    w3: List[List[float]]
    w4: List[List[float]]
    b1: List[List[float]]
    b2: List[List[float]]
    b3: List[List[float]]
    b4: List[List[float]]


class NormalizationDocument(BaseModel):
    """JSON layout of normalization.json."""
    mean_x: List[float]
    std_x: List[float]
    mean_y: List[float]
    std_y: List[float]


def _frozen_array(values) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


def validate_model_parameters(parameters: ModelParameters) -> None:
    """
    Check the layer shape chain of a parameter set.

    Raises:
        ValueError: describing the first inconsistent layer
    """
    expected_rows = FEATURE_COUNT
    for i, (W, b) in enumerate(parameters.layers, start=1):
        if W.ndim != 2 or W.shape[0] != expected_rows:
            raise ValueError(f"w{i} has shape {W.shape}, expected ({expected_rows}, n)")
        if b.ndim != 2 or b.shape != (1, W.shape[1]):
            raise ValueError(f"b{i} has shape {b.shape}, expected (1, {W.shape[1]})")
        expected_rows = W.shape[1]
    if expected_rows != 1:
        raise ValueError(f"w{N_LAYERS} must have a single output column, got {expected_rows}")


def validate_normalization_stats(normalization: NormalizationStats) -> None:
    """
    Check normalization vector lengths.

    Zero std entries are not checked here; see find_zero_std_features.
    """
    for name in ('mean_x', 'std_x'):
        length = getattr(normalization, name).shape[0]
        if length != FEATURE_COUNT:
            raise ValueError(f"{name} has {length} entries, expected {FEATURE_COUNT}")
    for name in ('mean_y', 'std_y'):
        length = getattr(normalization, name).shape[0]
        if length != 1:
            raise ValueError(f"{name} has {length} entries, expected 1")


def find_zero_std_features(normalization: NormalizationStats) -> List[int]:
    """Indices of std_x entries equal to zero (would divide by zero)."""
    return [int(i) for i in np.flatnonzero(normalization.std_x == 0)]


def parse_model_parameters(document: Mapping[str, Any]) -> ModelParameters:
    parsed = ModelParametersDocument.model_validate(document)
    parameters = ModelParameters(**{
        name: _frozen_array(getattr(parsed, name))
        for name in ModelParametersDocument.model_fields
    })
    validate_model_parameters(parameters)
    return parameters


def parse_normalization_stats(document: Mapping[str, Any]) -> NormalizationStats:
    parsed = NormalizationDocument.model_validate(document)
    normalization = NormalizationStats(**{
        name: _frozen_array(getattr(parsed, name))
        for name in NormalizationDocument.model_fields
    })
    validate_normalization_stats(normalization)
    return normalization


# ==================== DOCUMENT FETCHING ====================

async def fetch_document(
    source: Source,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 15.0
) -> Any:
    """
    Fetch and decode one JSON document.

    Args:
        source: http(s) URL, filesystem path, or an already-parsed mapping
        client: Optional shared AsyncClient for URL sources
        timeout: Request timeout when a client has to be created

    Returns:
        Decoded JSON value
    """
    if isinstance(source, Mapping):
        return source

    location = str(source)
    if location.startswith(('http://', 'https://')):
        if client is not None:
            response = await client.get(location)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.get(location)
        response.raise_for_status()
        return response.json()

    text = await asyncio.to_thread(Path(location).read_text, encoding='utf-8')
    return json.loads(text)


def _describe(source: Source) -> str:
    return "<mapping>" if isinstance(source, Mapping) else str(source)


# ==================== MODEL STORE ====================

class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ModelStore:
    """
    Holds the loaded network parameters and normalization statistics.

    Each document moves UNLOADED -> LOADING -> READY or FAILED. The store is
    ready only when both are READY. Load errors are logged and kept in
    `errors`; they never propagate to the caller.
    """

    PARAMETERS = "model parameters"
    NORMALIZATION = "normalization stats"

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0):
        self.client = client
        self.timeout = timeout
        self.parameters: Optional[ModelParameters] = None
        self.normalization: Optional[NormalizationStats] = None
        self.errors: Dict[str, ModelLoadError] = {}
        self._states: Dict[str, ModelState] = {
            self.PARAMETERS: ModelState.UNLOADED,
            self.NORMALIZATION: ModelState.UNLOADED,
        }

    @property
    def state(self) -> ModelState:
        states = set(self._states.values())
        if ModelState.LOADING in states:
            return ModelState.LOADING
        if states == {ModelState.READY}:
            return ModelState.READY
        if ModelState.FAILED in states:
            return ModelState.FAILED
        return ModelState.UNLOADED

    def is_ready(self) -> bool:
        return (
            self.state is ModelState.READY
            and self.parameters is not None
            and self.normalization is not None
        )

    async def _load(self, resource: str, source: Source, parse) -> Optional[Any]:
        self._states[resource] = ModelState.LOADING
        self.errors.pop(resource, None)
        try:
            document = await fetch_document(source, client=self.client, timeout=self.timeout)
            loaded = parse(document)
        except (httpx.HTTPError, OSError, ValueError, TypeError) as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            reason = str(e) if not isinstance(e, ValidationError) else f"invalid document: {e}"
            error = ModelLoadError(resource, _describe(source), reason)
            error.__cause__ = e
            self.errors[resource] = error
            self._states[resource] = ModelState.FAILED
            logger.error(f"❌ Error loading {resource}: {error.message}")
            return None

        self._states[resource] = ModelState.READY
        logger.info(f"✓ {resource.capitalize()} loaded successfully from {_describe(source)}")
        return loaded

    async def load_parameters(self, source: Source) -> bool:
        """Load w1..w4 / b1..b4. Returns True on success."""
        self.parameters = None
        self.parameters = await self._load(self.PARAMETERS, source, parse_model_parameters)
        if self.parameters is not None:
            logger.info(f"  Architecture: {' -> '.join(map(str, self.parameters.architecture))}")
        return self.parameters is not None

    async def load_normalization(self, source: Source) -> bool:
        """Load mean_x / std_x / mean_y / std_y. Returns True on success."""
        self.normalization = None
        self.normalization = await self._load(self.NORMALIZATION, source, parse_normalization_stats)
        return self.normalization is not None

    async def initialize(self, parameters_source: Source, normalization_source: Source) -> bool:
        """Load both documents; True only if both succeed."""
        parameters_loaded, normalization_loaded = await asyncio.gather(
            self.load_parameters(parameters_source),
            self.load_normalization(normalization_source),
        )
        if parameters_loaded and normalization_loaded:
            logger.info("✓ Model store initialized successfully")
            return True
        logger.error(f"❌ Model store initialization failed (state: {self.state.value})")
        return False
