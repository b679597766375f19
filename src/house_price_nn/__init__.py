"""
House Price Neural Network Predictor

Inference engine for a pre-trained feedforward price model with:
- One-hot feature encoding in a fixed training column order
- Z-score normalization from stored training statistics
- 4-layer dense forward pass with Leaky-ReLU activations
- FastAPI deployment
"""

from .predictor import HousePricePredictor, PredictionResult
from .preprocessing import FeatureRecord

__version__ = "1.0.0"

__all__ = ["HousePricePredictor", "PredictionResult", "FeatureRecord", "__version__"]
