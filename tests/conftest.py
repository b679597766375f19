import asyncio
import json

import numpy as np
import pytest

from house_price_nn.config import Settings
from house_price_nn.predictor import HousePricePredictor
from house_price_nn.preprocessing import FEATURE_COUNT


def make_parameters_document(w4=None):
    """Identity hidden layers, zero biases; the output layer sums its inputs by default."""
    eye = np.eye(FEATURE_COUNT)
    if w4 is None:
        w4 = np.ones((FEATURE_COUNT, 1))
    zeros = np.zeros((1, FEATURE_COUNT))
    return {
        'w1': eye.tolist(),
        'w2': eye.tolist(),
        'w3': eye.tolist(),
        'w4': np.asarray(w4).tolist(),
        'b1': zeros.tolist(),
        'b2': zeros.tolist(),
        'b3': zeros.tolist(),
        'b4': [[0.0]],
    }


def make_normalization_document(mean_y=0.0, std_y=1.0):
    return {
        'mean_x': [0.0] * FEATURE_COUNT,
        'std_x': [1.0] * FEATURE_COUNT,
        'mean_y': [mean_y],
        'std_y': [std_y],
    }


@pytest.fixture
def parameters_document():
    return make_parameters_document()


@pytest.fixture
def normalization_document():
    return make_normalization_document()


@pytest.fixture
def house():
    return {
        'area': 7420,
        'bedrooms': 4,
        'bathrooms': 2,
        'stories': 3,
        'mainroad': 1,
        'guestroom': 0,
        'basement': 0,
        'hotwater': 0,
        'ac': 1,
        'parking': 2,
        'prefarea': 1,
        'furnishing': 'furnished',
    }


@pytest.fixture
def house_feature_sum():
    # Sum of the encoded house above (furnished flag contributes 1)
    return 7420 + 4 + 2 + 3 + 1 + 0 + 0 + 0 + 1 + 2 + 1 + 1 + 0 + 0


@pytest.fixture
def model_files(tmp_path, parameters_document, normalization_document):
    parameters_path = tmp_path / 'model_parameters.json'
    normalization_path = tmp_path / 'normalization.json'
    parameters_path.write_text(json.dumps(parameters_document))
    normalization_path.write_text(json.dumps(normalization_document))
    return parameters_path, normalization_path


@pytest.fixture
def settings(model_files):
    parameters_path, normalization_path = model_files
    return Settings(
        model_parameters_source=str(parameters_path),
        normalization_source=str(normalization_path),
    )


@pytest.fixture
def ready_predictor(settings):
    predictor = HousePricePredictor(settings)
    assert asyncio.run(predictor.initialize())
    return predictor


@pytest.fixture
def make_parameters():
    return make_parameters_document


@pytest.fixture
def make_normalization():
    return make_normalization_document
