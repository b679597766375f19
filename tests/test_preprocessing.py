import numpy as np
import pytest
from pydantic import ValidationError

from house_price_nn.model import NormalizationStats
from house_price_nn.preprocessing import (
    FEATURE_COUNT,
    FEATURE_ORDER,
    FeatureRecord,
    build_feature_frame,
    denormalize_prediction,
    encode_features,
    feature_vector_to_dict,
    normalize_features,
    normalize_target,
)


def make_stats(mean_x=0.0, std_x=1.0, mean_y=0.0, std_y=1.0):
    return NormalizationStats(
        mean_x=np.full(FEATURE_COUNT, mean_x, dtype=float),
        std_x=np.full(FEATURE_COUNT, std_x, dtype=float),
        mean_y=np.array([mean_y]),
        std_y=np.array([std_y]),
    )


def test_encode_follows_training_column_order(house):
    features = encode_features(house)

    assert features.shape == (FEATURE_COUNT,)
    assert features.tolist() == [7420, 4, 2, 3, 1, 0, 0, 0, 1, 2, 1, 1, 0, 0]


def test_hotwater_and_ac_land_in_their_own_columns(house):
    house.update(hotwater=1, ac=0)
    labelled = feature_vector_to_dict(encode_features(house))

    assert labelled['hotwaterheating'] == 1
    assert labelled['airconditioning'] == 0
    assert FEATURE_ORDER.index('hotwaterheating') == 7
    assert FEATURE_ORDER.index('airconditioning') == 8


def test_encode_is_stable_for_identical_records(house):
    np.testing.assert_array_equal(encode_features(house), encode_features(dict(house)))


def test_encode_accepts_feature_record(house):
    np.testing.assert_array_equal(
        encode_features(FeatureRecord(**house)), encode_features(house)
    )


def test_furnished_to_semi_furnished_flips_only_positions_11_and_12(house):
    furnished = encode_features(house)
    house['furnishing'] = 'semi-furnished'
    semi = encode_features(house)

    changed = np.flatnonzero(furnished != semi).tolist()
    assert changed == [11, 12]
    assert semi[11:].tolist() == [0, 1, 0]


@pytest.mark.parametrize('furnishing, flags', [
    ('furnished', [1, 0, 0]),
    ('semi-furnished', [0, 1, 0]),
    ('unfurnished', [0, 0, 1]),
])
def test_furnishing_one_hot(house, furnishing, flags):
    house['furnishing'] = furnishing
    assert encode_features(house)[11:].tolist() == flags


@pytest.mark.parametrize('furnishing', ['Furnished', 'partly', '', None])
def test_unknown_furnishing_sets_all_flags_to_zero(house, furnishing):
    house['furnishing'] = furnishing
    assert encode_features(house)[11:].tolist() == [0, 0, 0]


def test_missing_furnishing_is_treated_as_unknown(house):
    del house['furnishing']
    assert encode_features(house)[11:].tolist() == [0, 0, 0]


def test_string_form_values_are_coerced(house):
    form = {key: str(value) for key, value in house.items()}
    form['bathrooms'] = '1.5'

    features = encode_features(form)

    assert features[0] == 7420.0
    assert features[2] == 1.5


def test_missing_numeric_field_is_rejected(house):
    del house['area']
    with pytest.raises(ValidationError):
        encode_features(house)


def test_build_feature_frame_encodes_each_row(house):
    other = dict(house, area=3000, furnishing='unfurnished')

    df = build_feature_frame([house, other])

    assert list(df.columns) == FEATURE_ORDER
    assert df.shape == (2, FEATURE_COUNT)
    assert df.iloc[1]['area'] == 3000
    assert df.iloc[1]['furnishingstatus_unfurnished'] == 1


def test_build_feature_frame_handles_no_records():
    df = build_feature_frame([])
    assert df.shape == (0, FEATURE_COUNT)


def test_normalize_returns_single_row_matrix():
    stats = make_stats(mean_x=1.0, std_x=2.0)
    features = np.arange(FEATURE_COUNT, dtype=float)

    X = normalize_features(features, stats)

    assert X.shape == (1, FEATURE_COUNT)
    np.testing.assert_allclose(X[0], (features - 1.0) / 2.0)


def test_normalize_uses_per_feature_statistics():
    stats = NormalizationStats(
        mean_x=np.arange(FEATURE_COUNT, dtype=float),
        std_x=np.arange(1, FEATURE_COUNT + 1, dtype=float),
        mean_y=np.array([0.0]),
        std_y=np.array([1.0]),
    )
    features = np.full(FEATURE_COUNT, 20.0)

    X = normalize_features(features, stats)

    expected = [(20.0 - i) / (i + 1) for i in range(FEATURE_COUNT)]
    np.testing.assert_allclose(X[0], expected)


def test_normalize_keeps_batch_shape():
    stats = make_stats()
    batch = np.ones((3, FEATURE_COUNT))
    assert normalize_features(batch, stats).shape == (3, FEATURE_COUNT)


def test_denormalize_scales_and_shifts():
    stats = make_stats(mean_y=4766729.0, std_y=1870440.0)
    assert denormalize_prediction(0.5, stats) == 0.5 * 1870440.0 + 4766729.0


@pytest.mark.parametrize('price', [0.0, 1750000.0, 4766729.0, 13300000.0, -250.5])
def test_denormalize_inverts_target_normalization(price):
    stats = make_stats(mean_y=4766729.0, std_y=1870440.0)
    assert denormalize_prediction(normalize_target(price, stats), stats) == pytest.approx(price)
