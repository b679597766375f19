"""
Model validation and sanity checks

Usage:
    python validate_model.py [model_parameters.json] [normalization.json] [houses.csv]

houses.csv is optional: record columns plus a 'price' column.
"""
import asyncio
import sys
from typing import List, Optional

import pandas as pd

from house_price_nn.config import configure_logging, get_settings
from house_price_nn.evaluation import evaluate_predictor
from house_price_nn.model import find_zero_std_features
from house_price_nn.predictor import HousePricePredictor
from house_price_nn.preprocessing import EXAMPLE_RECORD, FEATURE_ORDER


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    parameters_source = argv[0] if len(argv) > 0 else settings.model_parameters_source
    normalization_source = argv[1] if len(argv) > 1 else settings.normalization_source
    houses_path = argv[2] if len(argv) > 2 else None

    print("=" * 80)
    print("MODEL VALIDATION & SANITY CHECKS")
    print("=" * 80)

    predictor = HousePricePredictor(settings)
    if not asyncio.run(predictor.initialize(parameters_source, normalization_source)):
        print("\n❌ Model failed to load:")
        for resource, error in predictor.store.errors.items():
            print(f"   {resource}: {error.message}")
        return 1

    parameters = predictor.store.parameters
    normalization = predictor.store.normalization

    print("\n" + "=" * 80)
    print("CHECK 1: ARCHITECTURE")
    print("=" * 80)
    print(f"\nLayer widths: {' -> '.join(map(str, parameters.architecture))}")
    for i, (W, b) in enumerate(parameters.layers, start=1):
        activation = "linear" if i == len(parameters.layers) else "leaky_relu"
        print(f"  Layer {i}: W{W.shape} b{b.shape} ({activation})")

    print("\n" + "=" * 80)
    print("CHECK 2: NORMALIZATION STATISTICS")
    print("=" * 80)
    print(f"\n{'Feature':>35} {'Mean':>14} {'Std':>14}")
    for name, mean, std in zip(FEATURE_ORDER, normalization.mean_x, normalization.std_x):
        print(f"{name:>35} {mean:>14,.4f} {std:>14,.4f}")
    print(f"{'price (target)':>35} {normalization.mean_y[0]:>14,.2f} {normalization.std_y[0]:>14,.2f}")

    zero_std = find_zero_std_features(normalization)
    if zero_std:
        print(f"\n⚠️  WARNING: zero std for {[FEATURE_ORDER[i] for i in zero_std]}")
        print("   Predictions will divide by zero for these features.")
    if normalization.std_y[0] == 0:
        print("\n⚠️  WARNING: zero std for the target; every prediction collapses to mean_y.")

    print("\n" + "=" * 80)
    print("CHECK 3: SAMPLE PREDICTION")
    print("=" * 80)
    result = predictor.predict(EXAMPLE_RECORD)
    if not result.ok:
        print(f"\n❌ {result.error.message}")
        return 1
    print(f"\nInput: {EXAMPLE_RECORD}")
    print(f"Predicted price: {result.price:,.2f}")

    if houses_path is not None:
        print("\n" + "=" * 80)
        print("CHECK 4: MODEL VS GLOBAL MEAN BASELINE")
        print("=" * 80)
        houses = pd.read_csv(houses_path)
        print(f"\nTotal rows: {len(houses):,}")
        try:
            metrics = evaluate_predictor(predictor, houses)
        except RuntimeError as e:
            print(f"\n❌ {e}")
            return 1

        for name, values in metrics.items():
            print(f"  {name.capitalize():<10} R²={values['r2']:.4f}, MAE={values['mae']:,.0f}, MAPE={values['mape']:.2f}%")

        if metrics['model']['mae'] > metrics['baseline']['mae']:
            print("\n⚠️  WARNING: Model is WORSE than the global mean baseline!")
        else:
            improvement = (1 - metrics['model']['mae'] / metrics['baseline']['mae']) * 100
            print(f"\n✓ Model beats baseline by {improvement:.1f}% MAE reduction")

    print("\n✓ All checks passed")
    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(main())
