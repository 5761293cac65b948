# mammomass/cli/predict.py

import argparse
import json

from mammomass.data import load_mass_raw, make_synthetic_masses
from mammomass.predict import load_trained_model, predict_dataframe


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run predictions with a trained mammomass model."
    )
    parser.add_argument(
        "--model-name",
        required=True,
        help="Name of the trained model directory under artifacts/pretrained/",
    )
    parser.add_argument(
        "--input",
        default=None,
        help="Mass CSV to score (raw layout). Without it, synthetic records are used.",
    )
    parser.add_argument(
        "--num-samples",
        type=int,
        default=5,
        help="How many records to predict on.",
    )
    return parser.parse_args()


def main():
    args = parse_args()

    loaded = load_trained_model(args.model_name)

    if args.input:
        records = load_mass_raw(args.input)
    else:
        records = make_synthetic_masses(n_samples=args.num_samples)
    records = records.head(args.num_samples)

    preds = predict_dataframe(loaded, records)

    output = {
        "model_name": args.model_name,
        "meta": loaded.meta,
        "n_samples": int(len(records)),
        "predictions": preds.to_dict(orient="records"),
    }
    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
