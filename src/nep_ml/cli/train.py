# src/nep_ml/cli/train.py
from __future__ import annotations
import argparse
import json
import structlog

from nep_common.logs import configure_logging
from nep_common.settings import load_settings
from nep_ml.errors import ElectionModelError
from nep_ml.model import predict, train_model
from nep_ml.sample_data import sample_training_set
from nep_ml.schemas import ModelType
from nep_ml.training_io import load_record_file, load_training_file

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Train an election outcome model and print its metrics.")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--data", help='JSON file with {"inputs": [...], "outputs": [...], "modelType": ...}')
    src.add_argument("--sample", action="store_true", help="train on the built-in 4-state sample set")
    ap.add_argument("--model-type", choices=["random-forest", "neural", "tensorflow"], default=None)
    ap.add_argument("--n_estimators", type=int, default=None)
    ap.add_argument("--max_depth", type=int, default=None)
    ap.add_argument("--epochs", type=int, default=None)
    ap.add_argument("--predict", nargs="*", default=[], metavar="RECORD_JSON",
                    help="input record files to score with the freshly trained model")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    overrides = {
        "rf_n_estimators": args.n_estimators,
        "rf_max_depth": args.max_depth,
        "nn_epochs": args.epochs,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    configure_logging(settings)

    try:
        if args.sample:
            inputs, outputs = sample_training_set()
            model_type = ModelType.RANDOM_FOREST
        else:
            inputs, outputs, model_type = load_training_file(args.data, settings.preferred_year)
        if args.model_type:
            model_type = ModelType(args.model_type)

        model = train_model(inputs, outputs, model_type=model_type, settings=settings)
        print(json.dumps({
            "model_type": model.model_type.value,
            "data_hash": model.summary.data_hash,
            "examples": model.summary.examples,
            "metrics": model.metrics.model_dump(),
        }, indent=2))

        for path in args.predict:
            record = load_record_file(path, settings.preferred_year)
            result = predict(model, record, preferred_year=settings.preferred_year)
            print(json.dumps({"input": path, "prediction": result.model_dump(mode="json")}, indent=2))
    except ElectionModelError as e:
        logger.error("training_failed", error=str(e))
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
