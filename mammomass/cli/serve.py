# mammomass/cli/serve.py

import argparse
import os

import uvicorn

from mammomass import config
from mammomass.utils import get_logger

log = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve a mammomass model via FastAPI.")
    parser.add_argument(
        "--model-name",
        default="default_model",
        help="Trained model directory under artifacts/pretrained/ to load.",
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    # Fail before binding the port rather than answering 503 forever
    model_fp = config.PRETRAINED_DIR / args.model_name / "model.joblib"
    if not model_fp.exists():
        parser.error(
            f"no trained model at {model_fp}; "
            f"run mammomass-train --save-model-name {args.model_name} first"
        )

    # Tell mammomass.serve which model to load
    os.environ["MAMMOMASS_MODEL_NAME"] = args.model_name
    log.info("Serving %s on %s:%d", model_fp, args.host, args.port)

    uvicorn.run(
        "mammomass.serve:app",
        host=args.host,
        port=args.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
