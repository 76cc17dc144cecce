"""Command line entry for the face model: train / add / predict / reset / info."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from facelab.config import DEFAULT_STORAGE_ROOT, DEFAULT_VARIANT
from facelab.face.dataset import load_dataset_from_directory
from facelab.face.errors import FaceModelError
from facelab.face.lifecycle import LifecycleConfig, ModelLifecycleManager
from facelab.face.variant import Variant
from facelab.utils.image import read_image
from facelab.utils.log import get_logger, set_level

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Face recognition model: train, update, predict")
    parser.add_argument("--storage", "-s", default=DEFAULT_STORAGE_ROOT, help="directory holding the model file")
    parser.add_argument(
        "--variant",
        "-v",
        default=DEFAULT_VARIANT,
        type=str.upper,
        choices=[v.name for v in Variant],
        help=f"recognizer variant (default {DEFAULT_VARIANT})",
    )
    parser.add_argument("--verbose", action="store_true", help="log every inserted sample")
    sub = parser.add_subparsers(dest="command", required=True)

    p_train = sub.add_parser("train", help="full retrain from a <dataset>/<person>/<image> tree")
    p_train.add_argument("dataset", help="dataset root directory")

    p_add = sub.add_parser("add", help="add one face to an LBPH model")
    p_add.add_argument("image", help="face image path")
    p_add.add_argument("--label", "-l", type=int, required=True, help="person label")

    p_predict = sub.add_parser(
        "predict",
        help="identify faces (EIGEN/FISHER need --dataset: their face size is only known after training)",
    )
    p_predict.add_argument("images", nargs="+", help="face image paths")
    p_predict.add_argument("--dataset", "-d", default=None, help="retrain from this dataset tree before predicting")

    sub.add_parser("reset", help="delete the trained model")
    sub.add_parser("info", help="show model state")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)

    try:
        manager = ModelLifecycleManager(LifecycleConfig(storage_root=args.storage, variant=args.variant))
        state = manager.acquire(args.variant)

        if args.command == "train":
            dataset, names = load_dataset_from_directory(args.dataset)
            manager.train(dataset)
            logger.info(f"Labels: {json.dumps(names, ensure_ascii=False)}")
        elif args.command == "add":
            manager.incremental_train(args.image, args.label)
        elif args.command == "predict":
            if args.dataset:
                dataset, _ = load_dataset_from_directory(args.dataset)
                manager.train(dataset)
            for path in args.images:
                image = read_image(path)
                if image is None:
                    logger.warning(f"Cannot read image: {path}")
                    continue
                result = manager.predict(image)
                print(f"{path}\t{result.label}\t{result.confidence:.4f}")
        elif args.command == "reset":
            manager.reset()
        elif args.command == "info":
            size = state.canonical_size
            print(
                json.dumps(
                    {
                        "variant": state.variant.name,
                        "trained": state.trained,
                        "model_path": str(state.model_path),
                        "canonical_size": [size.width, size.height] if size else None,
                    }
                )
            )
    except FaceModelError as e:
        logger.error(str(e))
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
