# examples/mnist_example.py
"""
Train and evaluate a simple_nn network on the MNIST IDX files.

Expects the four files from the MNIST distribution, e.g.

    data/train-images-idx3-ubyte.gz  data/train-labels-idx1-ubyte.gz
    data/t10k-images-idx3-ubyte.gz   data/t10k-labels-idx1-ubyte.gz

Usage:
    python examples/mnist_example.py --data-dir data --epochs 3 --hidden 100
"""
from __future__ import annotations

import argparse
import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from simple_nn import MnistDataset, Trainer, TrainingConfig
from simple_nn.visualize import dump_weights, image_to_text


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Train a fully-connected network on MNIST")
    p.add_argument("--data-dir", default="data")
    p.add_argument("--epochs", type=int, default=5)
    p.add_argument("--rate", type=float, default=0.01, help="learning rate")
    p.add_argument("--hidden", type=int, nargs="*", default=[100],
                   help="hidden layer widths (logistic activations)")
    p.add_argument("--loss", default="softmax_cross_entropy",
                   choices=["mse", "cross_entropy", "softmax_cross_entropy"])
    p.add_argument("--limit", type=int, default=None, help="use only the first N training images")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--dump-weights", default=None, metavar="DIR",
                   help="write first-layer weight images to DIR after training")
    p.add_argument("--show", type=int, default=0, metavar="N",
                   help="print the first N training images as hex and exit")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def output_activation(loss: str) -> str:
    # The fused loss applies softmax itself; cross-entropy needs probabilities
    if loss == "softmax_cross_entropy":
        return "passthrough"
    if loss == "cross_entropy":
        return "softmax"
    return "logistic"


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(message)s")

    train_set = MnistDataset(os.path.join(args.data_dir, "train-images-idx3-ubyte.gz"),
                             os.path.join(args.data_dir, "train-labels-idx1-ubyte.gz"),
                             limit=args.limit)
    rows, cols = train_set.images.row_count, train_set.images.col_count

    if args.show:
        for i, (features, label) in zip(range(args.show), train_set):
            print(f"#{i} label={label}")
            print(image_to_text(features, rows, cols))
            print()
        train_set.close()
        return 0

    test_set = MnistDataset(os.path.join(args.data_dir, "t10k-images-idx3-ubyte.gz"),
                            os.path.join(args.data_dir, "t10k-labels-idx1-ubyte.gz"))

    shape = (train_set.feature_size, *args.hidden, 10)
    activations = ("logistic",) * len(args.hidden) + (output_activation(args.loss),)
    config = TrainingConfig(shape=shape, activations=activations, loss=args.loss,
                            learning_rate=args.rate, epochs=args.epochs, seed=args.seed)

    network = config.build_network()
    logging.info(network.summary())

    with train_set, test_set:
        trainer = Trainer(network, config)
        trainer.fit(train_set, test_set)
        metrics = trainer.evaluate(test_set)

    print(f"Test accuracy: {metrics['accuracy'] * 100:.2f}% ({metrics['count']} images)")

    if args.dump_weights:
        dump_weights(network, args.dump_weights, rows, cols)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
