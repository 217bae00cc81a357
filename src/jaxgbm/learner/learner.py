"""Boosting learner: turns predictions and labels into gradients for the booster."""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Sequence

import numpy as np

from jaxgbm.booster import SoftTreeBooster
from jaxgbm.core.protocols import Booster, DataMatrix
from jaxgbm.learner.buffer import BufferArena, BufferRange
from jaxgbm.learner.evaluation import EvalSet
from jaxgbm.learner.parallel import parallel_for
from jaxgbm.learner.params import ModelParam
from jaxgbm.losses import LossType, check_loss_type, get_loss


@dataclass
class LearnerConfig:
    """Runtime options of the learner (never persisted).

    Attributes:
        silent: Suppress progress output.
        nthread: Number of threads for the per-example stages.
    """
    silent: bool = False
    nthread: int = 1


class BoostLearner:
    """Gradient boosting learner for regression and binary classification.

    The learner owns the model parameters and the datasets, computes
    transformed predictions and gradients, and hands the gradients to the
    booster, which decides the tree structure.

    Example:
        >>> learner = BoostLearner()
        >>> learner.set_param("loss_type", "2")
        >>> learner.set_data(dtrain, [dtrain, dvalid], ["train", "valid"])
        >>> learner.init_trainer()
        >>> learner.init_model()
        >>> for i in range(10):
        ...     learner.update_one_iter(i)
        ...     learner.eval_one_iter(i)
    """

    def __init__(
        self,
        booster: Booster | None = None,
        config: LearnerConfig | None = None,
    ):
        """Initialize learner.

        Args:
            booster: Ensemble receiving gradients. Defaults to a
                ``SoftTreeBooster``.
            config: Runtime options. If None, uses defaults.
        """
        self.booster = booster if booster is not None else SoftTreeBooster()
        self.config = config or LearnerConfig()
        self.mparam = ModelParam()
        self.evaluator = EvalSet()
        self.train: DataMatrix | None = None
        self.evals: list[DataMatrix] = []
        self.evnames: list[str] = []
        self.arena = BufferArena()
        self.num_rounds = 0

    @property
    def attached(self) -> bool:
        return self.train is not None

    def set_data(
        self,
        train: DataMatrix,
        evals: Sequence[DataMatrix] = (),
        evnames: Sequence[str] = (),
    ) -> None:
        """Attach training and evaluation data.

        Raises ``num_feature`` to the widest dataset (it never shrinks) and
        assigns each dataset its range in the prediction buffer, then passes
        both sizes on to the booster.

        Args:
            train: Training data, placed at the head of the buffer.
            evals: Evaluation datasets, in reporting order.
            evnames: One name per evaluation dataset.
        """
        if len(evals) != len(evnames):
            raise ValueError(
                f"got {len(evnames)} names for {len(evals)} evaluation datasets"
            )
        arena = BufferArena()
        arena.allocate("train", train.num_row)
        num_feature = train.num_col
        for data, name in zip(evals, evnames):
            arena.allocate(name, data.num_row)
            num_feature = max(num_feature, data.num_col)

        self.train = train
        self.evals = list(evals)
        self.evnames = list(evnames)
        self.arena = arena

        if num_feature > self.mparam.num_feature:
            self.mparam.num_feature = num_feature
        self.booster.configure(self.mparam.num_feature, len(arena))
        if not self.config.silent:
            print(f"buffer_size={len(arena)}")

    def set_param(self, name: str, value: str) -> None:
        """Set a parameter by name.

        Every name is also forwarded to the booster; names neither side
        knows are ignored.
        """
        if name == "silent":
            self.config.silent = bool(int(value))
        elif name == "nthread":
            self.config.nthread = max(1, int(value))
        elif name == "eval_metric":
            self.evaluator.add_eval(value)
        self.mparam.set_param(name, value)
        self.booster.set_param(name, value)

    def init_trainer(self) -> None:
        """Prepare booster and metrics; called once before training."""
        self.booster.init_trainer()
        if check_loss_type(self.mparam.loss_type) is LossType.LOGISTIC_CLASSIFY:
            self.evaluator.add_eval("error")
        else:
            self.evaluator.add_eval("rmse")
        self.evaluator.init()

    def init_model(self) -> None:
        """Start a fresh model and calibrate ``base_score``."""
        self.booster.init_model()
        self.mparam.adjust_base()

    def save_model(self, stream: IO[bytes]) -> None:
        """Write the booster followed by the model parameter block."""
        self.booster.save(stream)
        self.mparam.write(stream)

    def load_model(self, stream: IO[bytes]) -> None:
        """Read a model written by ``save_model``, replacing the parameters."""
        self.booster.load(stream)
        self.mparam = ModelParam.read(stream)
        # Saved cache slots belong to the datasets of the saving run.
        if self.attached:
            self.booster.configure(self.mparam.num_feature, len(self.arena))

    def update_one_iter(self, iteration: int) -> None:
        """Run one boosting round on the training data.

        Args:
            iteration: Round number, for bookkeeping only.
        """
        if self.train is None:
            raise RuntimeError("update_one_iter called before set_data")
        if not self.mparam.calibrated:
            raise RuntimeError("update_one_iter called before init_model")
        preds = self.predict_buffer(self.train, 0)
        grad, hess = self.get_gradient(preds, self.train.labels)
        self.booster.boost_round(grad, hess, self.train.features, root_index=[])
        self.num_rounds += 1

    def eval_one_iter(self, iteration: int) -> str:
        """Score every evaluation dataset and report one line.

        Returns:
            ``[iteration]\\tname-metric:value...``
        """
        fields = [f"[{iteration}]"]
        for data, block in zip(self.evals, self._eval_ranges()):
            preds = self.predict_buffer(data, block.start)
            for metric, value in self.evaluator.eval(preds, data.labels):
                fields.append(f"{block.name}-{metric}:{value:.6f}")
        line = "\t".join(fields)
        if not self.config.silent:
            print(line)
        return line

    def predict(self, data: DataMatrix, buffer_offset: int = -1) -> np.ndarray:
        """Transformed predictions for any dataset.

        Args:
            data: Dataset to predict.
            buffer_offset: Start of the dataset's buffer range, or -1 for
                data that was never attached.
        """
        return self.predict_buffer(data, buffer_offset)

    def predict_buffer(self, data: DataMatrix, buffer_offset: int) -> np.ndarray:
        """Transformed predictions, one per row of ``data``.

        Row ``j`` reads buffer slot ``buffer_offset + j``; a negative offset
        skips the booster's cache.
        """
        num_row = data.num_row
        preds = np.empty(num_row, dtype=np.float32)
        features = data.features
        transform = get_loss(self.mparam.loss_type).transform
        base_score = np.float32(self.mparam.base_score)

        def body(begin: int, end: int) -> None:
            if buffer_offset >= 0:
                index = np.arange(buffer_offset + begin, buffer_offset + end)
            else:
                index = np.full(end - begin, -1)
            raw = np.asarray(
                self.booster.raw_output(features[begin:end], index), dtype=np.float32
            )
            preds[begin:end] = np.asarray(transform(base_score + raw))

        parallel_for(num_row, self.config.nthread, body)
        return preds

    def get_gradient(
        self,
        preds: np.ndarray,
        labels: np.ndarray,
    ) -> tuple[np.ndarray, np.ndarray]:
        """First and second order gradients given transformed predictions.

        Raises:
            ValueError: If ``preds`` and ``labels`` are not the same length.
        """
        preds = np.asarray(preds, dtype=np.float32)
        labels = np.asarray(labels, dtype=np.float32)
        if preds.shape != labels.shape:
            raise ValueError(
                f"got {preds.shape[0]} predictions for {labels.shape[0]} labels"
            )
        loss = get_loss(self.mparam.loss_type)
        grad = np.empty_like(preds)
        hess = np.empty_like(preds)

        def body(begin: int, end: int) -> None:
            grad[begin:end] = np.asarray(loss.gradient(preds[begin:end], labels[begin:end]))
            hess[begin:end] = np.asarray(loss.hessian(preds[begin:end], labels[begin:end]))

        parallel_for(preds.shape[0], self.config.nthread, body)
        return grad, hess

    def _eval_ranges(self) -> tuple[BufferRange, ...]:
        # The first range belongs to the training data.
        return self.arena.ranges[1:]
