"""High-level gradient boosting trainer built on ``BoostLearner``."""

from __future__ import annotations

from dataclasses import dataclass, field
from os import PathLike
from typing import Literal

import numpy as np
from jax import Array

from jaxgbm.booster import BoosterConfig, SoftTreeBooster
from jaxgbm.data import DMatrix
from jaxgbm.learner import BoostLearner, LearnerConfig
from jaxgbm.losses import LossType


@dataclass
class TrainerConfig:
    """Configuration for boosting.

    Attributes:
        num_round: Number of boosting rounds.
        loss_type: Loss selector. None picks LINEAR_SQUARE for regression
            and LOGISTIC_CLASSIFY for classification.
        base_score: Global bias; a prior probability for logistic losses.
        eval_metric: Extra metrics to report besides the loss default.
        nthread: Threads for the per-example stages.
        verbose: Whether to print training progress.
        booster: Configuration of the soft tree booster.
    """
    num_round: int = 10
    loss_type: int | None = None
    base_score: float = 0.5
    eval_metric: tuple[str, ...] = ()
    nthread: int = 1
    verbose: bool = False
    booster: BoosterConfig = field(default_factory=BoosterConfig)


@dataclass
class TrainedGBM:
    """A trained gradient boosting model."""
    learner: BoostLearner
    history: list[str] = field(default_factory=list)

    def predict(self, X: np.ndarray | Array) -> np.ndarray:
        """Make predictions on new data.

        Args:
            X: Features, shape (n_samples, n_features).

        Returns:
            Predictions. For the squared loss: continuous values.
            For the logistic losses: probabilities.
        """
        return self.learner.predict(DMatrix(X))

    def predict_class(self, X: np.ndarray | Array, threshold: float = 0.5) -> np.ndarray:
        """Predict class labels for classification.

        Args:
            X: Features.
            threshold: Classification threshold.

        Returns:
            Class labels (0 or 1).
        """
        probs = self.predict(X)
        return (probs > threshold).astype(np.int32)

    def save(self, path: str | PathLike) -> None:
        with open(path, "wb") as fo:
            self.learner.save_model(fo)

    @classmethod
    def load(cls, path: str | PathLike) -> TrainedGBM:
        learner = BoostLearner(SoftTreeBooster(), LearnerConfig(silent=True))
        with open(path, "rb") as fi:
            learner.load_model(fi)
        return cls(learner=learner)


class GBMTrainer:
    """Gradient boosting trainer with soft oblivious trees.

    Example:
        >>> trainer = GBMTrainer(task="regression")
        >>> model = trainer.fit(X_train, y_train)
        >>> predictions = model.predict(X_test)
    """

    def __init__(
        self,
        task: Literal["regression", "classification"] = "regression",
        config: TrainerConfig | None = None,
    ):
        """Initialize trainer.

        Args:
            task: 'regression' or 'classification'.
            config: Training configuration. If None, uses defaults.
        """
        self.task = task
        self.config = config or TrainerConfig()

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        X_val: np.ndarray | None = None,
        y_val: np.ndarray | None = None,
    ) -> TrainedGBM:
        """Boost a model on the given data.

        Args:
            X: Training features, shape (n_samples, n_features).
            y: Training targets, shape (n_samples,).
            X_val: Optional validation features.
            y_val: Optional validation targets.

        Returns:
            Trained model.
        """
        config = self.config
        learner = BoostLearner(
            SoftTreeBooster(config.booster),
            LearnerConfig(silent=not config.verbose, nthread=config.nthread),
        )
        for name, value in self._params():
            learner.set_param(name, value)

        dtrain = DMatrix(X, y)
        evals, evnames = [dtrain], ["train"]
        if X_val is not None:
            evals.append(DMatrix(X_val, y_val))
            evnames.append("val")
        learner.set_data(dtrain, evals, evnames)

        learner.init_trainer()
        learner.init_model()
        history = []
        for iteration in range(config.num_round):
            learner.update_one_iter(iteration)
            history.append(learner.eval_one_iter(iteration))

        return TrainedGBM(learner=learner, history=history)

    def _params(self) -> list[tuple[str, str]]:
        """Learner parameters in their string form."""
        config = self.config
        loss_type = config.loss_type
        if loss_type is None:
            loss_type = (
                LossType.LOGISTIC_CLASSIFY
                if self.task == "classification"
                else LossType.LINEAR_SQUARE
            )
        params = [
            ("loss_type", str(int(loss_type))),
            ("base_score", repr(config.base_score)),
        ]
        params.extend(("eval_metric", name) for name in config.eval_metric)
        return params
