"""
jaxgbm: Second order gradient boosting with JAX.

The learner turns predictions and labels into per-example gradients and
hessians, and a booster grows the ensemble from them:

- Squared loss and two logistic losses with a calibrated global bias
- Per-example gradient/hessian computation over a static thread partition
- A prediction buffer that caches each attached row's raw score
- Soft oblivious trees fitted to the second order objective with optax
- Models saved as booster bytes plus a fixed 76-byte parameter block

Quick Start:
    >>> from jaxgbm import GBMTrainer, TrainerConfig
    >>> trainer = GBMTrainer(task="classification", config=TrainerConfig(num_round=20))
    >>> model = trainer.fit(X_train, y_train, X_val, y_val)
    >>> probs = model.predict(X_test)

Learner API:
    >>> from jaxgbm import BoostLearner, DMatrix
    >>> learner = BoostLearner()
    >>> learner.set_param("loss_type", "1")
    >>> learner.set_data(dtrain, [dtrain], ["train"])
    >>> learner.init_trainer()
    >>> learner.init_model()
    >>> learner.update_one_iter(0)
"""

from jaxgbm._version import __version__

# High-level API (recommended)
from jaxgbm.training import GBMTrainer, TrainedGBM, TrainerConfig

# Learner
from jaxgbm.booster import BoosterConfig, SoftTreeBooster
from jaxgbm.core import Booster, DataMatrix
from jaxgbm.data import DMatrix
from jaxgbm.learner import BoostLearner, LearnerConfig, ModelParam
from jaxgbm.losses import (
    LossType,
    first_order_gradient,
    pred_transform,
    second_order_gradient,
)

# Low-level components
from jaxgbm.routing import soft_routing
from jaxgbm.splits import (
    AxisAlignedSplit,
    AxisAlignedSplitParams,
    HyperplaneSplit,
    HyperplaneSplitParams,
)
from jaxgbm.structures import ObliviousTree, ObliviousTreeParams

__all__ = [
    "__version__",
    # High-level API
    "GBMTrainer",
    "TrainedGBM",
    "TrainerConfig",
    # Learner
    "BoostLearner",
    "LearnerConfig",
    "ModelParam",
    "DMatrix",
    "Booster",
    "DataMatrix",
    "BoosterConfig",
    "SoftTreeBooster",
    # Losses
    "LossType",
    "pred_transform",
    "first_order_gradient",
    "second_order_gradient",
    # Splits
    "AxisAlignedSplit",
    "AxisAlignedSplitParams",
    "HyperplaneSplit",
    "HyperplaneSplitParams",
    # Routing
    "soft_routing",
    # Structures
    "ObliviousTree",
    "ObliviousTreeParams",
]
