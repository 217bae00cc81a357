"""Boosting learner: model parameters, gradients and the training loop step."""

from jaxgbm.learner.buffer import BufferArena, BufferRange
from jaxgbm.learner.evaluation import METRICS, EvalSet
from jaxgbm.learner.learner import BoostLearner, LearnerConfig
from jaxgbm.learner.params import PARAM_NBYTES, ModelParam

__all__ = [
    "BoostLearner",
    "LearnerConfig",
    "ModelParam",
    "PARAM_NBYTES",
    "BufferArena",
    "BufferRange",
    "EvalSet",
    "METRICS",
]
