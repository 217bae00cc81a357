"""Model parameters of the learner and their fixed-size binary block.

The block is written right after the booster's own bytes when a model is
saved, and read back whole when it is loaded:

    float32 base_score | int32 loss_type | int32 num_feature | int32 reserved[16]

little-endian, 76 bytes, no padding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO

import numpy as np

from jaxgbm.losses import check_loss_type

NUM_RESERVED = 16

PARAM_DTYPE = np.dtype(
    [
        ("base_score", "<f4"),
        ("loss_type", "<i4"),
        ("num_feature", "<i4"),
        ("reserved", "<i4", (NUM_RESERVED,)),
    ]
)
PARAM_NBYTES = PARAM_DTYPE.itemsize  # 76


@dataclass
class ModelParam:
    """Global bias, loss selector and feature bound of a model.

    Attributes:
        base_score: Global bias added to the raw ensemble output. Before
            calibration a logistic model holds a prior probability here,
            after calibration its logit.
        loss_type: Raw loss selector, see ``jaxgbm.losses.LossType``.
        num_feature: Upper bound on the feature count of attached datasets.
        reserved: Opaque words kept verbatim across save/load.
        calibrated: Whether ``adjust_base`` already ran (not persisted; a
            loaded block is always calibrated).
    """

    base_score: float = 0.5
    loss_type: int = 0
    num_feature: int = 0
    reserved: tuple[int, ...] = (0,) * NUM_RESERVED
    calibrated: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        # Keep the in-memory value exactly what the block can hold.
        self.base_score = float(np.float32(self.base_score))
        self.reserved = tuple(int(v) for v in self.reserved)
        if len(self.reserved) != NUM_RESERVED:
            raise ValueError(
                f"reserved must hold {NUM_RESERVED} words, got {len(self.reserved)}"
            )

    def set_param(self, name: str, value: str) -> None:
        """Set a parameter from its string form; unknown names are ignored."""
        if name in ("base_score", "loss_type") and self.calibrated:
            raise RuntimeError(f"cannot set {name} after base_score calibration")
        if name == "base_score":
            self.base_score = float(np.float32(value))
        elif name == "loss_type":
            self.loss_type = int(value)
        elif name == "bst:num_feature":
            self.num_feature = int(value)

    def adjust_base(self) -> None:
        """Calibrate ``base_score`` into raw-score space, exactly once.

        For the logistic losses the prior probability is replaced by its
        logit, ``-log(1 / base_score - 1)``. The squared loss keeps the
        value as is.

        Raises:
            ValueError: Unknown loss selector, or a logistic base score
                outside the open interval (0, 1).
            RuntimeError: The parameters are already calibrated.
        """
        if self.calibrated:
            raise RuntimeError("base_score is already calibrated")
        loss = check_loss_type(self.loss_type)
        if loss.is_logistic:
            if not 0.0 < self.base_score < 1.0:
                raise ValueError(
                    "sigmoid range constrain: base_score must lie in (0, 1), "
                    f"got {self.base_score}"
                )
            prior = np.float32(self.base_score)
            self.base_score = float(-np.log(np.float32(1.0) / prior - np.float32(1.0)))
        self.calibrated = True

    def to_bytes(self) -> bytes:
        """Encode the parameter block."""
        block = np.zeros((), dtype=PARAM_DTYPE)
        block["base_score"] = self.base_score
        block["loss_type"] = self.loss_type
        block["num_feature"] = self.num_feature
        block["reserved"] = self.reserved
        return block.tobytes()

    @classmethod
    def from_bytes(cls, buffer: bytes) -> ModelParam:
        """Decode a parameter block; the result counts as calibrated."""
        if len(buffer) != PARAM_NBYTES:
            raise ValueError(
                f"model parameter block needs {PARAM_NBYTES} bytes, got {len(buffer)}"
            )
        block = np.frombuffer(buffer, dtype=PARAM_DTYPE)[0]
        return cls(
            base_score=float(block["base_score"]),
            loss_type=int(block["loss_type"]),
            num_feature=int(block["num_feature"]),
            reserved=tuple(int(v) for v in block["reserved"]),
            calibrated=True,
        )

    def write(self, stream: IO[bytes]) -> None:
        stream.write(self.to_bytes())

    @classmethod
    def read(cls, stream: IO[bytes]) -> ModelParam:
        return cls.from_bytes(stream.read(PARAM_NBYTES))
