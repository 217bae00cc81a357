"""
Driving BoostLearner directly
=============================

The loop GBMTrainer runs, spelled out: string parameters, attached data,
one boosting round and one evaluation line per iteration, then a saved
and reloaded model.
"""

import io

import numpy as np
from sklearn.datasets import make_classification
from sklearn.model_selection import train_test_split

from jaxgbm import BoostLearner, DMatrix, LearnerConfig, SoftTreeBooster


def main():
    X, y = make_classification(n_samples=1000, n_features=10, random_state=0)
    X_train, X_test, y_train, y_test = train_test_split(X, y, random_state=0)
    dtrain, dtest = DMatrix(X_train, y_train), DMatrix(X_test, y_test)

    learner = BoostLearner(SoftTreeBooster(), LearnerConfig(nthread=4))
    for name, value in [
        ("loss_type", "2"),
        ("base_score", "0.5"),
        ("eval_metric", "logloss"),
        ("bst:max_depth", "3"),
        ("bst:eta", "0.3"),
    ]:
        learner.set_param(name, value)

    learner.set_data(dtrain, [dtrain, dtest], ["train", "test"])
    learner.init_trainer()
    learner.init_model()
    for iteration in range(10):
        learner.update_one_iter(iteration)
        learner.eval_one_iter(iteration)

    stream = io.BytesIO()
    learner.save_model(stream)
    stream.seek(0)

    restored = BoostLearner(SoftTreeBooster(), LearnerConfig(silent=True))
    restored.load_model(stream)
    same = np.allclose(learner.predict(dtest), restored.predict(dtest))
    print(f"saved {stream.getbuffer().nbytes} bytes, reload matches: {same}")


if __name__ == "__main__":
    main()
