"""
jaxgbm Quickstart
=================

Simple example using the high-level GBMTrainer API.
"""

import numpy as np
from sklearn.datasets import fetch_california_housing, load_breast_cancer
from sklearn.metrics import accuracy_score, r2_score
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler

from jaxgbm import BoosterConfig, GBMTrainer, TrainerConfig


def regression_example():
    """Regression example: California Housing."""
    print("=" * 60)
    print(" Regression: California Housing")
    print("=" * 60)

    data = fetch_california_housing()
    X, y = data.data, data.target

    # Soft splits are scale sensitive
    X = StandardScaler().fit_transform(X)

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=0.2, random_state=42
    )
    print(f"Train: {len(X_train)}, Test: {len(X_test)}, Features: {X.shape[1]}")

    trainer = GBMTrainer(
        task="regression",
        config=TrainerConfig(
            num_round=30,
            base_score=float(np.mean(y_train)),
            verbose=True,
            booster=BoosterConfig(max_depth=4, eta=0.3),
        ),
    )

    print("\nTraining...")
    model = trainer.fit(X_train, y_train, X_test, y_test)

    predictions = model.predict(X_test)
    r2 = r2_score(y_test, predictions)
    print(f"\nTest R²: {r2:.4f}")

    return r2


def classification_example():
    """Classification example: Breast Cancer."""
    print("\n" + "=" * 60)
    print(" Classification: Breast Cancer")
    print("=" * 60)

    data = load_breast_cancer()
    X, y = data.data, data.target.astype(np.float32)
    X = StandardScaler().fit_transform(X)

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=0.2, random_state=42
    )
    print(f"Train: {len(X_train)}, Test: {len(X_test)}, Features: {X.shape[1]}")

    trainer = GBMTrainer(
        task="classification",
        config=TrainerConfig(
            num_round=20,
            base_score=float(np.clip(np.mean(y_train), 0.01, 0.99)),
            eval_metric=("logloss",),
            verbose=True,
        ),
    )

    print("\nTraining...")
    model = trainer.fit(X_train, y_train, X_test, y_test)

    classes = model.predict_class(X_test)
    acc = accuracy_score(y_test, classes)
    print(f"\nTest Accuracy: {acc:.4f}")

    return acc


if __name__ == "__main__":
    regression_example()
    classification_example()
