"""
Fire-risk prediction from weather and vegetation conditions.

A small feed-forward regression network is trained on historical fire
occurrence patterns in Sumatra. Features are
[temperature (°C), humidity (%), rainfall (mm), vegetation density (%)],
the target is a risk score from 0 to 100.
"""
import math
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from sklearn.neural_network import MLPRegressor
from sklearn.preprocessing import StandardScaler

from ifire.errors import ModelNotReady
from ifire.image_handler import round_half_up
from ifire.logging_utils import get_logger
from ifire.models import RiskPrediction

logger = get_logger(__name__)

TRAINING_INPUTS = np.array([
    # High risk scenarios
    [35, 20, 5, 80],
    [38, 15, 3, 85],
    [34, 25, 8, 75],
    [36, 18, 4, 82],
    [32, 22, 10, 78],
    # Medium risk scenarios
    [30, 35, 15, 70],
    [28, 40, 20, 65],
    [31, 38, 18, 68],
    [29, 42, 22, 60],
    [27, 45, 25, 55],
    # Low risk scenarios
    [25, 55, 35, 50],
    [22, 60, 40, 45],
    [24, 58, 38, 48],
    [20, 65, 45, 40],
    [23, 62, 42, 43],
    # Mixed
    [33, 28, 12, 77],
    [26, 50, 30, 52],
    [37, 16, 6, 88],
    [28, 48, 28, 58],
    [31, 32, 16, 72],
], dtype=np.float64)

TRAINING_OUTPUTS = np.array([
    85, 95, 80, 88, 75,
    60, 55, 62, 52, 48,
    30, 20, 28, 18, 25,
    78, 35, 92, 38, 65,
], dtype=np.float64)

# Per-feature normalisers for the training-proximity distance.
FEATURE_SPANS = np.array([50.0, 100.0, 100.0, 100.0])


def risk_level(score: float) -> str:
    if score < 25:
        return "Low"
    elif score < 50:
        return "Medium"
    elif score < 75:
        return "High"
    else:
        return "Critical"


def proximity_confidence(features: np.ndarray) -> int:
    """Confidence from the distance to the closest training sample."""
    diffs = (TRAINING_INPUTS - features) / FEATURE_SPANS
    min_distance = float(np.sqrt((diffs ** 2).sum(axis=1)).min())
    return round_half_up(max(70.0, 95.0 - min_distance * 20))


def feature_importance(temperature: float, humidity: float,
                       rainfall: float, vegetation: float) -> Dict[str, int]:
    """Share (in %) each condition contributes to the risk.

    Hot, dry, rainless and densely vegetated conditions weigh
    30/30/20/20 at their extremes.
    """
    factors = {
        'temperature': min(max(temperature / 40, 0.0), 1.0) * 30,
        'humidity': max((100 - humidity) / 100, 0.0) * 30,
        'rainfall': max((50 - rainfall) / 50, 0.0) * 20,
        'vegetation': min(max(vegetation / 100, 0.0), 1.0) * 20,
    }
    total = sum(factors.values())
    if total <= 0:
        return {name: 0 for name in factors}
    return {name: round_half_up(value / total * 100) for name, value in factors.items()}


def confidence_range(risk_score: int) -> Tuple[int, int]:
    """Risk score plus or minus 15%, kept inside 0..100."""
    margin = round_half_up(risk_score * 0.15)
    return max(0, risk_score - margin), min(100, risk_score + margin)


class FireRiskModel:
    """
    Regression network: 4 inputs -> 16 -> 32 -> 16 -> 1 (ReLU, Adam).

    Inputs are standardised and the target is scaled to [0, 1] for training.
    """

    def __init__(self, epochs: int = 100, learning_rate: float = 0.01,
                 batch_size: int = 4, random_state: Optional[int] = None):
        self.epochs = epochs
        self.scaler = StandardScaler().fit(TRAINING_INPUTS)
        self.network = MLPRegressor(
            hidden_layer_sizes=(16, 32, 16),
            activation='relu',
            solver='adam',
            learning_rate_init=learning_rate,
            batch_size=batch_size,
            alpha=1e-3,
            shuffle=True,
            random_state=random_state,
        )
        self._trained = False
        self.loss_history: List[float] = []

    @property
    def ready(self) -> bool:
        return self._trained

    def train(self, on_epoch_end: Optional[Callable[[int, float], None]] = None) -> None:
        """
        Train on the built-in dataset.

        Args:
            on_epoch_end: Optional callback receiving (epoch, loss)
        """
        X = self.scaler.transform(TRAINING_INPUTS)
        y = TRAINING_OUTPUTS / 100.0

        logger.info("Training fire risk prediction model (%d epochs)", self.epochs)
        self.loss_history = []
        for epoch in range(self.epochs):
            self.network.partial_fit(X, y)
            loss = float(self.network.loss_)
            self.loss_history.append(loss)
            if on_epoch_end is not None:
                on_epoch_end(epoch, loss)
            if epoch % 20 == 0:
                logger.debug("Epoch %d: loss = %.4f", epoch, loss)

        self._trained = True
        logger.info("Model training complete, final loss %.4f", self.loss_history[-1] if self.loss_history else math.nan)

    def predict_risk(self, temperature: float, humidity: float,
                     rainfall: float, vegetation: float) -> RiskPrediction:
        """
        Predict the fire risk for one set of conditions.

        Raises:
            ModelNotReady: If train() has not completed
        """
        if not self._trained:
            raise ModelNotReady("Model not trained yet. Please train the model first.")

        features = np.array([temperature, humidity, rainfall, vegetation], dtype=np.float64)
        predicted = float(self.network.predict(self.scaler.transform(features[None, :]))[0]) * 100.0
        risk_score = round_half_up(max(0.0, min(100.0, predicted)))

        confidence = proximity_confidence(features)
        uncertainty = round_half_up((1 - confidence / 100) * 15)

        return RiskPrediction(
            risk_score=risk_score,
            confidence=confidence,
            uncertainty=uncertainty,
            risk_level=risk_level(risk_score),
            feature_importance=feature_importance(temperature, humidity, rainfall, vegetation),
            confidence_range=confidence_range(risk_score),
        )
