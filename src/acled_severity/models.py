from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.utils.validation import check_is_fitted

from acled_severity.config import EffectKey, NESTED_MODELS

logger = logging.getLogger(__name__)


class MeanEffectModel(RegressorMixin, BaseEstimator):
    """Additive mean-effect regressor with optional shrinkage.

    The global mean is fitted first. Then each effect in ``effects`` is fitted
    in turn as the per-group sum of the current residual divided by
    ``n_group + lam``. With ``lam=0`` this is the plain group mean of the
    residual. Larger ``lam`` pulls small groups toward zero.

    ``X`` is a DataFrame holding one column per effect key. At predict time a
    key value not seen during fit contributes nothing.
    """

    def __init__(self, effects: Sequence[str] = tuple(EffectKey.ALL), lam: float = 0.0):
        self.effects = effects
        self.lam = lam

    def _checked_effects(self) -> tuple[str, ...]:
        effects = tuple(self.effects)
        unknown = [e for e in effects if e not in EffectKey.ALL]
        if unknown:
            raise ValueError(f"Unknown effects {unknown}; expected a subset of {EffectKey.ALL}")
        if len(set(effects)) != len(effects):
            raise ValueError(f"Duplicate effects in {list(effects)}")
        if not np.isfinite(float(self.lam)) or float(self.lam) < 0:
            raise ValueError(f"lam must be a finite value >= 0, got {self.lam}")
        return effects

    @staticmethod
    def _check_columns(X: pd.DataFrame, effects: tuple[str, ...]) -> None:
        if not isinstance(X, pd.DataFrame):
            raise ValueError("X must be a pandas DataFrame with one column per effect key")
        missing = [e for e in effects if e not in X.columns]
        if missing:
            raise ValueError(f"X is missing effect key columns {missing}")

    def fit(self, X: pd.DataFrame, y) -> "MeanEffectModel":
        effects = self._checked_effects()
        self._check_columns(X, effects)
        y = np.asarray(y, dtype=float)
        if y.ndim != 1 or y.shape[0] != len(X):
            raise ValueError(f"y must be 1-D with {len(X)} rows, got shape {y.shape}")
        if y.size == 0:
            raise ValueError("Cannot fit on an empty training set")

        lam = float(self.lam)
        self.mu_ = float(np.mean(y))
        residual = y - self.mu_
        self.effects_: dict[str, pd.Series] = {}
        self.group_sizes_: dict[str, pd.Series] = {}
        for effect in effects:
            keys = X[effect].astype(str).to_numpy()
            grouped = pd.Series(residual).groupby(keys, sort=True)
            sums = grouped.sum()
            counts = grouped.size()
            estimate = sums / (counts + lam)
            self.effects_[effect] = estimate
            self.group_sizes_[effect] = counts
            residual = residual - estimate.reindex(keys).to_numpy()

        self.effect_order_ = effects
        self.n_features_in_ = len(effects)
        self.train_rmse_ = float(np.sqrt(np.mean(residual**2)))
        logger.debug(
            "Fitted mean-effect model effects=%s lam=%s mu=%.4f train_rmse=%.4f",
            list(effects),
            lam,
            self.mu_,
            self.train_rmse_,
        )
        return self

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        check_is_fitted(self, "effects_")
        self._check_columns(X, self.effect_order_)
        pred = np.full(len(X), self.mu_, dtype=float)
        for effect in self.effect_order_:
            keys = X[effect].astype(str).to_numpy()
            pred += self.effects_[effect].reindex(keys).fillna(0.0).to_numpy()
        return pred

    def effect_table(self, effect: str) -> pd.DataFrame:
        check_is_fitted(self, "effects_")
        if effect not in self.effects_:
            raise ValueError(f"Effect {effect!r} was not fitted; fitted effects: {list(self.effect_order_)}")
        return pd.DataFrame(
            {
                "key": self.effects_[effect].index.astype(str),
                "n": self.group_sizes_[effect].to_numpy(dtype=int),
                "estimate": self.effects_[effect].to_numpy(dtype=float),
            }
        )


def make_nested_model(name: str, lam: float = 0.0) -> MeanEffectModel:
    if name not in NESTED_MODELS:
        raise ValueError(f"Unknown nested model: {name}")
    return MeanEffectModel(effects=NESTED_MODELS[name], lam=lam)


def fit_mean_effect_model(
    train: pd.DataFrame,
    effects: Sequence[str],
    lam: float = 0.0,
    target: str = "severity",
) -> MeanEffectModel:
    model = MeanEffectModel(effects=tuple(effects), lam=lam)
    model.fit(train[list(effects)], train[target].to_numpy(dtype=float))
    return model


def fit_and_predict(
    train: pd.DataFrame,
    evaluate: pd.DataFrame,
    effects: Sequence[str],
    lam: float = 0.0,
    target: str = "severity",
) -> np.ndarray:
    model = fit_mean_effect_model(train, effects, lam=lam, target=target)
    return model.predict(evaluate[list(effects)])
