import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from acled_severity.metrics import rmse
from acled_severity.models import MeanEffectModel


def make_data(n_groups=60, seed=42):
    rng = np.random.default_rng(seed)

    # Group sizes span 1..~200 events, like admin1 regions in a conflict export
    sizes = np.maximum(1, rng.geometric(p=0.03, size=n_groups))
    true_effect = rng.normal(0.0, 0.6, size=n_groups)

    keys, y = [], []
    for g, (size, effect) in enumerate(zip(sizes, true_effect)):
        keys.extend([f"g{g}"] * size)
        y.extend(1.5 + effect + rng.normal(0.0, 1.2, size=size))
    return pd.DataFrame({"location": keys}), np.asarray(y), sizes, true_effect


X, y, sizes, true_effect = make_data()
rng = np.random.default_rng(7)
is_test = rng.random(len(y)) < 0.2
X_train, y_train = X[~is_test], y[~is_test]
X_test, y_test = X[is_test], y[is_test]

lambdas = [0.0, 1.0, 2.0, 5.0, 10.0, 20.0, 50.0]
scores = []
for lam in lambdas:
    model = MeanEffectModel(effects=("location",), lam=lam).fit(X_train, y_train)
    scores.append(rmse(y_test, model.predict(X_test)))
    print(f"lambda={lam:5.1f}  test RMSE={scores[-1]:.4f}")

best_lam = lambdas[int(np.argmin(scores))]
raw = MeanEffectModel(effects=("location",), lam=0.0).fit(X_train, y_train).effect_table("location")
shrunk = MeanEffectModel(effects=("location",), lam=best_lam).fit(X_train, y_train).effect_table("location")

fig, axes = plt.subplots(1, 2, figsize=(12, 4.5))
fig.suptitle("Shrinking group means toward zero", fontsize=13)

axes[0].plot(lambdas, scores, marker="o")
axes[0].set_title("Held-out RMSE by lambda")
axes[0].set_xlabel("lambda")
axes[0].set_ylabel("RMSE")

# Small groups move the most
axes[1].scatter(raw["estimate"], shrunk["estimate"], s=np.sqrt(raw["n"]) * 8, alpha=0.5)
lim = float(np.abs(raw["estimate"]).max())
axes[1].plot([-lim, lim], [-lim, lim], color="black", lw=1)
axes[1].set_title(f"Location effects: lambda=0 vs lambda={best_lam:g} (size ~ n)")
axes[1].set_xlabel("unregularized estimate")
axes[1].set_ylabel("regularized estimate")

plt.tight_layout(rect=[0, 0, 1, 0.93])
plt.show()
