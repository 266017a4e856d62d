from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

SEED_SPLIT: Final[int] = 1
SEED_BOOTSTRAP: Final[int] = 42

TEST_FRAC: Final[float] = 0.10
VALIDATION_FRAC: Final[float] = 0.10
N_BOOT: Final[int] = 1000
TOP_N_GROUPS: Final[int] = 10

LAMBDA_GRID: Final[list[float]] = [0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 4.0, 5.0, 6.0, 8.0, 10.0]

# Right-open edges: [0,1) [1,2) [2,5) [5,10) [10,50) [50,inf)
SEVERITY_BIN_EDGES: Final[list[float]] = [0.0, 1.0, 2.0, 5.0, 10.0, 50.0]
SEVERITY_LABELS: Final[list[str]] = ["0", "1", "2-4", "5-9", "10-49", "50+"]
N_SEVERITY_CATEGORIES: Final[int] = len(SEVERITY_LABELS)


class AcledColumn:
    EVENT_DATE = "event_date"
    EVENT_TYPE = "event_type"
    ACTOR1 = "actor1"
    ACTOR2 = "actor2"
    ADMIN1 = "admin1"
    FATALITIES = "fatalities"

    REQUIRED = [EVENT_DATE, EVENT_TYPE, ACTOR1, ACTOR2, ADMIN1, FATALITIES]


class EventType:
    BATTLES = "Battles"
    VIOLENCE_AGAINST_CIVILIANS = "Violence against civilians"
    EXPLOSIONS = "Explosions/Remote violence"
    PROTESTS = "Protests"
    RIOTS = "Riots"
    STRATEGIC = "Strategic developments"

    POLITICAL_VIOLENCE = [BATTLES, VIOLENCE_AGAINST_CIVILIANS, EXPLOSIONS]


class EffectKey:
    LOCATION = "location"
    PERPETRATOR = "perpetrator"
    TARGET = "target"
    WEEK = "week"

    ALL = [LOCATION, PERPETRATOR, TARGET, WEEK]
    SOURCE_COLUMN = {
        LOCATION: AcledColumn.ADMIN1,
        PERPETRATOR: AcledColumn.ACTOR1,
        TARGET: AcledColumn.ACTOR2,
    }


class ModelName:
    JUST_THE_AVERAGE = "just_the_average"
    LOCATION = "location_effect"
    LOCATION_PERPETRATOR = "location_perpetrator_effects"
    LOCATION_PERPETRATOR_TARGET = "location_perpetrator_target_effects"
    FULL = "location_perpetrator_target_week_effects"
    REGULARIZED_FULL = "regularized_full_model"

    NESTED = [JUST_THE_AVERAGE, LOCATION, LOCATION_PERPETRATOR, LOCATION_PERPETRATOR_TARGET, FULL]
    FINAL = [JUST_THE_AVERAGE, FULL, REGULARIZED_FULL]


NESTED_MODELS: Final[dict[str, tuple[str, ...]]] = {
    ModelName.JUST_THE_AVERAGE: (),
    ModelName.LOCATION: (EffectKey.LOCATION,),
    ModelName.LOCATION_PERPETRATOR: (EffectKey.LOCATION, EffectKey.PERPETRATOR),
    ModelName.LOCATION_PERPETRATOR_TARGET: (
        EffectKey.LOCATION,
        EffectKey.PERPETRATOR,
        EffectKey.TARGET,
    ),
    ModelName.FULL: tuple(EffectKey.ALL),
}


class ArtifactName:
    SPLIT_METADATA = "split_metadata.csv"
    TRAIN = "train_events.csv"
    TEST = "test_events.csv"
    SEVERITY_DISTRIBUTION = "severity_distribution.csv"
    EVENTS_PER_WEEK = "events_per_week.csv"
    TOP_GROUPS = "top_groups.csv"
    NESTED_RESULTS = "mean_effect_model_results.csv"
    EFFECT_ESTIMATES = "effect_estimates.csv"
    LAMBDA_SWEEP = "lambda_sweep.csv"
    FINAL_EVALUATION = "final_evaluation.csv"
    MANIFEST = "run_manifest.json"


class FigureName:
    SEVERITY_HISTOGRAM = "severity_histogram.png"
    EVENTS_PER_WEEK = "events_per_week.png"
    TOP_LOCATIONS = "mean_severity_top_locations.png"
    LAMBDA_CURVE = "lambda_rmse_curve.png"


REQUIRED_ARTIFACTS: Final[list[str]] = [
    ArtifactName.SPLIT_METADATA,
    ArtifactName.TRAIN,
    ArtifactName.TEST,
    ArtifactName.SEVERITY_DISTRIBUTION,
    ArtifactName.EVENTS_PER_WEEK,
    ArtifactName.TOP_GROUPS,
    ArtifactName.NESTED_RESULTS,
    ArtifactName.EFFECT_ESTIMATES,
    ArtifactName.LAMBDA_SWEEP,
    ArtifactName.FINAL_EVALUATION,
    ArtifactName.MANIFEST,
]

MANIFEST_REQUIRED_KEYS: Final[list[str]] = [
    "manifest_version",
    "input_path",
    "input_sha256",
    "git_commit",
    "git_dirty",
    "python_executable",
    "library_versions",
    "seed_policy",
    "event_types",
    "severity_bins",
    "train_test_split",
    "lambda_grid",
    "chosen_lambda",
    "final_test_rmse",
]


@dataclass(frozen=True)
class RunSettings:
    seed: int = SEED_SPLIT
    test_frac: float = TEST_FRAC
    validation_frac: float = VALIDATION_FRAC
    event_types: tuple[str, ...] = tuple(EventType.POLITICAL_VIOLENCE)
    lambda_grid: tuple[float, ...] = field(default_factory=lambda: tuple(LAMBDA_GRID))
    make_figures: bool = True

    def __post_init__(self) -> None:
        for name in ("test_frac", "validation_frac"):
            value = getattr(self, name)
            if not 0.0 < value < 1.0:
                raise ValueError(f"{name} must be in (0, 1), got {value}")
        if not self.event_types:
            raise ValueError("event_types must not be empty")
        if not self.lambda_grid:
            raise ValueError("lambda_grid must not be empty")
        if any(lam < 0 for lam in self.lambda_grid):
            raise ValueError(f"lambda_grid values must be >= 0, got {list(self.lambda_grid)}")
        if len(set(self.lambda_grid)) != len(self.lambda_grid):
            raise ValueError(f"lambda_grid values must be unique, got {list(self.lambda_grid)}")
