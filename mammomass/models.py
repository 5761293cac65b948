# mammomass/models.py

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict

from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.tree import DecisionTreeClassifier

from .config import RANDOM_SEED


class ModelFamily(str, Enum):
    DECISION_TREE = "decision_tree"
    LOGREG = "logreg"
    RANDOM_FOREST = "random_forest"


# Growth limits in the spirit of rpart's minsplit=20 / minbucket=7
TREE_GROWTH_PARAMS: Dict[str, Any] = {
    "min_samples_split": 20,
    "min_samples_leaf": 7,
}

# Default complexity parameter, expressed as sklearn's ccp_alpha
DEFAULT_CP = 0.01


@dataclass
class ModelSpec:
    """
    High-level description of a model.
    - family: what kind of estimator it is
    - params: constructor kwargs for the estimator
    - description: one line for reports / --help
    """
    family: ModelFamily
    params: Dict[str, Any] = field(default_factory=dict)
    description: str = ""

    @property
    def is_tree(self) -> bool:
        return self.family == ModelFamily.DECISION_TREE


def get_model_spec(name: str) -> ModelSpec:
    """
    Map a short, user-facing model name to a full spec.
    This is where you define *all* supported models.
    """
    if name in ("tree", "decision_tree"):
        return ModelSpec(
            family=ModelFamily.DECISION_TREE,
            params={**TREE_GROWTH_PARAMS, "ccp_alpha": DEFAULT_CP},
            description="Decision tree with default growth limits and cp",
        )

    if name == "tree_full":
        return ModelSpec(
            family=ModelFamily.DECISION_TREE,
            description="Unpruned decision tree",
        )

    # Baselines for comparison
    if name == "logreg":
        return ModelSpec(
            family=ModelFamily.LOGREG,
            params={"max_iter": 1000},
            description="Logistic regression on the raw codes",
        )

    if name in ("rf", "random_forest"):
        return ModelSpec(
            family=ModelFamily.RANDOM_FOREST,
            params={"n_estimators": 200},
            description="Random forest",
        )

    raise ValueError(f"Unknown model name: {name}")


MODEL_NAMES = ("tree", "tree_full", "logreg", "rf")


def create_local_model(name: str, random_state: int = RANDOM_SEED, **overrides):
    """
    Create an unfitted estimator for `name`.

    Keyword overrides replace the spec's params (e.g. ccp_alpha=0.005).
    """
    spec = get_model_spec(name)
    params = {**spec.params, **overrides}

    if spec.family == ModelFamily.DECISION_TREE:
        return DecisionTreeClassifier(random_state=random_state, **params)

    if spec.family == ModelFamily.LOGREG:
        return LogisticRegression(**params)

    if spec.family == ModelFamily.RANDOM_FOREST:
        return RandomForestClassifier(random_state=random_state, **params)

    raise ValueError(f"Unhandled model family: {spec.family}")
