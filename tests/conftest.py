from datetime import datetime, timezone
from itertools import count

import pytest

from domain.schemas import CategoryNode
from domain.tree import TreeReconciler
from infrastructure.store import InMemoryCategoryStore

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
EARLIER = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def id_factory():
    counter = count(1)
    return lambda: f"gen-{next(counter)}"


@pytest.fixture
def reconciler(fixed_clock, id_factory) -> TreeReconciler:
    return TreeReconciler(clock=fixed_clock, id_factory=id_factory)


def make_sicilian() -> CategoryNode:
    """Sicilian > (Dragon, Najdorf > English Attack), with inherited aiConfig."""
    return CategoryNode.model_validate(
        {
            "_id": "s",
            "name": "Sicilian",
            "createUuid": "s1",
            "createdDate": EARLIER,
            "createCreatedDate": EARLIER,
            "modifiedDate": EARLIER,
            "aiConfig": {
                "systemPrompt": "S",
                "domainContext": "chess openings",
                "questionConfig": {"defaultDifficulty": "medium", "focusArea": "plans"},
            },
            "translations": {"es": "Siciliana"},
            "children": [
                {
                    "_id": "d",
                    "name": "Dragon",
                    "createUuid": "d1",
                    "parent": "s",
                    "createdDate": EARLIER,
                    "translations": {"es": "Dragón"},
                },
                {
                    "_id": "n",
                    "name": "Najdorf",
                    "createUuid": "n1",
                    "parent": "s",
                    "createdDate": EARLIER,
                    "aiConfig": {"systemPrompt": "N", "questionConfig": {"focusArea": "sharp lines"}},
                    "children": [
                        {"_id": "e", "name": "English Attack", "createUuid": "e1", "parent": "n"},
                    ],
                },
            ],
        }
    )


def make_french() -> CategoryNode:
    return CategoryNode.model_validate(
        {
            "_id": "f",
            "name": "French",
            "createUuid": "f1",
            "children": [{"_id": "w", "name": "Winawer", "createUuid": "w1", "parent": "f"}],
        }
    )


@pytest.fixture
def sicilian() -> CategoryNode:
    return make_sicilian()


@pytest.fixture
def forest() -> list[CategoryNode]:
    return [make_sicilian(), make_french()]


@pytest.fixture
def store(forest) -> InMemoryCategoryStore:
    return InMemoryCategoryStore(forest)
