"""
Shared pytest fixtures.

Small hand-built fat databases keep the optimizer tests exact; the
bundled fat database backs the end-to-end and API tests.
"""

import random

import pytest

from soapblend.models.fat import DietaryFlags, EthicalConcerns, Fat
from soapblend.services.blend_builder import BlendBuilder
from soapblend.services.cupboard_advisor import CupboardAdvisor
from soapblend.services.fat_database import FatDatabaseService
from soapblend.services.random_generator import RandomBlendGenerator
from soapblend.services.scoring import BlendScorer
from soapblend.services.weight_optimizer import WeightOptimizer


def make_fat(fat_id, **fatty_acids):
    return Fat(id=fat_id, name=fat_id.replace("-", " ").title(), fatty_acids=fatty_acids)


@pytest.fixture
def oleic_db():
    """A is pure oleic, B contributes nothing."""
    return {
        "fat-a": make_fat("fat-a", oleic=100),
        "fat-b": make_fat("fat-b"),
    }


@pytest.fixture
def mini_db():
    """Four simplified fats with clearly separated profiles."""
    return {
        "olive": make_fat("olive", palmitic=14, stearic=3, oleic=69, linoleic=12),
        "coconut": make_fat("coconut", lauric=48, myristic=19, palmitic=9, stearic=3, oleic=8),
        "castor": make_fat("castor", ricinoleic=90, oleic=4, linoleic=4),
        "shea": make_fat("shea", palmitic=5, stearic=40, oleic=48, linoleic=6),
    }


@pytest.fixture
def flagged_db():
    """Fats carrying dietary flags and ethical concerns."""
    return {
        "tallow": Fat(
            id="tallow",
            name="Tallow",
            fatty_acids={"palmitic": 28, "stearic": 22, "oleic": 36},
            dietary=DietaryFlags(animal_based=True)
        ),
        "almond": Fat(
            id="almond",
            name="Almond",
            fatty_acids={"oleic": 71, "linoleic": 18},
            dietary=DietaryFlags(common_allergen=True)
        ),
        "palm": Fat(
            id="palm",
            name="Palm",
            fatty_acids={"palmitic": 44, "oleic": 39},
            ethical_concerns=EthicalConcerns(environmental=["deforestation", "habitat loss"])
        ),
        "soy": Fat(
            id="soy",
            name="Soy",
            fatty_acids={"linoleic": 50, "oleic": 24},
            ethical_concerns=EthicalConcerns(environmental=["deforestation"])
        ),
        "cocoa": Fat(
            id="cocoa",
            name="Cocoa",
            fatty_acids={"palmitic": 28, "stearic": 33, "oleic": 35},
            ethical_concerns=EthicalConcerns(social=["child labour"])
        ),
        "olive": make_fat("olive", oleic=69, linoleic=12),
    }


@pytest.fixture(scope="session")
def soap_db():
    """The bundled fat database."""
    return FatDatabaseService().load()


@pytest.fixture
def scorer():
    return BlendScorer()


@pytest.fixture
def optimizer():
    return WeightOptimizer()


@pytest.fixture
def builder(optimizer, scorer):
    return BlendBuilder(optimizer, scorer)


@pytest.fixture
def generator(optimizer, scorer):
    return RandomBlendGenerator(optimizer, scorer, rng=random.Random(42))


@pytest.fixture
def advisor(scorer):
    return CupboardAdvisor(scorer)
