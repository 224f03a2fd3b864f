"""
Pydantic models for mixtures and optimization results.

This module defines the share/mixture data model shared by every
optimizer, plus the result shapes they return.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional


class Share(BaseModel):
    """
    One fat in a mixture.

    A share carries either a percentage of the batch or an absolute
    weight; profile calculations normalize by whichever is populated, so
    both bases work. The locked flag tags entries the optimizers must
    hold fixed (Locked) as opposed to entries they may adjust (Free).

    The cupboard nested search reads the flag on the base recipe to decide
    which entries may trade points. BlendBuilder and RandomBlendGenerator
    take pinned entries through their own `locked` argument instead and
    only set the flag on the shares they return.

    Attributes:
        id: Fat identifier
        percentage: Share of the batch in percent (optional)
        weight: Absolute weight in any unit (optional)
        locked: Whether the optimizer must keep this entry fixed
    """
    id: str = Field(..., min_length=1, description="Fat identifier")
    percentage: Optional[float] = Field(None, ge=0.0, description="Percent of batch")
    weight: Optional[float] = Field(None, ge=0.0, description="Absolute weight")
    locked: bool = Field(False, description="Held fixed during optimization")

    @model_validator(mode='after')
    def validate_basis(self):
        """Ensure a share has a percentage or a weight."""
        if self.percentage is None and self.weight is None:
            raise ValueError(f"Share '{self.id}' needs a percentage or a weight")
        return self

    @property
    def value(self) -> float:
        """The share amount in whichever basis is populated."""
        return self.percentage if self.percentage is not None else self.weight

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "olive-oil",
                "percentage": 60,
                "locked": False
            }
        }
    }


class PropertyRange(BaseModel):
    """Acceptable band for one soap property."""
    min: float = Field(..., description="Lowest acceptable value")
    max: float = Field(..., description="Highest acceptable value")

    @model_validator(mode='after')
    def validate_order(self):
        if self.min > self.max:
            raise ValueError(f"Range min ({self.min}) cannot exceed max ({self.max})")
        return self

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


class OptimizationResult(BaseModel):
    """
    Result of an optimizer run.

    Attributes:
        mixture: Normalized shares (locked entries first)
        achieved: Achieved fatty acid profile
        properties: Derived soap properties of the achieved profile
        error: Sum of squared differences against the target
        match_quality: 0-100 closeness to the target
        range_score: Property range score (generators only)
        all_in_range: Whether every property is inside its range
    """
    mixture: List[Share] = Field(default_factory=list)
    achieved: Dict[str, float] = Field(default_factory=dict)
    properties: Dict[str, float] = Field(default_factory=dict)
    error: float = Field(0.0, ge=0.0)
    match_quality: int = Field(0, ge=0, le=100)
    range_score: Optional[float] = None
    all_in_range: bool = False

    model_config = {
        "json_schema_extra": {
            "example": {
                "mixture": [
                    {"id": "olive-oil", "percentage": 55, "locked": False},
                    {"id": "coconut-oil", "percentage": 30, "locked": False},
                    {"id": "castor-oil", "percentage": 15, "locked": False}
                ],
                "achieved": {"oleic": 42.6, "lauric": 14.4},
                "properties": {"hardness": 36.2, "degreasing": 20.1},
                "error": 3.2,
                "match_quality": 95,
                "all_in_range": True
            }
        }
    }


class CupboardSuggestion(BaseModel):
    """
    A fat suggested as an addition to a cupboard blend.

    Attributes:
        id: Fat identifier
        percentage: Share of the combined blend in percent
        weight: Weight to add, in the unit of the base weights
    """
    id: str
    percentage: int = Field(..., ge=0, le=100)
    weight: float = Field(..., ge=0.0)


class CupboardResult(BaseModel):
    """
    Result of a cupboard suggestion run.

    Attributes:
        suggestions: Fats to add (empty when none help or none are needed)
        current_properties: Properties of the base blend alone
        improved_properties: Properties with the suggestions added
        all_in_range: Whether the improved blend hits every range
    """
    suggestions: List[CupboardSuggestion] = Field(default_factory=list)
    current_properties: Dict[str, float] = Field(default_factory=dict)
    improved_properties: Dict[str, float] = Field(default_factory=dict)
    all_in_range: bool = False


class BlendAnalysis(BaseModel):
    """
    Evaluation of a given mixture.

    Attributes:
        fatty_acids: Aggregate fatty acid profile
        properties: Derived soap properties
        iodine: Share-weighted iodine value
        ins: Share-weighted INS value
        range_score: Property range score
        all_in_range: Whether every property is inside its range
        out_of_range: Properties outside their recommended range
    """
    fatty_acids: Dict[str, float]
    properties: Dict[str, float]
    iodine: float
    ins: float
    range_score: float
    all_in_range: bool
    out_of_range: List[str] = Field(default_factory=list)
