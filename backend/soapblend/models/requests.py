"""
Pydantic models for API requests and responses.

This module defines the request bodies accepted by the HTTP layer and
the response shapes that are not plain optimizer results.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Optional

from soapblend.models.fat import DietaryFilters
from soapblend.models.mixture import OptimizationResult, Share
from soapblend.utils.helpers import clean_target, normalize_property_keys
from soapblend.utils.validators import (
    validate_fatty_acid_target,
    validate_property_target_keys,
    validate_unique_ids
)


def _check_fatty_acid_target(v: Optional[Dict[str, Optional[float]]]):
    if v is not None:
        validate_fatty_acid_target(clean_target(v))
    return v


def _check_property_targets(v: Optional[Dict[str, Optional[float]]]):
    if v is None:
        return v
    normalized = normalize_property_keys(v)
    validate_property_target_keys(clean_target(normalized))
    return normalized


class CalculateRequest(BaseModel):
    """
    Request model for evaluating a given mixture.

    Attributes:
        mixture: Fats with percentages or weights
    """
    mixture: List[Share] = Field(..., min_length=1, description="Fats in the blend")

    model_config = {
        "json_schema_extra": {
            "example": {
                "mixture": [
                    {"id": "olive-oil", "weight": 500},
                    {"id": "coconut-oil", "weight": 300},
                    {"id": "castor-oil", "weight": 50}
                ]
            }
        }
    }


class OptimizeWeightsRequest(BaseModel):
    """
    Request model for tuning the shares of a fixed set of fats.

    Attributes:
        fat_ids: Fats to blend (order is kept in the response)
        target: Sparse fatty acid target (unset keys are unconstrained)
        min_share: Optional lower bound per fat
        max_share: Optional upper bound per fat
    """
    fat_ids: List[str] = Field(..., min_length=1, description="Fat identifiers")
    target: Dict[str, Optional[float]] = Field(..., description="Fatty acid target in percent")
    min_share: Optional[float] = Field(None, ge=0.0, le=100.0)
    max_share: Optional[float] = Field(None, ge=0.0, le=100.0)

    @field_validator('fat_ids')
    @classmethod
    def validate_fat_ids(cls, v: List[str]) -> List[str]:
        validate_unique_ids(v, "fat_ids")
        return v

    @field_validator('target')
    @classmethod
    def validate_target(cls, v):
        return _check_fatty_acid_target(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "fat_ids": ["olive-oil", "coconut-oil", "shea-butter"],
                "target": {"oleic": 50, "lauric": 15}
            }
        }
    }


class FindBlendRequest(BaseModel):
    """
    Request model for building a blend from the whole database.

    Exactly one of target or property_targets must be given; property
    targets are converted to a fatty acid target first.

    Attributes:
        target: Sparse fatty acid target
        property_targets: Sparse soap property target
        max_fats: Maximum number of fats in the blend
        exclude: Fats that must not be used
        require: Fats that must be used
        locked: Fats pinned at the front of the blend
        dietary: Dietary filters applied on top of exclude
    """
    target: Optional[Dict[str, Optional[float]]] = Field(None, description="Fatty acid target")
    property_targets: Optional[Dict[str, Optional[float]]] = Field(
        None,
        description="Soap property target (hardness, degreasing, ...)"
    )
    max_fats: Optional[int] = Field(None, ge=1, le=20, description="Maximum fats in the blend")
    exclude: List[str] = Field(default_factory=list)
    require: List[str] = Field(default_factory=list)
    locked: List[Share] = Field(default_factory=list)
    dietary: DietaryFilters = Field(default_factory=DietaryFilters)

    @field_validator('target')
    @classmethod
    def validate_target(cls, v):
        return _check_fatty_acid_target(v)

    @field_validator('property_targets')
    @classmethod
    def validate_property_targets(cls, v):
        return _check_property_targets(v)

    @model_validator(mode='after')
    def validate_one_target(self):
        """Ensure exactly one kind of target is provided."""
        if (self.target is None) == (self.property_targets is None):
            raise ValueError("Provide exactly one of 'target' or 'property_targets'")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "property_targets": {"hardness": 42, "degreasing": 15, "moisturizing": 58},
                "max_fats": 4,
                "dietary": {"animal_based": True}
            }
        }
    }


class FindBlendResponse(BaseModel):
    """
    Response model for a built blend.

    Attributes:
        target: Fatty acid target the blend was built for
        excluded: Fats excluded by request or dietary filters
        blend: The optimized blend
    """
    target: Dict[str, float]
    excluded: List[str] = Field(default_factory=list)
    blend: OptimizationResult


class RandomBlendRequest(BaseModel):
    """
    Request model for a random in-range blend.

    Attributes:
        min_fats / max_fats: Total fat count range, locked fats included
        exclude: Fats that must not be drawn
        locked: Fats kept at their given percentage
        dietary: Dietary filters applied on top of exclude
        seed: Optional seed for a reproducible draw
    """
    min_fats: Optional[int] = Field(None, ge=1, le=20)
    max_fats: Optional[int] = Field(None, ge=1, le=20)
    exclude: List[str] = Field(default_factory=list)
    locked: List[Share] = Field(default_factory=list)
    dietary: DietaryFilters = Field(default_factory=DietaryFilters)
    seed: Optional[int] = Field(None, description="Seed for a reproducible blend")

    @field_validator('locked')
    @classmethod
    def validate_locked(cls, v: List[Share]) -> List[Share]:
        validate_unique_ids([share.id for share in v], "locked")
        if sum(share.value for share in v) > 100:
            raise ValueError("Locked fats cannot total more than 100%")
        return v

    @model_validator(mode='after')
    def validate_counts(self):
        if self.min_fats is not None and self.max_fats is not None and self.min_fats > self.max_fats:
            raise ValueError("min_fats cannot exceed max_fats")
        return self


class CupboardRequest(BaseModel):
    """
    Request model for cupboard suggestions.

    Attributes:
        base: Fats on hand, with weights (or percentages)
        exclude: Fats that must not be suggested
        max_suggestions: Maximum number of suggested additions
        locked_suggestions: Additions already committed to
        allow_base_adjustment: Let the optimizer shift points between base fats
        dietary: Dietary filters applied on top of exclude
    """
    base: List[Share] = Field(..., min_length=1, description="Fats on hand")
    exclude: List[str] = Field(default_factory=list)
    max_suggestions: Optional[int] = Field(None, ge=1, le=10)
    locked_suggestions: List[Share] = Field(default_factory=list)
    allow_base_adjustment: bool = False
    dietary: DietaryFilters = Field(default_factory=DietaryFilters)

    @field_validator('base')
    @classmethod
    def validate_base(cls, v: List[Share]) -> List[Share]:
        validate_unique_ids([share.id for share in v], "base")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "base": [
                    {"id": "olive-oil", "weight": 700},
                    {"id": "sunflower-oil", "weight": 300}
                ],
                "max_suggestions": 3
            }
        }
    }


class PropertyTargetsRequest(BaseModel):
    """Request model carrying sparse soap property targets."""
    targets: Dict[str, Optional[float]] = Field(..., description="Soap property targets")

    @field_validator('targets')
    @classmethod
    def validate_targets(cls, v):
        return _check_property_targets(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "targets": {"hardness": 40, "moisturizing": 55, "degreasing": 15}
            }
        }
    }


class PropertyValidationResponse(BaseModel):
    """Outcome of a property target consistency check."""
    valid: bool
    message: Optional[str] = None


class FattyAcidTargetResponse(BaseModel):
    """Fatty acid target derived from property targets."""
    targets: Dict[str, int]
