"""
Pydantic models for fat reference data.

This module defines the data models for entries of the fat database:
fatty acid composition plus the metadata used for filtering and for
informational averages (SAP values, iodine, INS).
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional

from soapblend.utils.constants import FATTY_ACID_KEYS


class SapValues(BaseModel):
    """
    Saponification values for a fat.

    Attributes:
        naoh: Grams of sodium hydroxide per gram of fat
        koh: Grams of potassium hydroxide per gram of fat
    """
    naoh: float = Field(0.0, ge=0.0, description="NaOH per gram of fat")
    koh: float = Field(0.0, ge=0.0, description="KOH per gram of fat")


class UsageRange(BaseModel):
    """Recommended usage of a fat as a percentage of total fats."""
    min: float = Field(0.0, ge=0.0, le=100.0)
    max: float = Field(100.0, ge=0.0, le=100.0)


class DietaryFlags(BaseModel):
    """
    Dietary flags for a fat.

    Attributes:
        animal_based: Rendered from an animal source
        common_allergen: Derived from a common allergen (e.g. tree nuts)
        sourcing_concerns: Flagged for sourcing concerns by the data curators
    """
    animal_based: bool = False
    common_allergen: bool = False
    sourcing_concerns: bool = False


class EthicalConcerns(BaseModel):
    """Documented sourcing concerns grouped by kind."""
    environmental: List[str] = Field(default_factory=list)
    social: List[str] = Field(default_factory=list)
    political: List[str] = Field(default_factory=list)

    @property
    def is_significant(self) -> bool:
        """Any social or political concern, or two or more environmental ones."""
        if self.social or self.political:
            return True
        return len(self.environmental) >= 2


class Fat(BaseModel):
    """
    Fat reference record.

    Immutable reference data consumed read-only by the optimizer. Only
    fatty_acids takes part in profile arithmetic; everything else is
    metadata for filtering and reporting.

    Attributes:
        id: Database key (kebab-case, e.g. "olive-oil")
        name: Display name
        fatty_acids: Fatty acid composition in percent (all 14 keys)
        sap: Saponification values
        iodine: Iodine value
        ins: INS value
        usage: Recommended usage range
        dietary: Dietary flags
        ethical_concerns: Sourcing concerns
        exotic: Hard to source / specialty fat
    """
    id: str = Field(..., min_length=1, description="Fat identifier")
    name: str = Field(..., min_length=1, description="Display name")
    fatty_acids: Dict[str, float] = Field(
        default_factory=dict,
        description="Fatty acid composition in percent"
    )
    sap: SapValues = Field(default_factory=SapValues)
    iodine: Optional[float] = Field(None, ge=0.0, description="Iodine value")
    ins: Optional[float] = Field(None, ge=0.0, description="INS value")
    usage: UsageRange = Field(default_factory=UsageRange)
    dietary: DietaryFlags = Field(default_factory=DietaryFlags)
    ethical_concerns: Optional[EthicalConcerns] = None
    exotic: bool = False

    @field_validator('fatty_acids')
    @classmethod
    def complete_fatty_acids(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Reject unknown acids and fill missing ones with zero."""
        unknown = [key for key in v if key not in FATTY_ACID_KEYS]
        if unknown:
            raise ValueError(f"Unknown fatty acid(s): {', '.join(sorted(unknown))}")
        for key, value in v.items():
            if value < 0:
                raise ValueError(f"Fatty acid '{key}' cannot be negative")
        return {acid: float(v.get(acid, 0.0)) for acid in FATTY_ACID_KEYS}

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "id": "castor-oil",
                "name": "Castor Oil",
                "fatty_acids": {"ricinoleic": 90, "oleic": 4, "linoleic": 4},
                "sap": {"naoh": 0.1286, "koh": 0.1803},
                "iodine": 86,
                "ins": 95,
                "usage": {"min": 2, "max": 10},
                "dietary": {"animal_based": False}
            }
        }
    }


class DietaryFilters(BaseModel):
    """
    Dietary filters selected by the user.

    Attributes:
        animal_based: Exclude animal-derived fats
        sourcing_concerns: Exclude fats with significant ethical concerns
        common_allergens: Exclude fats derived from common allergens
    """
    animal_based: bool = False
    sourcing_concerns: bool = False
    common_allergens: bool = False

    @property
    def any_active(self) -> bool:
        return self.animal_based or self.sourcing_concerns or self.common_allergens


class FatSummary(BaseModel):
    """Compact fat listing entry for the API."""
    id: str
    name: str
    animal_based: bool
    common_allergen: bool
    exotic: bool
