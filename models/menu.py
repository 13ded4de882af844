from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DietaryTag(str, Enum):
    PURE_VEG = "pure_veg"
    VEGAN = "vegan"
    JAIN = "jain"
    GLUTEN_FREE = "gluten_free"
    ORGANIC = "organic"
    HALAL = "halal"


class SpicinessLevel(str, Enum):
    NOT_SPICY = "not_spicy"
    MILD = "mild"
    MEDIUM = "medium"
    HOT = "hot"
    VERY_HOT = "very_hot"


class MenuItemCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    dietary_tags: List[DietaryTag] = Field(default_factory=lambda: [DietaryTag.PURE_VEG.value])
    spiciness_level: SpicinessLevel = SpicinessLevel.MEDIUM.value
    image_url: Optional[str] = None
    estimated_prep_time_minutes: int = Field(20, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    protein_grams: Optional[float] = Field(None, ge=0)
    carbs_grams: Optional[float] = Field(None, ge=0)
    fat_grams: Optional[float] = Field(None, ge=0)
    fiber_grams: Optional[float] = Field(None, ge=0)
    serving_size: Optional[str] = None
    special_instructions: Optional[str] = None
    category: Optional[str] = None
    is_temporary: bool = False
    availability_end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def temporary_items_need_end_date(self):
        if self.is_temporary and self.availability_end_date is None:
            raise ValueError("availability_end_date is required for temporary items")
        return self


class MenuItemUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    dietary_tags: Optional[List[DietaryTag]] = None
    spiciness_level: Optional[SpicinessLevel] = None
    image_url: Optional[str] = None
    estimated_prep_time_minutes: Optional[int] = Field(None, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    protein_grams: Optional[float] = Field(None, ge=0)
    carbs_grams: Optional[float] = Field(None, ge=0)
    fat_grams: Optional[float] = Field(None, ge=0)
    fiber_grams: Optional[float] = Field(None, ge=0)
    serving_size: Optional[str] = None
    special_instructions: Optional[str] = None
    category: Optional[str] = None
    is_temporary: Optional[bool] = None
    availability_end_date: Optional[datetime] = None


class MenuItemOut(BaseModel):
    id: str
    restaurant_id: str
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: float
    dietary_tags: List[DietaryTag] = Field(default_factory=list)
    spiciness_level: SpicinessLevel = SpicinessLevel.MEDIUM
    is_available: bool
    estimated_prep_time_minutes: int = 20
    calories: Optional[int] = None
    protein_grams: Optional[float] = None
    carbs_grams: Optional[float] = None
    fat_grams: Optional[float] = None
    fiber_grams: Optional[float] = None
    serving_size: Optional[str] = None
    special_instructions: Optional[str] = None
    category: Optional[str] = None
    is_temporary: bool = False
    availability_end_date: Optional[str] = None
    is_bestseller: bool = False
    is_new: bool = False
    average_rating: float = 0
    total_ratings: int = 0
    total_orders: int = 0
    quantity_sold: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MenuStats(BaseModel):
    total_items: int
    available_items: int
    bestseller_items: int
    total_orders: int
    restaurant_orderable: bool
