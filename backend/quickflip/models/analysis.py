from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

DEFAULT_MODEL = "gpt-4o"
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.3
BULK_MAX_TOKENS = 1500

class CompletionParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    temperature: Optional[float] = None

    def upstream_params(self, model: str = DEFAULT_MODEL, max_tokens: int = DEFAULT_MAX_TOKENS,
                        temperature: float = DEFAULT_TEMPERATURE) -> Dict[str, Any]:
        """Chat-completion parameters, with omitted (or null) fields defaulted."""
        return {
            "model": self.model if self.model is not None else model,
            "max_tokens": self.max_tokens if self.max_tokens is not None else max_tokens,
            "temperature": self.temperature if self.temperature is not None else temperature,
        }

class AnalyzeRequest(CompletionParams):
    base64_image: Optional[str] = Field(default=None, alias="base64Image")

class AnalyzeResponse(BaseModel):
    content: str

class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None

class ScannedItemAnalysis(BaseModel):
    """One photographed item, as read back from the vision model's reply."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item_name: str = Field(default="Unknown Item", alias="itemName")
    category: str = ""
    condition: str = ""
    description: str = ""
    estimated_value_range: str = Field(default="", alias="estimatedValueRange")
    attributes: Dict[str, str] = Field(default_factory=dict)

class ParseRequest(BaseModel):
    content: str

class ParseResult(BaseModel):
    analysis: ScannedItemAnalysis
    missing_fields: List[str] = []

class BulkItem(BaseModel):
    """One of several items found in a single photo."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    condition: str = ""
    description: str = ""
    estimated_value: str = Field(default="", alias="estimatedValue")
    category: str = ""
    location: str = ""

    def to_analysis(self) -> ScannedItemAnalysis:
        """Same shape as a single-item scan, so it can go through /listing/prepare."""
        return ScannedItemAnalysis(
            item_name=self.name,
            category=self.category,
            condition=self.condition,
            description=self.description,
            estimated_value_range=self.estimated_value,
        )

class BulkAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[BulkItem] = []
    total_count: int = Field(default=0, alias="totalCount")
    total_value: str = Field(default="", alias="totalValue")
    scene_description: str = Field(default="", alias="sceneDescription")

class BulkAnalyzeResponse(BaseModel):
    content: str
    analysis: BulkAnalysis
