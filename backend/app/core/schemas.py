from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from typing import List, Optional, Any, Dict, Literal

Record = Dict[str, Any]
Dataset = List[Record]

ChartType = Literal['bar', 'line', 'pie', 'table']
CHART_TYPES = ('bar', 'line', 'pie', 'table')

AggregationOperation = Literal['sum', 'avg', 'count', 'min', 'max']


class FieldKind(str, Enum):
    NUMERIC = 'numeric'
    CATEGORICAL = 'categorical'
    DATE = 'date'


class FieldProfile(BaseModel):
    name: str
    kind: FieldKind
    unique_count: int
    null_count: int
    min: Optional[float] = None  # numeric fields only
    max: Optional[float] = None
    avg: Optional[float] = None


class ChartSpec(BaseModel):
    """Field bindings for a chart. Before validation any key may be missing or dangling."""
    model_config = ConfigDict(populate_by_name=True)

    type: Optional[str] = None
    x_key: Optional[str] = Field(default=None, validation_alias=AliasChoices('x_key', 'xKey'))
    y_key: Optional[str] = Field(default=None, validation_alias=AliasChoices('y_key', 'yKey'))
    name_key: Optional[str] = Field(default=None, validation_alias=AliasChoices('name_key', 'nameKey'))
    value_key: Optional[str] = Field(default=None, validation_alias=AliasChoices('value_key', 'valueKey'))


class ChartProposal(ChartSpec):
    """Untrusted proposal from the upstream chart proposer; narrative fields pass through opaquely."""
    sql: Optional[str] = None
    insights: List[Any] = []
    summary: List[Any] = []
    confidence: Optional[float] = None
    next_steps: Optional[List[str]] = Field(default=None, validation_alias=AliasChoices('next_steps', 'nextSteps'))


class Metric(BaseModel):
    field: str
    operation: AggregationOperation
    alias: Optional[str] = None

    @property
    def output_name(self) -> str:
        return self.alias or f"{self.operation}_{self.field}"


class AggregationConfig(BaseModel):
    group_by: str = Field(validation_alias=AliasChoices('group_by', 'groupBy'))
    metrics: List[Metric] = Field(min_length=1)
    sort_by: Optional[str] = Field(default=None, validation_alias=AliasChoices('sort_by', 'sortBy'))
    sort_order: Literal['asc', 'desc'] = Field(default='desc', validation_alias=AliasChoices('sort_order', 'sortOrder'))
    limit: Optional[int] = Field(default=None, ge=0)


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []
    corrected_spec: Optional[ChartSpec] = None


class ChartData(BaseModel):
    type: ChartType
    data: List[Record]
    x_key: Optional[str] = None
    y_key: Optional[str] = None
    name_key: Optional[str] = None
    value_key: Optional[str] = None
    columns: Optional[List[str]] = None  # table only


class PipelineResult(BaseModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []
    recommended_type: ChartType
    corrected_spec: Optional[ChartSpec] = None
    chart: Optional[ChartData] = None


# API request / response models

class ProfileRequest(BaseModel):
    dataset: Dataset


class ProfileResponse(BaseModel):
    row_count: int
    fields: List[FieldProfile]


class RecommendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dataset: Dataset
    query: str = ""
    suggested_type: Optional[str] = Field(default=None, validation_alias=AliasChoices('suggested_type', 'suggestedType'))


class RecommendResponse(BaseModel):
    chart_type: ChartType


class AggregateRequest(BaseModel):
    dataset: Dataset
    config: AggregationConfig


class AggregateResponse(BaseModel):
    rows: List[Record]


class VisualizationRequest(BaseModel):
    dataset: Dataset
    query: str = ""
    proposal: Optional[ChartProposal] = None


class VisualizationResponse(BaseModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []
    recommended_type: ChartType
    corrected_spec: Optional[ChartSpec] = None
    chart: Optional[ChartData] = None
    sql: Optional[str] = None
    insights: List[Any] = []
    summary: List[Any] = []
    confidence: Optional[float] = None
    next_steps: Optional[List[str]] = None
