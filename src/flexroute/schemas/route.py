"""Route request/response schemas and the persisted stop shape."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.domain import (
    PackageType,
    SetDeliveryWindowEnd,
    SetLabel,
    SetPackageLabel,
    SetPackageType,
    SetPriority,
    SetStopType,
    SetTba,
    StopEdit,
    StopKind,
    StopStatus,
    StopType,
)
from ..services.route.operations import MoveDirection
from .conditions import LocationReport, RouteSummaryModel, TrafficInfoModel

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class StopModel(BaseModel):
    """Wire and storage shape of a stop (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    original_stop_number: int = Field(..., ge=0)
    street: str
    city: str = ""
    state: str = ""
    zip_code: str = Field(default="", alias="zip")
    label: str = ""
    package_type: PackageType = PackageType.UNKNOWN
    tba: str = ""
    package_label: str = ""
    kind: StopKind = Field(default=StopKind.DELIVERY, alias="type")
    delivery_window_end: Optional[str] = None
    stop_type: StopType = StopType.UNKNOWN
    is_priority: Optional[bool] = None
    status: Optional[StopStatus] = None
    completed_at: Optional[datetime] = None
    is_current_stop: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class MapLinkModel(BaseModel):
    label: str
    url: str


class RouteResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    stops: List[StopModel]
    generation: int
    revision: int
    current_stop_number: Optional[int] = None
    summary: Optional[RouteSummaryModel] = None
    traffic: Optional[TrafficInfoModel] = None


class RouteLinksResponse(BaseModel):
    google: List[MapLinkModel]
    apple: Optional[MapLinkModel] = None


class _FieldEdit(BaseModel):
    def to_edit(self) -> StopEdit:
        raise NotImplementedError


class LabelEdit(_FieldEdit):
    field: Literal["label"]
    value: str

    def to_edit(self) -> StopEdit:
        return SetLabel(self.value)


class PackageTypeEdit(_FieldEdit):
    field: Literal["packageType"]
    value: PackageType

    def to_edit(self) -> StopEdit:
        return SetPackageType(self.value)


class PackageLabelEdit(_FieldEdit):
    field: Literal["packageLabel"]
    value: str

    def to_edit(self) -> StopEdit:
        return SetPackageLabel(self.value)


class TbaEdit(_FieldEdit):
    field: Literal["tba"]
    value: str

    def to_edit(self) -> StopEdit:
        return SetTba(self.value)


class StopTypeEdit(_FieldEdit):
    field: Literal["stopType"]
    value: StopType

    def to_edit(self) -> StopEdit:
        return SetStopType(self.value)


class DeliveryWindowEdit(_FieldEdit):
    field: Literal["deliveryWindowEnd"]
    value: Optional[str] = Field(default=None, pattern=TIME_OF_DAY_PATTERN)

    def to_edit(self) -> StopEdit:
        return SetDeliveryWindowEnd(self.value)


class PriorityEdit(_FieldEdit):
    field: Literal["isPriority"]
    value: Optional[bool] = None

    def to_edit(self) -> StopEdit:
        return SetPriority(self.value)


StopEditRequest = Annotated[
    Union[LabelEdit, PackageTypeEdit, PackageLabelEdit, TbaEdit, StopTypeEdit, DeliveryWindowEdit, PriorityEdit],
    Field(discriminator="field"),
]


class StatusUpdateRequest(BaseModel):
    status: StopStatus
    completed_at: Optional[datetime] = Field(
        default=None,
        description="Completion time; defaults to now when the stop leaves pending.",
    )


class MoveRequest(BaseModel):
    direction: MoveDirection


class ReorderRequest(BaseModel):
    from_index: int
    to_index: int


class OptimizeRequest(BaseModel):
    use_location: bool = False
    location: Optional[LocationReport] = Field(
        default=None,
        description="Fix reported by the device; required when use_location is set.",
    )
    avoid_left_turns: bool = False


class ShareTokenModel(BaseModel):
    token: str = Field(..., min_length=1)


class SavedRouteStatus(BaseModel):
    has_saved_route: bool
