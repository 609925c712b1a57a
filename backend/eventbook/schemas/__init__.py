from .service_line import (
    LineId,
    LineKind,
    OnSiteContact,
    PickupPoint,
    ServiceLine,
    SupplierStatus,
    TempId,
    TransportUnit,
    line_kind,
    parse_line_id,
)
from .payment import PaymentIn, PaymentRead
from .event import EventIn, EventRead, EventSaveRequest, EventSaveResponse, FinancialsRead
from .catalog import (
    PackageCreate,
    PackageRead,
    ServiceCreate,
    ServiceRead,
    SupplierCreate,
    SupplierRead,
)
from .composition import (
    CompositionRead,
    ExpandPackageRequest,
    MoveRequest,
    MoveResponse,
    PackageGroupRead,
    WorkingSetRequest,
)
