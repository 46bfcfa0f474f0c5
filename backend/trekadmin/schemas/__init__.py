from trekadmin.schemas.trek import (
    TrekCreate, TrekUpdate, BatchInput, ItineraryDayInput, ActivityInput,
    TrekWriteResponse, TrekDetail, TrekListItem, TrekListResponse,
)
from trekadmin.schemas.batch import (
    BatchView, BatchStats, BatchStatusResponse, BatchCompletionResponse, TrekBatchSummary,
)
from trekadmin.schemas.booking import BookingView, BatchBookingView, BookingAddonView, SweepResponse
from trekadmin.schemas.user import UserSummary, UserDetail
from trekadmin.schemas.analytics import RevenueSummary, DashboardSummary
from trekadmin.schemas.post import (
    PostCreate, PostUpdate, PostWriteResponse, PostView, CategoryCreate, CategoryView,
    ReviewView, ReviewListResponse,
)

__all__ = [
    "TrekCreate", "TrekUpdate", "BatchInput", "ItineraryDayInput", "ActivityInput",
    "TrekWriteResponse", "TrekDetail", "TrekListItem", "TrekListResponse",
    "BatchView", "BatchStats", "BatchStatusResponse", "BatchCompletionResponse", "TrekBatchSummary",
    "BookingView", "BatchBookingView", "BookingAddonView", "SweepResponse",
    "UserSummary", "UserDetail",
    "RevenueSummary", "DashboardSummary",
    "PostCreate", "PostUpdate", "PostWriteResponse", "PostView", "CategoryCreate", "CategoryView",
    "ReviewView", "ReviewListResponse",
]
