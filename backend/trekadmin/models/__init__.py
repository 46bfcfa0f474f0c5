from trekadmin.models.user import User
from trekadmin.models.trek import Trek, TrekHighlight, TrekThingToCarry, TrekImportantNote, TrekImage
from trekadmin.models.batch import (
    TrekBatch, BatchInclusion, BatchExclusion, ItineraryDay, ItineraryActivity,
)
from trekadmin.models.booking import Booking, BookingParticipant, BookingAddon
from trekadmin.models.post import PostCategory, Tag, Post, PostTag, Comment

__all__ = [
    "User",
    "Trek", "TrekHighlight", "TrekThingToCarry", "TrekImportantNote", "TrekImage",
    "TrekBatch", "BatchInclusion", "BatchExclusion", "ItineraryDay", "ItineraryActivity",
    "Booking", "BookingParticipant", "BookingAddon",
    "PostCategory", "Tag", "Post", "PostTag", "Comment",
]
