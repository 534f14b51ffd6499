from joysync.models.message import Message
from joysync.models.profile import Profile

__all__ = [
    "Message",
    "Profile",
]
