from joysync.services.conversation_manager import ConversationFeed, ConversationManager
from joysync.services.message_service import MessageService
from joysync.services.profile_service import ProfileService
from joysync.services.user_status_service import UserStatusService

__all__ = [
    "ConversationFeed",
    "ConversationManager",
    "MessageService",
    "ProfileService",
    "UserStatusService",
]
