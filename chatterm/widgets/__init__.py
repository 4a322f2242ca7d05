"""Widget exports for the chatterm UI."""

from .conversation import ConversationViewer
from .conversation_list import ConversationList
from .input_box import InputBox
from .status_bar import StatusBar

__all__ = ["ConversationList", "ConversationViewer", "InputBox", "StatusBar"]
