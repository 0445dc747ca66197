from flow_reader.db.base import Base  # noqa: F401

from .document import Document  # noqa: F401
from .chat_session import ChatSession  # noqa: F401
from .message import Message  # noqa: F401
from .setting import Setting  # noqa: F401
