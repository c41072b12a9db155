"""
Event names used on the realtime channel (Socket.IO event names).
"""


class InboundEvents:
    """Events pushed by the server."""

    MESSAGE = "message:new"
    TYPING = "typing"
    FRIEND_ONLINE = "friend:online"
    FRIEND_OFFLINE = "friend:offline"


class OutboundEvents:
    """Events sent by the client."""

    SEND_MESSAGE = "message:send"
    MARK_READ = "message:read"
    TYPING_START = "typing:start"
    TYPING_STOP = "typing:stop"
