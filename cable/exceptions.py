class CableError(Exception):
    """Base exception for the Cable package."""

    pass


class EnvelopeError(CableError):
    """Raised when an outgoing envelope does not satisfy the envelope contract."""

    def __init__(self, reason: str, data: object = None):
        self.reason = reason
        self.data = data
        super().__init__(f"Invalid envelope: {reason}")


class SubscriptionRejected(CableError):
    """Raised by a channel to refuse the current subscription."""

    def __init__(self, channel: str, reason: str | None = None):
        self.channel = channel
        self.reason = reason
        message = f"Subscription to '{channel}' rejected"
        super().__init__(f"{message}: {reason}" if reason else message)


class UnknownChannelError(CableError):
    """Raised when a subscription names a channel that is not registered."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"Channel '{channel}' is not registered.")
