from cable.channels.chat import ChatChannel

__all__ = ("ChatChannel",)
