from extbridge.postgres.channel import AsyncpgChannel, open_channel

__all__ = ["AsyncpgChannel", "open_channel"]
