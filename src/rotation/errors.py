class RotationError(Exception):
    """Base class for rotation errors surfaced to callers."""


class ChannelNotFoundError(RotationError):
    pass


class NoActiveMembersError(RotationError):
    def __init__(self, channel_id: int):
        super().__init__("no active users in rotation")
        self.channel_id = channel_id


class MemberNotFoundError(RotationError):
    pass


class MemberAlreadyExistsError(RotationError):
    pass


class InvalidConfigError(RotationError, ValueError):
    pass
