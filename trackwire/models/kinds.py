from enum import Enum

class MessageKind(str, Enum):
    """Canonical message kinds understood by the tracking API.

    The value doubles as the stored-form ``type`` discriminant and as the last
    segment of the destination path (``/v1/<kind>``).
    """

    identify = "identify"
    track = "track"
    page = "page"
    screen = "screen"
    group = "group"
    alias = "alias"
    batch = "batch"  # envelope only, never a batch item
