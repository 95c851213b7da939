from textual.message import Message

class TagsChanged(Message):
    """Tags were created or deleted; tag pickers should reload."""
    def __init__(self) -> None:
        super().__init__()
