from __future__ import annotations


class UnknownLinkError(KeyError):
    """Raised when a link action references a node pair that was never registered."""

    def __init__(self, node_a: str, node_b: str) -> None:
        super().__init__(f"No link registered between {node_a!r} and {node_b!r}")
        self.node_a = node_a
        self.node_b = node_b

    def __str__(self) -> str:
        return str(self.args[0])
