"""
Rectangle Packer

Recursive binary space partition over a fixed rectangle. Each node is either
a free region, or a used region with up to two children holding the space
left over to its right and below it.

Insertion splits a free node that can hold the request (plus padding) into:
- the placed rect (top-left corner of the node)
- a child for the space right of it
- a child for the space below it
The split axis is picked so the larger leftover region stays in one piece.

Failing to find room is expected (the caller grows its area and retries),
so insert() returns None instead of raising.
"""

from typing import Iterator, Optional


class RectPackNode:
    """A node of the packing tree, addressable as the slot it was placed in."""

    __slots__ = ("x", "y", "width", "height", "is_used", "left", "right")

    def __init__(self, x: float, y: float, width: float, height: float):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.is_used = False
        self.left: Optional["RectPackNode"] = None
        self.right: Optional["RectPackNode"] = None

    def __repr__(self) -> str:
        return f"RectPackNode(x={self.x}, y={self.y}, width={self.width}, height={self.height})"

    def insert(self, width: float, height: float, padding: float = 0.0) -> Optional["RectPackNode"]:
        """
        Try to place a width x height rect with padding reserved on its
        trailing (right and bottom) edges.

        Returns:
            The node representing the placed slot (its size includes the
            padding), or None when nothing fits.
        """
        if self.left is not None or self.right is not None:
            # Interior node: try the children
            if self.left is not None:
                result = self.left.insert(width, height, padding)
                if result is not None:
                    return result
            if self.right is not None:
                return self.right.insert(width, height, padding)
            return None

        if self.is_used:
            return None

        padded_w = width + padding
        padded_h = height + padding
        if padded_w > self.width or padded_h > self.height:
            return None

        # Exact fit: take the whole node
        if padded_w == self.width and padded_h == self.height:
            self.is_used = True
            return self

        remaining_w = self.width - padded_w
        remaining_h = self.height - padded_h

        # Keep the bigger leftover area in a single free rect
        if remaining_w > remaining_h:
            # Full-height column on the right, rest of the placed column below
            self.left = RectPackNode(self.x, self.y, padded_w, self.height)
            self.right = RectPackNode(self.x + padded_w, self.y, remaining_w, self.height)
        else:
            # Full-width row below, rest of the placed row on the right
            self.left = RectPackNode(self.x, self.y, self.width, padded_h)
            self.right = RectPackNode(self.x, self.y + padded_h, self.width, remaining_h)

        return self.left.insert(width, height, padding)

    def iter_used(self) -> Iterator["RectPackNode"]:
        """Yield every placed slot below this node."""
        if self.is_used:
            yield self
        if self.left is not None:
            yield from self.left.iter_used()
        if self.right is not None:
            yield from self.right.iter_used()


class RectanglePacker:
    """Packs rectangles into a fixed square area (or any fixed rect)."""

    def __init__(self, x: float, y: float, width: float, height: float):
        self.root = RectPackNode(x, y, width, height)

    @classmethod
    def square(cls, size: float, margin: float = 0.0) -> "RectanglePacker":
        """Bounded square of side `size`, leaving `margin` free along the leading edges."""
        return cls(margin, margin, size - margin, size - margin)

    def insert(self, width: float, height: float, padding: float = 0.0) -> Optional[RectPackNode]:
        """Place a rect; returns the slot or None if it does not fit."""
        if width <= 0 or height <= 0:
            return None
        return self.root.insert(width, height, padding)

    def slots(self):
        return list(self.root.iter_used())
