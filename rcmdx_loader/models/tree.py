"""Output tree -- nested, addressable container for extracted values.

A node is either a :class:`Leaf` (one value: array, scalar, DataFrame) or a
:class:`Group` (ordered mapping from segment name to node). Addresses are
segment lists, e.g. ``["metadata", "RCMDX", "attributes"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence, Tuple, Union

from rcmdx_loader.errors import AddressCollisionError


@dataclass
class Leaf:
    value: Any


@dataclass
class Group:
    children: Dict[str, "Node"] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.children

    def __len__(self) -> int:
        return len(self.children)

    def keys(self) -> List[str]:
        return list(self.children.keys())

    def insert(self, segments: Sequence[str], value: Any) -> None:
        """Write value at segments, creating intermediate groups. Later writes win."""
        self.set_node(segments, value if isinstance(value, (Leaf, Group)) else Leaf(value))

    def check_insert(self, segments: Sequence[str]) -> None:
        """Raise AddressCollisionError if a leaf sits on the way to segments."""
        if not segments:
            raise ValueError("cannot replace the tree root")
        node: Node = self
        for k, seg in enumerate(segments[:-1]):
            node = node.children.get(seg)
            if node is None:
                return
            if isinstance(node, Leaf):
                addr = "/".join(segments[: k + 1])
                raise AddressCollisionError(
                    f"output address {'/'.join(segments)} runs through the value at {addr}",
                    path=addr,
                )

    def set_node(self, segments: Sequence[str], node: "Node") -> None:
        self.check_insert(segments)
        parent = self
        for seg in segments[:-1]:
            child = parent.children.get(seg)
            if child is None:
                child = Group()
                parent.children[seg] = child
            parent = child
        parent.children[segments[-1]] = node

    def get(self, segments: Sequence[str]) -> "Node":
        """Return the node at segments (KeyError if absent)."""
        node: Node = self
        for seg in segments:
            if not isinstance(node, Group) or seg not in node.children:
                raise KeyError("/".join(segments))
            node = node.children[seg]
        return node

    def find(self, segments: Sequence[str]) -> "Node | None":
        try:
            return self.get(segments)
        except KeyError:
            return None

    def leaves(self, prefix: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], Any]]:
        """Depth-first (address, value) pairs of every leaf."""
        for name, node in self.children.items():
            addr = prefix + (name,)
            if isinstance(node, Group):
                yield from node.leaves(addr)
            else:
                yield addr, node.value

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested-dict view (leaves unwrapped to their values)."""
        out: Dict[str, Any] = {}
        for name, node in self.children.items():
            out[name] = node.to_dict() if isinstance(node, Group) else node.value
        return out


Node = Union[Leaf, Group]
