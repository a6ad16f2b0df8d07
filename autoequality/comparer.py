"""Structural comparison of descriptors, used to skip redundant regeneration."""

from __future__ import annotations

from typing import Optional

from autoequality.model import TypeDescriptor

__all__ = ["DescriptorComparer", "DEFAULT_COMPARER"]


class DescriptorComparer:
    """Value equality over :class:`TypeDescriptor` instances.

    Two descriptors built independently from the same source facts compare
    equal.  :meth:`hash` only discriminates on the type name; collisions
    are settled by :meth:`equals`.
    """

    def equals(self, x: Optional[TypeDescriptor], y: Optional[TypeDescriptor]) -> bool:
        if x is y:
            return True
        if x is None or y is None:
            return False
        return (
            x.namespace == y.namespace
            and x.name == y.name
            and x.type_parameters == y.type_parameters
            and x.is_reference_type == y.is_reference_type
            and x.hashing_mode_available == y.hashing_mode_available
            and x.members == y.members
        )

    def hash(self, obj: Optional[TypeDescriptor]) -> int:
        if obj is None:
            return 0
        return hash(obj.name)


DEFAULT_COMPARER = DescriptorComparer()
