"""Decision trees used for instruction selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, Iterator

from lilycc.insn_proto import ExprTree, ExprTreeType, InsnCategory, InsnProto


@dataclass(eq=False)
class IselNode:
    """IR instruction inside an instruction selection tree."""

    category: InsnCategory
    subtype: Hashable
    op: Hashable = None
    lhs: IselTree | None = None
    rhs: IselTree | None = None
    value: IselTree | None = None
    ptr: IselTree | None = None


@dataclass(eq=False)
class IselTree:
    """One decision node; `next` links the alternatives on the same layer."""

    type: ExprTreeType
    expr: IselNode | None = None
    iconst: Any = None
    protos: list[InsnProto] = field(default_factory=list)
    next: IselTree | None = None

    @classmethod
    def from_expr(cls, proto_tree: ExprTree | None, proto: InsnProto) -> IselTree | None:
        """Build a selection (sub)tree matching `proto_tree`, leading to `proto`."""
        if proto_tree is None:
            return None
        if proto_tree.type is ExprTreeType.ICONST:
            return cls(ExprTreeType.ICONST, iconst=proto_tree.iconst, protos=[proto])
        if proto_tree.type is ExprTreeType.OPERAND:
            return cls(ExprTreeType.OPERAND, protos=[proto])

        src = proto_tree.expr
        assert src is not None
        if src.category is InsnCategory.EXPR:
            node = IselNode(
                InsnCategory.EXPR,
                src.subtype,
                op=src.op,
                lhs=cls.from_expr(src.lhs, proto),
                rhs=cls.from_expr(src.rhs, proto),
            )
        elif src.category is InsnCategory.FLOW:
            node = IselNode(InsnCategory.FLOW, src.subtype, value=cls.from_expr(src.value, proto))
        elif src.category is InsnCategory.MEM:
            node = IselNode(
                InsnCategory.MEM,
                src.subtype,
                ptr=cls.from_expr(src.ptr, proto),
                value=cls.from_expr(src.value, proto),
            )
        else:
            raise ValueError(f"unknown instruction category {src.category!r}")
        return cls(ExprTreeType.IR_INSN, expr=node)

    def layer(self) -> Iterator[IselTree]:
        """Iterate over this node and the alternatives after it."""
        node: IselTree | None = self
        while node is not None:
            yield node
            node = node.next

    def insert(self, proto_tree: ExprTree | None, proto: InsnProto) -> None:
        """Merge the prototype tree `proto_tree` for `proto` into this layer."""
        if proto_tree is None:
            return
        last = self
        for node in self.layer():
            last = node
            if node.type is not proto_tree.type:
                continue
            if proto_tree.type is ExprTreeType.ICONST:
                if node.iconst != proto_tree.iconst:
                    continue
                node.protos.append(proto)
                return
            if proto_tree.type is ExprTreeType.OPERAND:
                node.protos.append(proto)
                return

            mine, theirs = node.expr, proto_tree.expr
            assert mine is not None and theirs is not None
            if mine.category is not theirs.category or mine.subtype != theirs.subtype:
                continue
            if mine.category is InsnCategory.EXPR:
                if mine.op != theirs.op:
                    continue
                _insert_into(mine.lhs, theirs.lhs, proto)
                _insert_into(mine.rhs, theirs.rhs, proto)
            elif mine.category is InsnCategory.FLOW:
                _insert_into(mine.value, theirs.value, proto)
            else:
                _insert_into(mine.ptr, theirs.ptr, proto)
                _insert_into(mine.value, theirs.value, proto)
            return

        last.next = IselTree.from_expr(proto_tree, proto)


def _insert_into(tree: IselTree | None, proto_tree: ExprTree | None, proto: InsnProto) -> None:
    if tree is not None:
        tree.insert(proto_tree, proto)


def isel_tree_generate(protos: Iterable[InsnProto]) -> IselTree | None:
    """Build an instruction selection tree for an instruction set."""
    protos = list(protos)
    if not protos:
        raise ValueError("an instruction set needs at least one prototype")
    root = IselTree.from_expr(protos[0].tree, protos[0])
    if root is not None:
        for proto in protos:
            root.insert(proto.tree, proto)
    return root