"""Instruction prototypes: how machine instructions map onto trees of IR expressions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any, Hashable

# IR control-flow subtypes used by instruction prototypes.
FLOW_BRANCH = "branch"
FLOW_CALL_PTR = "call_ptr"
FLOW_RETURN = "return"

# IR memory subtypes used by instruction prototypes.
MEM_LOAD = "load"
MEM_STORE = "store"

# IR operators used by instruction prototypes.
OP1_MOV = "mov"
OP2_ADD = "add"


class ExprTreeType(Enum):
    """Kinds of expression tree node."""

    IR_INSN = 0
    OPERAND = 1
    ICONST = 2


class InsnCategory(Enum):
    """IR instruction category."""

    EXPR = 0
    FLOW = 1
    MEM = 2


class ExprKind(Enum):
    """Expression subtype."""

    BINARY = 0
    UNARY = 1


@dataclass(frozen=True)
class ExprNode:
    """IR instruction inside an expression tree.

    `subtype` is an `ExprKind` for expressions and the flow or memory
    subtype otherwise. `lhs` is also the operand of unary expressions;
    `value` is the flow target/condition or the value to store; `ptr` is
    the load/store pointer.
    """

    category: InsnCategory
    subtype: Hashable
    op: Hashable = None
    lhs: ExprTree | None = None
    rhs: ExprTree | None = None
    value: ExprTree | None = None
    ptr: ExprTree | None = None


@dataclass(frozen=True)
class ExprTree:
    """A tree of IR expressions, operands and constants."""

    type: ExprTreeType
    operand_index: int = 0
    expr: ExprNode | None = None
    iconst: Any = None

    def __post_init__(self) -> None:
        if self.type is ExprTreeType.IR_INSN and self.expr is None:
            raise ValueError("an IR instruction node needs an expression")


class OperandKinds(IntFlag):
    """Bitset of kinds of operand."""

    NONE = 0
    UINT = 1
    # Implicitly includes unsigned operands one bit smaller.
    SINT = 2
    F32 = 4
    F64 = 8


class LocationKinds(IntFlag):
    """Bitset of kinds of operand storage locations."""

    NONE = 0
    IMM = 1
    REG = 2
    MEM_ABS = 4
    MEM_PCREL = 8
    MEM_PTR = 16


class OperandSizes(IntFlag):
    """Bitset of possible operand sizes, fixed and relative to the current arch."""

    NONE = 0
    SIZE8 = 1
    SIZE16 = 2
    SIZE32 = 4
    SIZE64 = 8
    SIZE128 = 16
    SIZEPTR = 32
    SIZEWORD = 64


@dataclass(frozen=True)
class OperandRule:
    """Constraints on a single instruction operand."""

    const_bits: int = 0
    operand_kinds: OperandKinds = OperandKinds.NONE
    location_kinds: LocationKinds = LocationKinds.NONE
    operand_sizes: OperandSizes = OperandSizes.NONE


@dataclass(frozen=True, eq=False)
class InsnProto:
    """How a machine instruction behaves in terms of IR expressions."""

    cookie: Any = None
    return_kinds: OperandKinds = OperandKinds.NONE
    return_sizes: OperandSizes = OperandSizes.NONE
    operands: tuple[OperandRule, ...] = field(default_factory=tuple)
    tree: ExprTree | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))

    @property
    def operands_len(self) -> int:
        return len(self.operands)


def node_const(iconst: Any) -> ExprTree:
    """Constant that must match exactly."""
    return ExprTree(ExprTreeType.ICONST, iconst=iconst)


def node_operand(index: int) -> ExprTree:
    """Input to the tree taken from the instruction operand `index`."""
    return ExprTree(ExprTreeType.OPERAND, operand_index=index)


NODE_OPERAND_0 = node_operand(0)
NODE_OPERAND_1 = node_operand(1)
NODE_OPERAND_2 = node_operand(2)
NODE_OPERAND_3 = node_operand(3)


def node_expr1(op1: Hashable, value: ExprTree | None) -> ExprTree:
    """Unary expression."""
    return ExprTree(
        ExprTreeType.IR_INSN,
        expr=ExprNode(InsnCategory.EXPR, ExprKind.UNARY, op=op1, lhs=value),
    )


def node_expr2(op2: Hashable, lhs: ExprTree | None, rhs: ExprTree | None) -> ExprTree:
    """Binary expression."""
    return ExprTree(
        ExprTreeType.IR_INSN,
        expr=ExprNode(InsnCategory.EXPR, ExprKind.BINARY, op=op2, lhs=lhs, rhs=rhs),
    )


def node_load(ptr: ExprTree | None) -> ExprTree:
    """Memory load through `ptr`."""
    return ExprTree(
        ExprTreeType.IR_INSN,
        expr=ExprNode(InsnCategory.MEM, MEM_LOAD, ptr=ptr),
    )


def node_store(ptr: ExprTree | None, value: ExprTree | None) -> ExprTree:
    """Memory store of `value` through `ptr`."""
    return ExprTree(
        ExprTreeType.IR_INSN,
        expr=ExprNode(InsnCategory.MEM, MEM_STORE, ptr=ptr, value=value),
    )


def node_branch(cond: ExprTree | None) -> ExprTree:
    """Conditional branch on `cond`."""
    return ExprTree(
        ExprTreeType.IR_INSN,
        expr=ExprNode(InsnCategory.FLOW, FLOW_BRANCH, value=cond),
    )


def node_call_ptr(target: ExprTree | None) -> ExprTree:
    """Call through a pointer."""
    return ExprTree(
        ExprTreeType.IR_INSN,
        expr=ExprNode(InsnCategory.FLOW, FLOW_CALL_PTR, value=target),
    )


def expr_tree_size(tree: ExprTree | None) -> int:
    """Size measure of an expression tree.

    Leaves count 1, flow nodes add 1 to their subtree, expression and
    memory nodes are the sum of their subtrees.
    """
    if tree is None:
        return 0
    if tree.type in (ExprTreeType.ICONST, ExprTreeType.OPERAND):
        return 1
    node = tree.expr
    assert node is not None
    if node.category is InsnCategory.EXPR:
        return expr_tree_size(node.lhs) + expr_tree_size(node.rhs)
    if node.category is InsnCategory.FLOW:
        return expr_tree_size(node.value) + 1
    return expr_tree_size(node.value) + expr_tree_size(node.ptr)