"""RISC-V instruction prototypes: encodings, operand rules and IR trees."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Hashable

from lilycc.insn_proto import (
    FLOW_RETURN,
    NODE_OPERAND_0,
    NODE_OPERAND_1,
    NODE_OPERAND_2,
    OP1_MOV,
    OP2_ADD,
    ExprNode,
    ExprTree,
    ExprTreeType,
    InsnCategory,
    InsnProto,
    LocationKinds,
    OperandKinds,
    OperandRule,
    OperandSizes,
    node_branch,
    node_call_ptr,
    node_expr1,
    node_expr2,
    node_load,
    node_store,
)


class RvOpcode(IntEnum):
    """RISC-V major opcodes (bits 6:2 of a 32-bit instruction)."""

    LOAD = 0
    LOAD_FP = 1
    CUSTOM_0 = 2
    MISC_MEM = 3
    OP_IMM = 4
    AUIPC = 5
    OP_IMM_32 = 6
    LONG_48B = 7
    STORE = 8
    STORE_FP = 9
    CUSTOM_1 = 10
    AMO = 11
    OP = 12
    LUI = 13
    OP_32 = 14
    LONG_64B = 15
    MADD = 16
    MSUB = 17
    NMSUB = 18
    NMADD = 19
    OP_FP = 20
    OP_V = 21
    CUSTOM_2 = 22
    LONG_48B_2 = 23
    BRANCH = 24
    JALR = 25
    RESERVED_0 = 26
    JAL = 27
    SYSTEM = 28
    OP_VE = 29
    CUSTOM_3 = 30
    LONG_80B = 31


class RvExt(Enum):
    """RISC-V instruction set extension an instruction belongs to."""

    BASE = 0
    ONLY_32 = 1
    RV64 = 2
    RV128 = 3
    M = 4
    A = 5
    C = 6
    F = 7
    D = 8


class RvEncType(Enum):
    """RISC-V instruction encoding formats, including pseudo-instructions."""

    R = 0
    I = 1  # noqa: E741
    S = 2
    B = 3
    U = 4
    J = 5
    BITS = 6
    PSEUDO_LI = 7
    PSEUDO_RET = 8
    PSEUDO_J = 9
    PSEUDO_JR = 10


@dataclass(frozen=True)
class RvEncoding:
    """How a RISC-V instruction is encoded."""

    ext: RvExt
    opcode: RvOpcode
    enc_type: RvEncType
    funct3: int = 0
    funct7: int = 0
    funct12: int = 0


def _kinds(allow_s: bool, allow_u: bool) -> OperandKinds:
    kinds = OperandKinds.NONE
    if allow_u:
        kinds |= OperandKinds.UINT
    if allow_s:
        kinds |= OperandKinds.SINT
    return kinds


_MEM_SIZES = {
    8: OperandSizes.SIZE8,
    16: OperandSizes.SIZE16,
    32: OperandSizes.SIZE32,
    64: OperandSizes.SIZE64,
    128: OperandSizes.SIZE128,
}


def _mem_size(membits: int) -> OperandSizes:
    return _MEM_SIZES.get(membits, OperandSizes.NONE)


def op_rules2(
    immbits: int, op2_is_imm: bool, allow_s: bool, allow_u: bool, is_op_32: bool
) -> tuple[OperandRule, OperandRule]:
    """Operand rules for a two-operand instruction."""
    kinds = _kinds(allow_s, allow_u)
    sizes = OperandSizes.SIZE32 if is_op_32 else OperandSizes.SIZEWORD
    first = OperandRule(
        location_kinds=LocationKinds.REG,
        operand_kinds=kinds,
        operand_sizes=sizes,
    )
    second = OperandRule(
        const_bits=immbits,
        location_kinds=LocationKinds.IMM if op2_is_imm else LocationKinds.REG,
        operand_kinds=kinds,
        operand_sizes=sizes,
    )
    return first, second


def op_rules_store(
    membits: int, allow_s: bool, allow_u: bool
) -> tuple[OperandRule, OperandRule, OperandRule]:
    """Operand rules for a store: offset, base pointer and value."""
    return (
        OperandRule(
            const_bits=12,
            location_kinds=LocationKinds.IMM,
            operand_kinds=OperandKinds.SINT,
        ),
        OperandRule(
            location_kinds=LocationKinds.REG,
            operand_kinds=OperandKinds.UINT,
            operand_sizes=OperandSizes.SIZEPTR,
        ),
        OperandRule(
            location_kinds=LocationKinds.REG,
            operand_kinds=_kinds(allow_s, allow_u),
            operand_sizes=_mem_size(membits),
        ),
    )


# Operand rules for loads: offset and base pointer.
OP_RULES_LOAD: tuple[OperandRule, OperandRule] = (
    OperandRule(
        const_bits=12,
        location_kinds=LocationKinds.IMM,
        operand_kinds=OperandKinds.SINT,
    ),
    OperandRule(
        location_kinds=LocationKinds.REG,
        operand_kinds=OperandKinds.UINT,
        operand_sizes=OperandSizes.SIZEPTR,
    ),
)

JAL_RULES: tuple[OperandRule, ...] = (
    OperandRule(
        const_bits=21,
        location_kinds=LocationKinds.IMM,
        operand_kinds=OperandKinds.SINT,
    ),
)
JAL_TREE = node_call_ptr(NODE_OPERAND_0)

JALR_RULES: tuple[OperandRule, ...] = (
    OperandRule(
        const_bits=12,
        location_kinds=LocationKinds.IMM,
        operand_kinds=OperandKinds.SINT,
    ),
    OperandRule(
        location_kinds=LocationKinds.REG,
        operand_kinds=OperandKinds.UINT | OperandKinds.SINT,
        operand_sizes=OperandSizes.SIZEPTR,
    ),
)
JALR_TREE = node_call_ptr(node_expr2(OP2_ADD, NODE_OPERAND_0, NODE_OPERAND_1))

LI_RULES: tuple[OperandRule, ...] = (
    OperandRule(
        const_bits=32,
        location_kinds=LocationKinds.IMM,
        operand_kinds=OperandKinds.SINT,
    ),
)
LI_TREE = node_expr1(OP1_MOV, NODE_OPERAND_0)

RET_TREE = ExprTree(
    ExprTreeType.IR_INSN,
    expr=ExprNode(InsnCategory.FLOW, FLOW_RETURN),
)


def insn_misc(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    funct7: int,
    funct12: int,
    allow_s: bool,
    allow_u: bool,
    encoding: RvEncType,
    operands: tuple[OperandRule, ...],
    tree: ExprTree | None,
) -> InsnProto:
    """An instruction not common enough to have a dedicated helper."""
    return InsnProto(
        cookie=RvEncoding(ext, op_maj, encoding, funct3, funct7, funct12),
        return_kinds=_kinds(allow_s, allow_u),
        operands=tuple(operands),
        tree=tree,
    )


def insn_alu(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    funct7: int,
    ir_op2: Hashable,
    immbits: int,
    is_ri: bool,
    allow_s: bool,
    allow_u: bool,
) -> InsnProto:
    """An ALU instruction, register-register or register-immediate."""
    return InsnProto(
        cookie=RvEncoding(ext, op_maj, RvEncType.I if is_ri else RvEncType.R, funct3, funct7, 0),
        return_kinds=OperandKinds.UINT | OperandKinds.SINT,
        operands=op_rules2(immbits, is_ri, allow_s, allow_u, bool(op_maj & 2)),
        tree=node_expr2(ir_op2, NODE_OPERAND_0, NODE_OPERAND_1),
    )


def insn_alu_ri(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    ir_op2: Hashable,
    immbits: int,
    allow_s: bool,
    allow_u: bool,
) -> InsnProto:
    """A register-immediate ALU instruction."""
    return insn_alu(ext, op_maj, funct3, 0, ir_op2, immbits, True, allow_s, allow_u)


def insn_alu_rr(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    funct7: int,
    ir_op2: Hashable,
    allow_s: bool,
    allow_u: bool,
) -> InsnProto:
    """A register-register ALU instruction."""
    return insn_alu(ext, op_maj, funct3, funct7, ir_op2, 0, False, allow_s, allow_u)


def insn_alu_cmp(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    ir_op2: Hashable,
    immbits: int,
    is_ri: bool,
    allow_s: bool,
    allow_u: bool,
) -> InsnProto:
    """An ALU comparison instruction producing a boolean result."""
    return InsnProto(
        cookie=RvEncoding(ext, op_maj, RvEncType.I if is_ri else RvEncType.R, funct3, 0, 0),
        return_kinds=OperandKinds.UINT | OperandKinds.SINT,
        operands=op_rules2(immbits, is_ri, allow_s, allow_u, bool(op_maj & 2)),
        tree=node_expr1(OP1_MOV, node_expr2(ir_op2, NODE_OPERAND_0, NODE_OPERAND_1)),
    )


def insn_branch(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    ir_op2: Hashable,
    allow_s: bool,
    allow_u: bool,
) -> InsnProto:
    """A conditional branch comparing two registers."""
    return InsnProto(
        cookie=RvEncoding(ext, op_maj, RvEncType.B, funct3, 0, 0),
        operands=op_rules2(12, False, allow_s, allow_u, False),
        tree=node_branch(node_expr2(ir_op2, NODE_OPERAND_0, NODE_OPERAND_1)),
    )


def insn_store(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    membits: int,
    allow_s: bool,
    allow_u: bool,
) -> InsnProto:
    """A store of `membits` bits to base register plus offset."""
    return InsnProto(
        cookie=RvEncoding(ext, op_maj, RvEncType.S, funct3, 0, 0),
        operands=op_rules_store(membits, allow_s, allow_u),
        tree=node_store(node_expr2(OP2_ADD, NODE_OPERAND_0, NODE_OPERAND_1), NODE_OPERAND_2),
    )


def insn_load(
    ext: RvExt,
    op_maj: RvOpcode,
    funct3: int,
    membits: int,
    allow_s: bool,
    allow_u: bool,
) -> InsnProto:
    """A load of `membits` bits from base register plus offset."""
    return InsnProto(
        cookie=RvEncoding(ext, op_maj, RvEncType.I, funct3, 0, 0),
        return_kinds=_kinds(allow_s, allow_u),
        return_sizes=_mem_size(membits),
        operands=OP_RULES_LOAD,
        tree=node_load(node_expr2(OP2_ADD, NODE_OPERAND_0, NODE_OPERAND_1)),
    )