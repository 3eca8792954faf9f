import pytest

from lilycc.insn_proto import (
    FLOW_BRANCH,
    FLOW_CALL_PTR,
    FLOW_RETURN,
    MEM_LOAD,
    MEM_STORE,
    NODE_OPERAND_0,
    NODE_OPERAND_1,
    NODE_OPERAND_2,
    OP1_MOV,
    OP2_ADD,
    ExprKind,
    ExprTreeType,
    InsnCategory,
    LocationKinds,
    OperandKinds,
    OperandSizes,
    expr_tree_size,
)
from lilycc.isel_tree import isel_tree_generate
from lilycc.rv_instructions import (
    JAL_RULES,
    JAL_TREE,
    JALR_TREE,
    LI_TREE,
    OP_RULES_LOAD,
    RET_TREE,
    RvEncType,
    RvEncoding,
    RvExt,
    RvOpcode,
    insn_alu,
    insn_alu_cmp,
    insn_alu_ri,
    insn_alu_rr,
    insn_branch,
    insn_load,
    insn_misc,
    insn_store,
    op_rules2,
    op_rules_store,
)


@pytest.mark.parametrize(
    "opcode, value",
    [(RvOpcode.LOAD, 0b00000), (RvOpcode.STORE, 0b01000), (RvOpcode.BRANCH, 0b11000)],
)
def test_opcode_values_follow_spec(opcode, value):
    assert int(opcode) == value


def test_opcodes_are_dense_and_kept_in_encodings():
    protos = [insn_load(RvExt.BASE, op, 0, 8, True, False) for op in RvOpcode]
    opcodes = [proto.cookie.opcode for proto in protos]
    assert opcodes == list(RvOpcode)
    assert sorted(int(op) for op in opcodes) == list(range(len(RvOpcode)))


def test_op_rules2_register_register():
    first, second = op_rules2(0, False, True, False, False)
    assert first.location_kinds == LocationKinds.REG
    assert second.location_kinds == LocationKinds.REG
    assert first.operand_kinds == OperandKinds.SINT
    assert first.operand_sizes == OperandSizes.SIZEWORD
    assert second.operand_sizes == OperandSizes.SIZEWORD


def test_op_rules2_immediate_and_32bit():
    first, second = op_rules2(12, True, True, True, True)
    assert second.location_kinds == LocationKinds.IMM
    assert second.const_bits == 12
    assert first.const_bits == 0
    assert first.operand_kinds == OperandKinds.UINT | OperandKinds.SINT
    assert first.operand_sizes == OperandSizes.SIZE32


@pytest.mark.parametrize(
    "membits, size",
    [
        (8, OperandSizes.SIZE8),
        (16, OperandSizes.SIZE16),
        (32, OperandSizes.SIZE32),
        (64, OperandSizes.SIZE64),
        (128, OperandSizes.SIZE128),
    ],
)
def test_op_rules_store_sizes(membits, size):
    offset, base, value = op_rules_store(membits, False, True)
    assert offset.const_bits == 12
    assert offset.location_kinds == LocationKinds.IMM
    assert base.operand_sizes == OperandSizes.SIZEPTR
    assert value.operand_sizes == size
    assert value.operand_kinds == OperandKinds.UINT


def test_alu_rr_encoding_and_tree():
    proto = insn_alu_rr(RvExt.BASE, RvOpcode.OP, 0, 0x20, "sub", True, True)
    assert proto.cookie == RvEncoding(RvExt.BASE, RvOpcode.OP, RvEncType.R, 0, 0x20, 0)
    assert proto.return_kinds == OperandKinds.UINT | OperandKinds.SINT
    assert proto.operands_len == 2
    assert proto.operands[1].location_kinds == LocationKinds.REG
    node = proto.tree.expr
    assert node.category is InsnCategory.EXPR
    assert node.subtype is ExprKind.BINARY
    assert node.op == "sub"
    assert node.lhs == NODE_OPERAND_0
    assert node.rhs == NODE_OPERAND_1


def test_alu_ri_uses_immediate_encoding():
    proto = insn_alu_ri(RvExt.BASE, RvOpcode.OP_IMM, 0, OP2_ADD, 12, True, True)
    assert proto.cookie.enc_type is RvEncType.I
    assert proto.cookie.funct7 == 0
    assert proto.operands[1].location_kinds == LocationKinds.IMM
    assert proto.operands[1].const_bits == 12
    assert proto.operands[0].operand_sizes == OperandSizes.SIZEWORD


@pytest.mark.parametrize("opcode", [RvOpcode.OP_32, RvOpcode.OP_IMM_32])
def test_alu_32bit_opcodes_use_32bit_operands(opcode):
    proto = insn_alu(RvExt.RV64, opcode, 0, 0, OP2_ADD, 12, True, True, True)
    assert all(rule.operand_sizes == OperandSizes.SIZE32 for rule in proto.operands)


def test_alu_cmp_wraps_in_mov():
    proto = insn_alu_cmp(RvExt.BASE, RvOpcode.OP, 2, "slt", 0, False, True, False)
    outer = proto.tree.expr
    assert outer.subtype is ExprKind.UNARY
    assert outer.op == OP1_MOV
    assert outer.lhs.expr.op == "slt"
    assert proto.cookie.enc_type is RvEncType.R
    assert expr_tree_size(proto.tree) == expr_tree_size(outer.lhs)


def test_branch():
    proto = insn_branch(RvExt.BASE, RvOpcode.BRANCH, 0, "seq", True, True)
    assert proto.cookie.enc_type is RvEncType.B
    assert proto.return_kinds == OperandKinds.NONE
    assert proto.operands[1].const_bits == 12
    assert proto.operands[1].location_kinds == LocationKinds.REG
    assert proto.tree.expr.subtype == FLOW_BRANCH
    assert proto.tree.expr.value.expr.op == "seq"


def test_store():
    proto = insn_store(RvExt.BASE, RvOpcode.STORE, 2, 32, True, True)
    assert proto.cookie.enc_type is RvEncType.S
    assert proto.operands_len == 3
    node = proto.tree.expr
    assert node.subtype == MEM_STORE
    assert node.value == NODE_OPERAND_2
    assert node.ptr.expr.op == OP2_ADD


def test_load():
    proto = insn_load(RvExt.BASE, RvOpcode.LOAD, 4, 8, False, True)
    assert proto.cookie.enc_type is RvEncType.I
    assert proto.return_sizes == OperandSizes.SIZE8
    assert proto.return_kinds == OperandKinds.UINT
    assert proto.operands == OP_RULES_LOAD
    assert proto.tree.expr.subtype == MEM_LOAD


def test_misc_uses_given_parts():
    proto = insn_misc(
        RvExt.BASE, RvOpcode.JAL, 0, 0, 0, True, False, RvEncType.J, JAL_RULES, JAL_TREE
    )
    assert proto.cookie.enc_type is RvEncType.J
    assert proto.cookie.opcode is RvOpcode.JAL
    assert proto.return_kinds == OperandKinds.SINT
    assert proto.operands == JAL_RULES
    assert proto.tree is JAL_TREE


def test_fixed_trees():
    assert JAL_TREE.expr.subtype == FLOW_CALL_PTR
    assert JALR_TREE.expr.value.expr.op == OP2_ADD
    assert LI_TREE.expr.op == OP1_MOV
    assert RET_TREE.type is ExprTreeType.IR_INSN
    assert RET_TREE.expr.subtype == FLOW_RETURN
    assert expr_tree_size(RET_TREE) == 1


def test_loads_share_isel_path():
    lb = insn_load(RvExt.BASE, RvOpcode.LOAD, 0, 8, True, False)
    lw = insn_load(RvExt.BASE, RvOpcode.LOAD, 2, 32, True, False)
    root = isel_tree_generate([lb, lw])
    assert len(list(root.layer())) == 1
    leaf = root.expr.ptr.expr.lhs
    assert lw in leaf.protos
    assert lb in leaf.protos