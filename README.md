# lilycc

Building blocks for a small compiler:

- `lilycc.compiler`: compilation contexts (`CompilerContext`), source files
  on disk or in memory (`SourceFile`), positions (`Pos`, `pos_between`,
  `pos_including`), tokens and AST nodes (`Token`, `TokenType`, `ast_empty`,
  `ast_from`) and diagnostics (`Diagnostic`, `DiagLevel`,
  `format_diagnostic`, `print_diagnostic`).
- `lilycc.c_std`: the C language standard revisions as `__STDC_VERSION__`
  values (`CStd`).
- `lilycc.insn_proto`: machine instruction prototypes described as trees of
  IR expressions (`InsnProto`, `ExprTree`, `node_expr2`, `node_load`, ...),
  with operand rules (`OperandRule`, `OperandKinds`, `LocationKinds`,
  `OperandSizes`) and `expr_tree_size`.
- `lilycc.isel_tree`: instruction selection decision trees generated from a
  set of prototypes (`isel_tree_generate`, `IselTree`, `IselNode`).
- `lilycc.rv_instructions`: RISC-V encodings (`RvEncoding`, `RvOpcode`,
  `RvExt`, `RvEncType`) and helpers that build instruction prototypes
  (`insn_alu_ri`, `insn_alu_rr`, `insn_alu_cmp`, `insn_branch`, `insn_load`,
  `insn_store`, `insn_misc`), plus the operand rules and trees for `jal`,
  `jalr`, `li` and `ret`.

## Install

```
pip install .
```

## Reading source text

`SourceFile.getc` reads one character at a `Pos` and advances it. CR, LF and
CRLF all read as a single `"\n"`; at end of file it returns `""`.

```python
from lilycc.compiler import CompilerContext, Pos

with CompilerContext() as ctx:
    src = ctx.create_source("<memory>", b"ab\r\ncd")
    pos = Pos()
    chars = []
    while c := src.getc(pos):
        chars.append(c)
    print(repr("".join(chars)))   # 'ab\ncd'
```

`CompilerContext.open_source(path)` opens a file from disk instead and raises
`OSError` if it cannot be opened. Leaving the `with` block closes every
source file and drops the collected diagnostics.

## Diagnostics

```python
from lilycc.compiler import CompilerContext, DiagLevel, Pos, print_diagnostic

with CompilerContext() as ctx:
    diag = ctx.diagnostic(Pos(), DiagLevel.WARN, "Constant is too large")
    print_diagnostic(diag)
```

Diagnostics are printed with ANSI colours as `path:line:col: level: message`,
with one-based line and column, or `???:?:?` when the position has no source
file.

## Instruction prototypes and selection trees

```python
from lilycc.insn_proto import OP2_ADD, expr_tree_size
from lilycc.isel_tree import isel_tree_generate
from lilycc.rv_instructions import RvExt, RvOpcode, insn_alu_ri, insn_alu_rr

addi = insn_alu_ri(RvExt.BASE, RvOpcode.OP_IMM, 0, OP2_ADD, 12, True, True)
add = insn_alu_rr(RvExt.BASE, RvOpcode.OP, 0, 0, OP2_ADD, True, True)

print(expr_tree_size(addi.tree))  # 2
root = isel_tree_generate([addi, add])
print(root.expr.op)               # add
```

## What this package does not do

There is no C tokenizer, parser or front end, no IR, interpreter or
optimizer, and no machine code emission. The RISC-V module provides helpers
to build instruction prototypes but no ready-made instruction table, and a
selection tree can be built but not yet matched against IR. There is no
command-line program.

## Running the tests

```
pip install .[test]
pytest
```