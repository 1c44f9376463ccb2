from sdlgen.Span import Span
from sdlgen.Literal import IntegerLiteral, FloatLiteral, StringLiteral
from sdlgen.Op import OpToken
from sdlgen.Expr import Parenthesized, LiteralExpr, BoolExpr, UnaryOp, BinaryOp, Ambiguous

U31_MAX = (1 << 31) - 1

class Value:
  U31 = 'U31'
  F32 = 'F32'
  F64 = 'F64'
  STRING = 'String'
  BOOL = 'Bool'

  def __init__(self, kind, value):
    self.kind = kind
    self.value = value

  def __eq__(self, other):
    return isinstance(other, Value) and self.kind == other.kind and self.value == other.value

  def __hash__(self):
    return hash((self.kind, self.value))

  def __repr__(self):
    return '%s(%r)' % (self.kind, self.value)

def _evalLiteral(literal):
  if isinstance(literal, IntegerLiteral):
    if literal.value <= U31_MAX:
      return Value(Value.U31, literal.value)
    return None
  if isinstance(literal, FloatLiteral):
    return Value(Value.F32 if literal.kind == FloatLiteral.F32 else Value.F64, literal.value)
  if isinstance(literal, StringLiteral):
    return Value(Value.STRING, literal.value)
  return None

def _evalAdd(lhs, rhs):
  if lhs.kind != rhs.kind:
    return None
  if lhs.kind == Value.U31:
    total = lhs.value + rhs.value
    return Value(Value.U31, total) if total <= U31_MAX else None
  if lhs.kind in (Value.F32, Value.F64):
    return Value(lhs.kind, lhs.value + rhs.value)
  return None

def tryEval(expr):
  """
  Fold expr to a Value. Returns None for anything that isn't a constant
  under the folding rules; identifiers are never substituted.
  """
  if isinstance(expr, Parenthesized):
    return tryEval(expr.expr)
  if isinstance(expr, LiteralExpr):
    return _evalLiteral(expr.literal)
  if isinstance(expr, BoolExpr):
    return Value(Value.BOOL, expr.value)
  if isinstance(expr, UnaryOp) and expr.op.getString() == '+':
    value = tryEval(expr.expr)
    if value is not None and value.kind in (Value.U31, Value.F32, Value.F64):
      return value
    return None
  if isinstance(expr, BinaryOp):
    if expr.op.getString() != '+':
      return None
    lhs = tryEval(expr.lhs)
    if lhs is None:
      return None
    rhs = tryEval(expr.rhs)
    if rhs is None:
      return None
    return _evalAdd(lhs, rhs)
  if isinstance(expr, Ambiguous):
    values = [value for value in map(tryEval, expr.exprs()) if value is not None]
    if len(values) == 1:
      return values[0]
    return None
  return None

def plusOne(expr):
  """The expression `expr + 1`, spanning expr."""
  one = IntegerLiteral.one()
  return BinaryOp(expr.span, OpToken(Span.inline('+')), expr, LiteralExpr(one))

def tryEvalPlusOne(expr):
  return tryEval(plusOne(expr))
