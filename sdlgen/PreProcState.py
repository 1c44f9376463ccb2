from sdlgen.ParseError import ParseError, UnsupportedConstruct
from sdlgen.Ident import Ident
from sdlgen.Literal import IntegerLiteral
from sdlgen.PreProcessor import ConditionalExpr, DefineValue
from sdlgen.Logger import Factory as LoggerFactory

# #if arithmetic is done in intmax_t
INTMAX_BITS = 64

def toIntmax(value):
  value &= (1 << INTMAX_BITS) - 1
  if value >> (INTMAX_BITS - 1):
    value -= 1 << INTMAX_BITS
  return value

class PreProcState:
  """
  The #define table of one emission pass, and the evaluator for the #if
  conditions that decide which branch of a preprocessor block is live.
  Identifiers that were never defined count as not defined and evaluate to 0.
  """

  def __init__(self, module=None, logger=None):
    self.defined = dict()
    self.undefined = set()
    self.bindings = [dict()]
    self.expanding = set()
    self.logger = logger or LoggerFactory().getClassLogger(__name__, self.__class__.__name__)

    self.evalActions = {
      'Parenthesized': self.eval_Parenthesized,
      'IdentExpr': self.eval_IdentExpr,
      'LiteralExpr': self.eval_LiteralExpr,
      'BoolExpr': self.eval_BoolExpr,
      'FnCall': self.eval_FnCall,
      'Cast': self.eval_Cast,
      'UnaryOp': self.eval_UnaryOp,
      'BinaryOp': self.eval_BinaryOp,
      'Ternary': self.eval_Ternary,
      'Ambiguous': self.eval_Ambiguous
    }

    self.binaryActions = {
      '+': self.eval_Add,
      '-': self.eval_Sub,
      '*': self.eval_Mul,
      '/': self.eval_Div,
      '%': self.eval_Mod,
      '<<': self.eval_LeftShift,
      '>>': self.eval_RightShift,
      '<': self.eval_LessThan,
      '>': self.eval_GreaterThan,
      '<=': self.eval_LessThanEq,
      '>=': self.eval_GreaterThanEq,
      '==': self.eval_Equals,
      '!=': self.eval_NotEquals,
      '&': self.eval_BitAND,
      '|': self.eval_BitOR,
      '^': self.eval_BitXOR,
      '&&': self.eval_And,
      '||': self.eval_Or,
      ',': self.eval_Comma
    }

    self.undefine(Ident.inline('__cplusplus'))
    if module:
      self.undefine(Ident.inline('SDL_%s_h_' % (module)))

  def define(self, ident, args, value):
    key = ident.getString()
    if key in self.defined:
      raise ParseError(ident.span, 'already defined')
    self.undefined.discard(key)
    self.defined[key] = (ident, args, value)

  def undefine(self, ident):
    key = ident.getString()
    self.defined.pop(key, None)
    self.undefined.add(key)

  def lookup(self, ident):
    return self.defined.get(ident.getString())

  def isDefined(self, ident):
    return ident.getString() in self.defined

  def evalCondition(self, condExpr):
    if condExpr.kind == ConditionalExpr.IFDEF:
      return self.isDefined(condExpr.value)
    if condExpr.kind == ConditionalExpr.IFNDEF:
      return not self.isDefined(condExpr.value)
    return self._evalInt(condExpr.value) != 0

  def _eval(self, expr):
    action = self.evalActions.get(expr.__class__.__name__)
    if action is None:
      raise UnsupportedConstruct(expr.getSpan(), "can't evaluate this in a preprocessor condition")
    return action(expr)

  def _evalInt(self, expr):
    return int(self._eval(expr))

  def eval_Parenthesized(self, expr):
    return self._eval(expr.expr)

  def eval_Cast(self, expr):
    return self._eval(expr.expr)

  def eval_Ambiguous(self, expr):
    exprs = expr.exprs()
    if not exprs:
      raise UnsupportedConstruct(expr.span, "can't evaluate this in a preprocessor condition")
    return self._eval(exprs[0])

  def eval_BoolExpr(self, expr):
    return 1 if expr.value else 0

  def eval_LiteralExpr(self, expr):
    if not isinstance(expr.literal, IntegerLiteral):
      raise UnsupportedConstruct(expr.span, 'expected an integer in a preprocessor condition')
    return expr.literal.value

  def eval_IdentExpr(self, expr):
    name = expr.ident.getString()
    for scope in reversed(self.bindings):
      if name in scope:
        return scope[name]
    define = self.defined.get(name)
    if define is None or name in self.expanding:
      return 0
    (ident, args, value) = define
    if args is not None or value.kind != DefineValue.EXPR:
      return 0
    self.expanding.add(name)
    try:
      return self._eval(value.value)
    finally:
      self.expanding.discard(name)

  def eval_FnCall(self, expr):
    name = expr.getName()
    if name == 'defined':
      if len(expr.args) != 1 or expr.args[0].__class__.__name__ != 'IdentExpr':
        raise ParseError(expr.span, 'expected identifier after `defined`')
      return 1 if self.isDefined(expr.args[0].ident) else 0
    define = self.defined.get(name) if name is not None else None
    if define is None or define[1] is None or define[2].kind != DefineValue.EXPR or name in self.expanding:
      self.logger.debug('treating `%s` as 0 in preprocessor condition' % (expr.span.getString()))
      return 0
    (ident, args, value) = define
    if len(args) != len(expr.args):
      raise ParseError(expr.span, 'wrong number of arguments for `%s`' % (name))
    scope = dict((arg.ident.getString(), self._evalInt(argExpr)) for (arg, argExpr) in zip(args, expr.args))
    self.bindings.append(scope)
    self.expanding.add(name)
    try:
      return self._eval(value.value)
    finally:
      self.expanding.discard(name)
      self.bindings.pop()

  def eval_UnaryOp(self, expr):
    op = expr.op.getString()
    if op == '+':
      return self._evalInt(expr.expr)
    if op == '-':
      return -self._evalInt(expr.expr)
    if op == '!':
      return self.eval_Not(expr)
    if op == '~':
      return self.eval_BitNOT(expr)
    raise UnsupportedConstruct(expr.op.span, 'unsupported operator in preprocessor condition')

  def eval_BinaryOp(self, expr):
    action = self.binaryActions.get(expr.op.getString())
    if action is None:
      raise UnsupportedConstruct(expr.op.span, 'unsupported operator in preprocessor condition')
    return action(expr)

  def eval_Ternary(self, expr):
    if self._evalInt(expr.cond):
      return self._evalInt(expr.onTrue)
    else:
      return self._evalInt(expr.onFalse)

  def eval_Add(self, expr):
    return self._evalInt(expr.lhs) + self._evalInt(expr.rhs)

  def eval_Sub(self, expr):
    return self._evalInt(expr.lhs) - self._evalInt(expr.rhs)

  def eval_Mul(self, expr):
    return self._evalInt(expr.lhs) * self._evalInt(expr.rhs)

  def eval_Div(self, expr):
    (lhs, rhs) = (self._evalInt(expr.lhs), self._evalInt(expr.rhs))
    if rhs == 0:
      raise ParseError(expr.span, 'division by zero in preprocessor condition')
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient

  def eval_Mod(self, expr):
    (lhs, rhs) = (self._evalInt(expr.lhs), self._evalInt(expr.rhs))
    if rhs == 0:
      raise ParseError(expr.span, 'division by zero in preprocessor condition')
    return lhs - rhs * self.eval_Div(expr)

  def _shiftOperands(self, expr):
    (lhs, rhs) = (self._evalInt(expr.lhs), self._evalInt(expr.rhs))
    if rhs < 0 or rhs >= INTMAX_BITS:
      raise ParseError(expr.span, 'invalid shift count in preprocessor condition')
    return (lhs, rhs)

  def eval_LeftShift(self, expr):
    (lhs, rhs) = self._shiftOperands(expr)
    return toIntmax(lhs << rhs)

  def eval_RightShift(self, expr):
    (lhs, rhs) = self._shiftOperands(expr)
    return lhs >> rhs

  def eval_LessThan(self, expr):
    return self._evalInt(expr.lhs) < self._evalInt(expr.rhs)

  def eval_GreaterThan(self, expr):
    return self._evalInt(expr.lhs) > self._evalInt(expr.rhs)

  def eval_LessThanEq(self, expr):
    return self._evalInt(expr.lhs) <= self._evalInt(expr.rhs)

  def eval_GreaterThanEq(self, expr):
    return self._evalInt(expr.lhs) >= self._evalInt(expr.rhs)

  def eval_Equals(self, expr):
    return self._evalInt(expr.lhs) == self._evalInt(expr.rhs)

  def eval_NotEquals(self, expr):
    return self._evalInt(expr.lhs) != self._evalInt(expr.rhs)

  def eval_BitAND(self, expr):
    return self._evalInt(expr.lhs) & self._evalInt(expr.rhs)

  def eval_BitOR(self, expr):
    return self._evalInt(expr.lhs) | self._evalInt(expr.rhs)

  def eval_BitXOR(self, expr):
    return self._evalInt(expr.lhs) ^ self._evalInt(expr.rhs)

  def eval_BitNOT(self, expr):
    return ~self._evalInt(expr.expr)

  def eval_And(self, expr):
    return bool(self._evalInt(expr.lhs) and self._evalInt(expr.rhs))

  def eval_Or(self, expr):
    return bool(self._evalInt(expr.lhs) or self._evalInt(expr.rhs))

  def eval_Not(self, expr):
    return not self._evalInt(expr.expr)

  def eval_Comma(self, expr):
    self._eval(expr.lhs)
    return self._evalInt(expr.rhs)
