from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser, Delimited, Optional, Punctuated, skipWs
from sdlgen.Ident import IDENT, IDENT_OR_KW, Keyword
from sdlgen.Literal import LITERAL
from sdlgen.Op import Op, ANY_OP, Precedence

class Expr:
  def getSpan(self):
    return self.span

  def __str__(self):
    return self.span.getString()

class Parenthesized(Expr):
  def __init__(self, span, expr):
    self.span = span
    self.expr = expr

class IdentExpr(Expr):
  def __init__(self, ident):
    self.ident = ident
    self.span = ident.span

  def __str__(self):
    return self.ident.getString()

class LiteralExpr(Expr):
  def __init__(self, literal):
    self.literal = literal
    self.span = literal.span

class BoolExpr(Expr):
  def __init__(self, span, value):
    self.span = span
    self.value = value

class FnCall(Expr):
  def __init__(self, span, func, args):
    self.span = span
    self.func = func
    self.args = args

  def getName(self):
    if isinstance(self.func, IdentExpr):
      return self.func.ident.getString()
    return None

class Cast(Expr):
  def __init__(self, span, ty, expr):
    self.span = span
    self.ty = ty
    self.expr = expr

class SizeOf(Expr):
  def __init__(self, span, ty=None, expr=None):
    self.span = span
    self.ty = ty
    self.expr = expr

class UnaryOp(Expr):
  def __init__(self, span, op, expr):
    self.span = span
    self.op = op
    self.expr = expr

class BinaryOp(Expr):
  def __init__(self, span, op, lhs, rhs):
    self.span = span
    self.op = op
    self.lhs = lhs
    self.rhs = rhs

class PostOp(Expr):
  def __init__(self, span, op, expr):
    self.span = span
    self.op = op
    self.expr = expr

class Ternary(Expr):
  def __init__(self, span, cond, onTrue, onFalse):
    self.span = span
    self.cond = cond
    self.onTrue = onTrue
    self.onFalse = onFalse

class ArrayIndex(Expr):
  def __init__(self, span, expr, index):
    self.span = span
    self.expr = expr
    self.index = index

class MemberAccess(Expr):
  def __init__(self, span, op, expr, member):
    self.span = span
    self.op = op
    self.expr = expr
    self.member = member

class Ambiguous(Expr):
  """
  Text that parses completely in more than one way, typically a macro body.
  Every alternative is kept as a (kind, value) pair with kind one of 'expr',
  'type' or 'items'.
  """

  def __init__(self, span):
    self.span = span
    self.alternatives = []

  def pushExpr(self, expr):
    self.alternatives.append(('expr', expr))

  def pushType(self, ty):
    self.alternatives.append(('type', ty))

  def pushItems(self, items):
    self.alternatives.append(('items', items))

  def exprs(self):
    return [value for (kind, value) in self.alternatives if kind == 'expr']

OPEN_PAREN = Op('(')
CLOSE_PAREN = Op(')')
CLOSE_BRACKET = Op(']')
COLON = Op(':')
COMMA = Op(',')
SIZEOF = Keyword('sizeof')
TRUE = Keyword('true')
FALSE = Keyword('false')
UNARY_OPERAND = Precedence.rightToLeft(2)
AMBIGUOUS_CAST_OPERATORS = frozenset(['+', '-', '*', '&', '++', '--'])

class ExprParser(Parser):
  def __init__(self, precedence):
    self.precedence = precedence

  def desc(self):
    return 'expression'

  def tryParse(self, ctx, input):
    return parseExprWithPrecedence(ctx, input, self.precedence)

EXPR = ExprParser(Precedence.max())
EXPR_NO_COMMA = ExprParser(Precedence.comma())
CALL_ARGS = Optional(Punctuated(EXPR_NO_COMMA, COMMA), [])

def _parseCast(ctx, input):
  from sdlgen.Type import TYPE, IdentType
  (rest, openParen) = OPEN_PAREN.tryParse(ctx, input)
  if openParen is None:
    return (input, None)
  # this may just be a parenthesized expression, so failures here backtrack
  try:
    (rest, ty) = TYPE.tryParse(ctx, skipWs(ctx, rest))
  except ParseError:
    return (input, None)
  if ty is None:
    return (input, None)
  (rest, closeParen) = CLOSE_PAREN.tryParse(ctx, skipWs(ctx, rest))
  if closeParen is None:
    return (input, None)
  rest = skipWs(ctx, rest)
  if isinstance(ty, IdentType):
    # `(x) - 1` subtracts from x
    (after, op) = ANY_OP.tryParse(ctx, rest)
    if op is not None and op.getString() in AMBIGUOUS_CAST_OPERATORS:
      return (input, None)
  (rest, expr) = parseExprWithPrecedence(ctx, rest, UNARY_OPERAND)
  if expr is None:
    return (input, None)
  return (rest, Cast(openParen.span.join(expr.span), ty, expr))

def _parseSizeOf(ctx, input):
  from sdlgen.Type import TYPE
  (rest, keyword) = SIZEOF.tryParse(ctx, input)
  if keyword is None:
    return (input, None)
  rest = skipWs(ctx, rest)
  (inner, openParen) = OPEN_PAREN.tryParse(ctx, rest)
  if openParen is not None:
    (inner, ty) = TYPE.tryParse(ctx, skipWs(ctx, inner))
    if ty is not None:
      (inner, closeParen) = CLOSE_PAREN.tryParse(ctx, skipWs(ctx, inner))
      if closeParen is not None:
        return (inner, SizeOf(keyword.span.join(closeParen.span), ty=ty))
  (rest, expr) = parseExprWithPrecedence(ctx, rest, UNARY_OPERAND)
  if expr is None:
    raise ParseError(keyword.span, 'missing operand for `sizeof`')
  return (rest, SizeOf(keyword.span.join(expr.span), expr=expr))

def _parseFnCall(ctx, input):
  (rest, ident) = IDENT_OR_KW.tryParse(ctx, input)
  if ident is None:
    return (input, None)
  if ident.getString() == 'defined':
    # `defined X` without parentheses
    (after, name) = IDENT_OR_KW.tryParse(ctx, skipWs(ctx, rest))
    if name is not None:
      return (after, FnCall(ident.span.join(name.span), IdentExpr(ident), [IdentExpr(name)]))
  (rest, args) = Delimited(OPEN_PAREN, CALL_ARGS, CLOSE_PAREN).tryParse(ctx, skipWs(ctx, rest))
  if args is None:
    return (input, None)
  return (rest, FnCall(ident.span.join(args.close.span), IdentExpr(ident), Punctuated.values(args.value)))

class FnCallParser(Parser):
  def desc(self):
    return 'function call'

  def tryParse(self, ctx, input):
    return _parseFnCall(ctx, input)

FN_CALL = FnCallParser()

def parsePrimary(ctx, input):
  (rest, op) = ANY_OP.tryParseUnop(ctx, input)
  if op is not None:
    (precedence, op) = op
    (rest, expr) = parseExprWithPrecedence(ctx, skipWs(ctx, rest), precedence)
    if expr is not None:
      return (rest, UnaryOp(op.span.join(expr.span), op, expr))
  (rest, cast) = _parseCast(ctx, input)
  if cast is not None:
    return (rest, cast)
  (rest, sizeof) = _parseSizeOf(ctx, input)
  if sizeof is not None:
    return (rest, sizeof)
  (rest, paren) = Delimited(OPEN_PAREN, EXPR, CLOSE_PAREN).tryParse(ctx, input)
  if paren is not None:
    return (rest, Parenthesized(paren.span, paren.value))
  for (keyword, value) in ((TRUE, True), (FALSE, False)):
    (rest, kw) = keyword.tryParse(ctx, input)
    if kw is not None:
      return (rest, BoolExpr(kw.span, value))
  (rest, call) = _parseFnCall(ctx, input)
  if call is not None:
    return (rest, call)
  (rest, ident) = IDENT.tryParse(ctx, input)
  if ident is None:
    # macro arguments named like keywords are renamed
    (rest, ident) = IDENT_OR_KW.tryParseIf(ctx, input, lambda i: i.name is not None)
  if ident is not None:
    return (rest, IdentExpr(ident))
  (rest, literal) = LITERAL.tryParse(ctx, input)
  if literal is not None:
    return (rest, LiteralExpr(literal))
  return (input, None)

def parseExprWithPrecedence(ctx, input, precedence):
  """
  Precedence climbing. Operators are folded into the left hand side while
  `precedence` allows them; a right hand side is parsed with the operator's
  own precedence so associativity falls out of Precedence.parseRhsFirst.
  """
  (rest, lhs) = parsePrimary(ctx, input)
  if lhs is None:
    return (input, None)
  while True:
    (afterOp, binop) = ANY_OP.tryParseBinop(ctx, skipWs(ctx, rest))
    if binop is None:
      break
    (opPrecedence, op) = binop
    if not precedence.parseRhsFirst(opPrecedence):
      break
    afterOp = skipWs(ctx, afterOp)
    spelling = op.getString()
    if spelling in ('++', '--'):
      rest = afterOp
      lhs = PostOp(lhs.span.join(op.span), op, lhs)
    elif spelling == '(':
      (rest, args) = CALL_ARGS.tryParse(ctx, afterOp)
      (rest, closeParen) = CLOSE_PAREN.parse(ctx, skipWs(ctx, rest))
      lhs = FnCall(lhs.span.join(closeParen.span), lhs, Punctuated.values(args))
    elif spelling == '[':
      (rest, index) = EXPR.parse(ctx, afterOp)
      (rest, closeBracket) = CLOSE_BRACKET.parse(ctx, skipWs(ctx, rest))
      lhs = ArrayIndex(lhs.span.join(closeBracket.span), lhs, index)
    elif spelling in ('.', '->'):
      (rest, member) = IDENT_OR_KW.parse(ctx, afterOp)
      lhs = MemberAccess(lhs.span.join(member.span), op, lhs, member)
    elif spelling == '?':
      (rest, onTrue) = EXPR.parse(ctx, afterOp)
      (rest, colon) = COLON.parse(ctx, skipWs(ctx, rest))
      (rest, onFalse) = ExprParser(opPrecedence).parse(ctx, skipWs(ctx, rest))
      lhs = Ternary(lhs.span.join(onFalse.span), lhs, onTrue, onFalse)
    else:
      (rest, rhs) = ExprParser(opPrecedence).parse(ctx, afterOp)
      lhs = BinaryOp(lhs.span.join(rhs.span), op, lhs, rhs)
  return (rest, lhs)
