from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser, Delimited, Optional, Terminated, skipWs
from sdlgen.Ident import Keyword
from sdlgen.Op import Op
from sdlgen.DocComment import DOC_COMMENT, DOC_COMMENT_FILE
from sdlgen.Expr import EXPR, EXPR_NO_COMMA, FN_CALL
from sdlgen.Type import TYPE_WITH_REQ_IDENT, TYPEDEF_ITEM
from sdlgen.Enum import ENUM
from sdlgen.Struct import STRUCT_OR_UNION
from sdlgen.Function import FUNCTION
from sdlgen.PreProcessor import PRE_PROC_LINE, PRE_PROC_BLOCK, PreProcLine

DO = Keyword('do')
WHILE = Keyword('while')
IF = Keyword('if')
ELSE = Keyword('else')
RETURN = Keyword('return')
BREAK = Keyword('break')
CONTINUE = Keyword('continue')
OPEN_PAREN = Op('(')
CLOSE_PAREN = Op(')')
OPEN_BRACE = Op('{')
CLOSE_BRACE = Op('}')
ASSIGN = Op('=')
SEMI = Op(';')

class Block:
  def __init__(self, span, items):
    self.span = span
    self.items = items

  def __repr__(self):
    return '<Block (%d items)>' % (len(self.items))

class DoWhile:
  def __init__(self, span, block, cond):
    self.span = span
    self.block = block
    self.cond = cond

class While:
  def __init__(self, span, cond, block):
    self.span = span
    self.cond = cond
    self.block = block

class IfElse:
  def __init__(self, span, cond, onTrue, onFalse):
    self.span = span
    self.cond = cond
    self.onTrue = onTrue
    self.onFalse = onFalse

class Return:
  def __init__(self, span, expr):
    self.span = span
    self.expr = expr

class Break:
  def __init__(self, span):
    self.span = span

class Continue:
  def __init__(self, span):
    self.span = span

class VarDecl:
  def __init__(self, span, ident, ty, init):
    self.span = span
    self.ident = ident
    self.ty = ty
    self.init = init

  def __repr__(self):
    return '<VarDecl %s>' % (self.ident)

class ExprItem:
  def __init__(self, span, expr):
    self.span = span
    self.expr = expr

class FnCallItem:
  """A macro invocation at item level without a trailing `;`."""

  def __init__(self, call):
    self.call = call
    self.span = call.span

class FileDoc:
  def __init__(self, doc):
    self.doc = doc
    self.span = doc.span

class BlockParser(Parser):
  def desc(self):
    return 'block'

  def tryParse(self, ctx, input):
    (rest, block) = Delimited(OPEN_BRACE, Optional(ITEMS, []), CLOSE_BRACE).tryParse(ctx, input)
    if block is None:
      return (input, None)
    return (rest, Block(block.span, block.value))

BLOCK = BlockParser()

def _parseCondition(ctx, input):
  (rest, cond) = Delimited(OPEN_PAREN, EXPR, CLOSE_PAREN).parse(ctx, skipWs(ctx, input))
  return (skipWs(ctx, rest), cond.value)

class DoWhileParser(Parser):
  def desc(self):
    return 'do while'

  def tryParse(self, ctx, input):
    (rest, keyword) = DO.tryParse(ctx, input)
    if keyword is None:
      return (input, None)
    (rest, block) = BLOCK.parse(ctx, skipWs(ctx, rest))
    (rest, whileKw) = WHILE.parse(ctx, skipWs(ctx, rest))
    (rest, cond) = _parseCondition(ctx, rest)
    # macros leave out the `;`
    (after, semi) = SEMI.tryParse(ctx, rest)
    if semi is not None:
      rest = after
    return (rest, DoWhile(keyword.span.join(rest.start()), block, cond))

class WhileParser(Parser):
  def desc(self):
    return 'while'

  def tryParse(self, ctx, input):
    (rest, keyword) = WHILE.tryParse(ctx, input)
    if keyword is None:
      return (input, None)
    (rest, cond) = _parseCondition(ctx, rest)
    (rest, block) = BLOCK.parse(ctx, rest)
    return (rest, While(keyword.span.join(block.span), cond, block))

class IfElseParser(Parser):
  def desc(self):
    return 'if'

  def tryParse(self, ctx, input):
    (rest, keyword) = IF.tryParse(ctx, input)
    if keyword is None:
      return (input, None)
    (rest, cond) = _parseCondition(ctx, rest)
    (rest, onTrue) = BLOCK.parse(ctx, rest)
    span = keyword.span.join(onTrue.span)
    onFalse = None
    (after, elseKw) = ELSE.tryParse(ctx, skipWs(ctx, rest))
    if elseKw is not None:
      rest = skipWs(ctx, after)
      (after, elseIf) = self.tryParse(ctx, rest)
      if elseIf is not None:
        onFalse = Block(elseIf.span, [elseIf])
        rest = after
      else:
        (rest, onFalse) = BLOCK.parse(ctx, rest)
      span = span.join(onFalse.span)
    return (rest, IfElse(span, cond, onTrue, onFalse))

class ReturnParser(Parser):
  def desc(self):
    return 'return'

  def tryParse(self, ctx, input):
    (rest, keyword) = RETURN.tryParse(ctx, input)
    if keyword is None:
      return (input, None)
    (rest, expr) = EXPR.tryParse(ctx, skipWs(ctx, rest))
    (rest, semi) = SEMI.parse(ctx, skipWs(ctx, rest))
    return (rest, Return(keyword.span.join(semi.span), expr))

class JumpParser(Parser):
  def __init__(self, keyword, cls):
    self.keyword = keyword
    self.cls = cls

  def desc(self):
    return self.keyword.desc()

  def tryParse(self, ctx, input):
    (rest, keyword) = self.keyword.tryParse(ctx, input)
    if keyword is None:
      return (input, None)
    (rest, semi) = SEMI.parse(ctx, skipWs(ctx, rest))
    return (rest, self.cls(keyword.span.join(semi.span)))

class EnumItemParser(Parser):
  def desc(self):
    return 'enum'

  def tryParse(self, ctx, input):
    (rest, enum) = ENUM.tryParse(ctx, input)
    if enum is None:
      return (input, None)
    (rest, semi) = SEMI.parse(ctx, skipWs(ctx, rest))
    return (rest, enum)

class StructOrUnionItemParser(Parser):
  PARSER = Terminated(STRUCT_OR_UNION, SEMI)

  def desc(self):
    return 'struct or union item'

  def tryParse(self, ctx, input):
    (rest, struct) = self.PARSER.tryParse(ctx, input)
    if struct is None:
      return (input, None)
    if struct.ident is None:
      raise ParseError(struct.span, 'top level anonymous %s' % (struct.kind))
    return (rest, struct)

class VarDeclParser(Parser):
  def desc(self):
    return 'variable declaration'

  def tryParse(self, ctx, input):
    (rest, typeWithIdent) = TYPE_WITH_REQ_IDENT.tryParse(ctx, input)
    if typeWithIdent is None:
      return (input, None)
    rest = skipWs(ctx, rest)
    init = None
    (after, assign) = ASSIGN.tryParse(ctx, rest)
    if assign is not None:
      (rest, init) = EXPR_NO_COMMA.parse(ctx, skipWs(ctx, after))
      (rest, semi) = SEMI.parse(ctx, skipWs(ctx, rest))
    else:
      (rest, semi) = SEMI.tryParse(ctx, rest)
      if semi is None:
        return (input, None)
    span = input.start().join(semi.span)
    return (rest, VarDecl(span, typeWithIdent.ident, typeWithIdent.ty, init))

class ExprItemParser(Parser):
  PARSER = Terminated(EXPR, SEMI)

  def desc(self):
    return 'expression statement'

  def tryParse(self, ctx, input):
    (rest, expr) = self.PARSER.tryParse(ctx, input)
    if expr is None:
      return (input, None)
    return (rest, ExprItem(input.start().join(rest.start()), expr))

class FileDocParser(Parser):
  def desc(self):
    return 'file documentation'

  def tryParse(self, ctx, input):
    (rest, doc) = DOC_COMMENT_FILE.tryParse(ctx, input)
    if doc is None:
      # documentation at the very end of the input
      (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
      if doc is None or not rest.trimWscStart().isEmpty():
        return (input, None)
    return (rest, FileDoc(doc))

class FnCallItemParser(Parser):
  def desc(self):
    return 'macro call'

  def tryParse(self, ctx, input):
    (rest, call) = FN_CALL.tryParse(ctx, input)
    if call is None:
      return (input, None)
    return (rest, FnCallItem(call))

class PreProcItemParser(Parser):
  DIRECTIVE_ITEMS = frozenset([
    PreProcLine.DEFINE, PreProcLine.UNDEF, PreProcLine.INCLUDE,
    PreProcLine.PRAGMA, PreProcLine.ERROR, PreProcLine.WARNING
  ])

  def desc(self):
    return 'preprocessor item'

  def tryParse(self, ctx, input):
    (rest, line) = PRE_PROC_LINE.tryParse(ctx, input)
    if line is None:
      return (input, None)
    if line.kind in self.DIRECTIVE_ITEMS:
      return (rest, line.value)
    return PRE_PROC_BLOCK.tryParse(ctx, input)

class ItemParser(Parser):
  """
  Any one top level or statement item. The alternatives are tried in a fixed
  order and the first one that matches wins.
  """

  PARSERS = [
    BLOCK,
    PreProcItemParser(),
    DoWhileParser(),
    WhileParser(),
    IfElseParser(),
    ReturnParser(),
    JumpParser(BREAK, Break),
    JumpParser(CONTINUE, Continue),
    FUNCTION,
    TYPEDEF_ITEM,
    EnumItemParser(),
    StructOrUnionItemParser(),
    VarDeclParser(),
    ExprItemParser(),
    FnCallItemParser(),
    FileDocParser()
  ]

  def desc(self):
    return 'item'

  def tryParse(self, ctx, input):
    input = skipWs(ctx, input)
    for parser in self.PARSERS:
      (rest, item) = parser.tryParse(ctx, input)
      if item is not None:
        return (rest, item)
    return (input, None)

ITEM = ItemParser()

class ItemsParser(Parser):
  def desc(self):
    return 'items'

  def tryParse(self, ctx, input):
    items = []
    rest = input
    while True:
      (after, item) = ITEM.tryParse(ctx, rest)
      if item is None:
        break
      items.append(item)
      rest = after
    if not items:
      return (input, None)
    return (rest, items)

ITEMS = ItemsParser()
