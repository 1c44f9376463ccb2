from sdlgen.Combinators import Parser, skipWs
from sdlgen.Ident import IDENT, Keyword
from sdlgen.Op import Op
from sdlgen.DocComment import DOC_COMMENT
from sdlgen.Expr import EXPR_NO_COMMA

class EnumVariant:
  def __init__(self, doc, ident, expr, cond=None):
    from sdlgen.PreProcessor import Conditional
    self.doc = doc
    self.ident = ident
    self.expr = expr
    self.cond = cond if cond is not None else Conditional()

  def __repr__(self):
    return '<EnumVariant %s>' % (self.ident)

class Enum:
  def __init__(self, span, doc, ident, variants, baseType=None):
    from sdlgen.Type import PrimitiveType
    self.span = span
    self.doc = doc
    self.ident = ident
    self.variants = variants
    self.baseType = baseType if baseType is not None else PrimitiveType(None, 'int')

  def __repr__(self):
    return '<Enum %s (%d variants)>' % (self.ident, len(self.variants))

def mergePp(block):
  """Flatten an #if/#elif/#else chain of variants, guarding each by its branch."""
  from sdlgen.PreProcessor import Conditional
  variants = []
  cond = Conditional()
  while block is not None:
    cond.push(block.condExpr)
    for variant in block.block:
      variant.cond = variant.cond.within(cond.copy())
      variants.append(variant)
    block = block.elseBlock
  return variants

class EnumVariantsParser(Parser):
  ASSIGN = Op('=')
  COMMA = Op(',')

  def desc(self):
    return 'enum variants'

  def tryParse(self, ctx, input):
    from sdlgen.PreProcessor import PreProcBlockParser
    blockParser = PreProcBlockParser(self)
    variants = []
    rest = input
    while True:
      rest = skipWs(ctx, rest)
      (after, block) = blockParser.tryParse(ctx, rest)
      if block is not None:
        variants.extend(mergePp(block))
        rest = after
        continue
      (after, doc) = DOC_COMMENT.tryParse(ctx, rest)
      (after, ident) = IDENT.tryParse(ctx, skipWs(ctx, after))
      if ident is None:
        if doc is not None:
          # group documentation isn't attached to anything
          rest = after
          continue
        break
      after = skipWs(ctx, after)
      expr = None
      (afterAssign, assign) = self.ASSIGN.tryParse(ctx, after)
      if assign is not None:
        (after, expr) = EXPR_NO_COMMA.parse(ctx, skipWs(ctx, afterAssign))
        after = skipWs(ctx, after)
      (after, comma) = self.COMMA.tryParse(ctx, after)
      (after, doc) = DOC_COMMENT.tryParseCombinePostfix(ctx, after, doc)
      variants.append(EnumVariant(doc, ident, expr))
      rest = after
      if comma is None:
        break
    return (rest, variants)

ENUM_VARIANTS = EnumVariantsParser()

class EnumParser(Parser):
  KEYWORD = Keyword('enum')
  COLON = Op(':')
  OPEN_BRACE = Op('{')
  CLOSE_BRACE = Op('}')

  def desc(self):
    return 'enum'

  def tryParse(self, ctx, input):
    from sdlgen.Type import TYPE
    (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
    (rest, keyword) = self.KEYWORD.tryParse(ctx, rest)
    if keyword is None:
      return (input, None)
    (rest, ident) = IDENT.tryParse(ctx, skipWs(ctx, rest))
    rest = skipWs(ctx, rest)
    baseType = None
    (afterColon, colon) = self.COLON.tryParse(ctx, rest)
    if colon is not None:
      (rest, baseType) = TYPE.parse(ctx, skipWs(ctx, afterColon))
      rest = skipWs(ctx, rest)
    (rest, openBrace) = self.OPEN_BRACE.parse(ctx, rest)
    (rest, variants) = ENUM_VARIANTS.tryParse(ctx, rest)
    (rest, closeBrace) = self.CLOSE_BRACE.parse(ctx, skipWs(ctx, rest))
    span = (doc.span if doc is not None else keyword.span).join(closeBrace.span)
    ctx.logDebug('parsed enum %s with %d variants' % (ident, len(variants)))
    return (rest, Enum(span, doc, ident, variants, baseType))

ENUM = EnumParser()
