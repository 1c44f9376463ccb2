from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser, skipWs
from sdlgen.Ident import Ident, IDENT, Keyword
from sdlgen.Op import Op
from sdlgen.DocComment import DOC_COMMENT
from sdlgen.Type import TYPE_WITH_REQ_IDENT

class CanCopy:
  DEFAULT = 'Default'
  NEVER = 'Never'

class StructField:
  def __init__(self, span, doc, ident, ty):
    self.span = span
    self.doc = doc
    self.ident = ident
    self.ty = ty

  def __repr__(self):
    return '<StructField %s>' % (self.ident)

class StructOrUnion:
  def __init__(self, span, doc, kind, ident, fields, generatedIdent=False):
    self.span = span
    self.doc = doc
    self.kind = kind
    self.ident = ident
    self.fields = fields
    self.generatedIdent = generatedIdent
    self.canCopy = CanCopy.DEFAULT
    self.canConstruct = True
    if fields is not None:
      for field in fields:
        if field.ident.getString() == 'refcount':
          # reference counted objects must not be duplicated bitwise
          self.canCopy = CanCopy.NEVER
          self.canConstruct = False

  def isStruct(self):
    return self.kind == 'struct'

  def isOpaque(self):
    return self.fields is None

  def __repr__(self):
    return '<StructOrUnion %s %s>' % (self.kind, self.ident)

class StructFieldGroupParser(Parser):
  COMMA = Op(',')
  SEMI = Op(';')

  def desc(self):
    return 'struct field'

  def tryParse(self, ctx, input):
    (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
    (rest, typeWithIdent) = TYPE_WITH_REQ_IDENT.tryParse(ctx, rest)
    if typeWithIdent is None:
      return (input, None)
    ty = typeWithIdent.ty
    idents = [typeWithIdent.ident]
    rest = skipWs(ctx, rest)
    (afterComma, comma) = self.COMMA.tryParse(ctx, rest)
    while comma is not None:
      if not ty.strictlyLeftAligned():
        raise ParseError(comma.span, "multiple declaration for pointer and array types isn't supported")
      (rest, ident) = IDENT.parse(ctx, skipWs(ctx, afterComma))
      idents.append(ident)
      rest = skipWs(ctx, rest)
      (afterComma, comma) = self.COMMA.tryParse(ctx, rest)
    (rest, semi) = self.SEMI.parse(ctx, rest)
    span = input.start().join(semi.span)
    (rest, doc) = DOC_COMMENT.tryParseCombinePostfix(ctx, rest, doc)
    return (skipWs(ctx, rest), [StructField(span, doc, ident, ty) for ident in idents])

STRUCT_FIELD_GROUP = StructFieldGroupParser()

class StructOrUnionParser(Parser):
  KEYWORDS = [Keyword('struct'), Keyword('union')]
  OPEN_BRACE = Op('{')
  CLOSE_BRACE = Op('}')

  def desc(self):
    return 'struct or union'

  def _parseFields(self, ctx, input, ident):
    (rest, openBrace) = self.OPEN_BRACE.tryParse(ctx, input)
    if openBrace is None:
      return (input, None)
    fields = []
    rest = skipWs(ctx, rest)
    with ctx.parentStructGuard(ident):
      while True:
        (rest, group) = STRUCT_FIELD_GROUP.tryParse(ctx, rest)
        if group is None:
          break
        fields.extend(group)
    (rest, closeBrace) = self.CLOSE_BRACE.parse(ctx, skipWs(ctx, rest))
    return (rest, fields)

  def tryParse(self, ctx, input):
    (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
    for keyword in self.KEYWORDS:
      (rest, kw) = keyword.tryParse(ctx, rest)
      if kw is not None:
        break
    else:
      return (input, None)
    kind = kw.getString()
    (rest, ident) = IDENT.tryParse(ctx, skipWs(ctx, rest))
    body = skipWs(ctx, rest)
    generated = False
    if ident is None and self.OPEN_BRACE.tryParse(ctx, body)[1] is not None:
      if ctx.parentStructIdent is not None:
        name = '%s%s%d' % (ctx.parentStructIdent.getString(), kind.capitalize(), ctx.nextSiblingIndex())
        ident = Ident(kw.span, name)
        generated = True
      elif ctx.activeTypedef is not None:
        ident = ctx.activeTypedef
    (after, fields) = self._parseFields(ctx, body, ident)
    if fields is not None:
      rest = after
    ctx.logDebug('parsed %s %s' % (kind, ident))
    span = kw.span.start().join(rest.start())
    return (rest, StructOrUnion(span, doc, kind, ident, fields, generated))

STRUCT_OR_UNION = StructOrUnionParser()
