from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser, Balanced, skipWs
from sdlgen.Ident import IDENT, Keyword
from sdlgen.Op import Op
from sdlgen.Attribute import FN_ABI, FN_ATTRIBUTES
from sdlgen.DocComment import DOC_COMMENT
from sdlgen.Type import TYPE, FN_DECL_ARGS

class Function:
  def __init__(self, span, doc, static, extern, attr, abi, ident, returnType, args, body):
    self.span = span
    self.doc = doc
    self.static = static
    self.extern = extern
    self.attr = attr
    self.abi = abi
    self.ident = ident
    self.returnType = returnType
    self.args = args
    self.body = body

  def isPrototype(self):
    return self.body is None

  def __repr__(self):
    return '<Function %s>' % (self.ident)

class FunctionParser(Parser):
  STATIC = Keyword('static')
  EXTERN = Keyword('extern')
  SEMI = Op(';')
  BODY = Balanced(Op('{'), Op('}'))

  def desc(self):
    return 'function declaration'

  def tryParse(self, ctx, input):
    (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
    start = rest.start()
    (rest, static) = self.STATIC.tryParse(ctx, rest)
    rest = skipWs(ctx, rest)
    (rest, extern) = self.EXTERN.tryParse(ctx, rest)
    if static is not None and extern is not None:
      raise ParseError(static.span.join(extern.span), 'static extern')
    rest = skipWs(ctx, rest)
    (rest, attr) = FN_ATTRIBUTES.tryParse(ctx, rest)
    (rest, returnType) = TYPE.tryParse(ctx, skipWs(ctx, rest))
    if returnType is None:
      return (input, None)
    (rest, abi) = FN_ABI.tryParse(ctx, skipWs(ctx, rest))
    (rest, ident) = IDENT.tryParse(ctx, skipWs(ctx, rest))
    if ident is None:
      return (input, None)
    (rest, args) = FN_DECL_ARGS.tryParse(ctx, skipWs(ctx, rest))
    if args is None:
      return (input, None)
    (rest, attr2) = FN_ATTRIBUTES.tryParse(ctx, skipWs(ctx, rest))
    attr = attr + attr2
    rest = skipWs(ctx, rest)
    (after, semi) = self.SEMI.tryParse(ctx, rest)
    body = None
    if semi is not None:
      rest = after
    elif extern is not None:
      (rest, semi) = self.SEMI.parse(ctx, rest)
    else:
      try:
        (rest, body) = self.BODY.parse(ctx, rest)
      except ParseError as error:
        if error.getSpan().isEmpty():
          raise error.mapMessage('expected `;` or a body')
        raise
      body = body.inner
    span = start.join(rest.start())
    ctx.logDebug('parsed function %s' % (ident))
    return (rest, Function(span, doc, static is not None, extern is not None, attr, abi, ident, returnType, args, body))

FUNCTION = FunctionParser()
