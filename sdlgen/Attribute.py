from sdlgen.Combinators import Parser, Balanced, Optional, Many, skipWs
from sdlgen.Ident import IDENT, IDENT_OR_KW
from sdlgen.Op import Op

ABI = 'abi'
ARG = 'arg'
FN = 'fn'

PLAIN_ATTRIBUTES = {
  ABI: frozenset([
    '__cdecl', 'APIENTRY', 'APIENTRYP', 'EGLAPIENTRY', 'EGLAPIENTRYP',
    'GLAPIENTRY', 'GL_APIENTRY', 'GL_APIENTRYP', 'SDLCALL', 'WINAPI'
  ]),
  ARG: frozenset([
    'SDL_PRINTF_FORMAT_STRING', 'SDL_SCANF_FORMAT_STRING', 'SDL_UNUSED'
  ]),
  FN: frozenset([
    'EGLAPI', 'GLAPI', 'GL_APICALL', 'SDL_ANALYZER_NORETURN', 'SDL_DECLSPEC',
    'SDL_DEPRECATED', 'SDL_FORCE_INLINE', 'SDL_MALLOC', 'SDLMAIN_DECLSPEC',
    '__inline', '__inline__', 'inline'
  ])
}

CALL_ATTRIBUTES = {
  ABI: frozenset(['__attribute__']),
  ARG: frozenset([
    'SDL_IN_BYTECAP', 'SDL_OUT_BYTECAP', 'SDL_INOUT_Z_CAP', 'SDL_OUT_Z_CAP'
  ]),
  FN: frozenset([
    'SDL_ACQUIRE', 'SDL_ACQUIRE_SHARED', 'SDL_ALLOC_SIZE', 'SDL_ALLOC_SIZE2',
    'SDL_PRINTF_VARARG_FUNC', 'SDL_PRINTF_VARARG_FUNCV', 'SDL_RELEASE',
    'SDL_RELEASE_GENERIC', 'SDL_SCANF_VARARG_FUNC', 'SDL_SCANF_VARARG_FUNCV',
    'SDL_TRY_ACQUIRE', 'SDL_TRY_ACQUIRE_SHARED', 'SDL_WPRINTF_VARARG_FUNC',
    'SDL_WPRINTF_VARARG_FUNCV'
  ])
}

DESCRIPTIONS = {
  ABI: 'abi attribute',
  ARG: 'argument attribute',
  FN: 'function attribute'
}

class Attribute:
  """
  A calling convention marker or annotation macro. These are kept as opaque
  tokens; `args` holds the raw argument text span for the call forms.
  """

  def __init__(self, ident, args=None):
    self.ident = ident
    self.args = args
    self.span = ident.span if args is None else ident.span.join(args.span)

  def getString(self):
    return self.ident.getString()

  def __repr__(self):
    return '<Attribute %s>' % (self.getString())

class AttributeParser(Parser):
  ARGS = Balanced(Op('('), Op(')'))

  def __init__(self, kind):
    self.kind = kind

  def desc(self):
    return DESCRIPTIONS[self.kind]

  def tryParse(self, ctx, input):
    # `inline` is a keyword, everything else is a plain identifier
    identParser = IDENT_OR_KW if self.kind == FN else IDENT
    (rest, ident) = identParser.tryParse(ctx, skipWs(ctx, input))
    if ident is None:
      return (input, None)
    name = ident.getString()
    if name in PLAIN_ATTRIBUTES[self.kind]:
      return (rest, Attribute(ident))
    if name in CALL_ATTRIBUTES[self.kind]:
      (rest, args) = self.ARGS.parse(ctx, skipWs(ctx, rest))
      return (rest, Attribute(ident, args))
    return (input, None)

class AttributesParser(Parser):
  def __init__(self, kind):
    self.kind = kind
    self.attributes = Optional(Many(AttributeParser(kind)), [])

  def desc(self):
    return DESCRIPTIONS[self.kind]

  def tryParse(self, ctx, input):
    (rest, attributes) = self.attributes.tryParse(ctx, input)
    return (skipWs(ctx, rest), attributes)

def contains(attributes, name):
  for attribute in attributes:
    if attribute.getString() == name:
      return True
  return False

FN_ABI = AttributeParser(ABI)
ARG_ATTRIBUTE = AttributeParser(ARG)
FN_ATTRIBUTES = AttributesParser(FN)
