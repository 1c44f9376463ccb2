from sdlgen.Span import Span
from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser, Balanced, Optional, Punctuated, skipWs
from sdlgen.Ident import Ident, IDENT, IDENT_OR_KW, Keyword
from sdlgen.Op import Op
from sdlgen.Attribute import FN_ABI, ARG_ATTRIBUTE
from sdlgen.DocComment import DOC_COMMENT
from sdlgen.Expr import EXPR

class Type:
  def __init__(self, span, isConst=False):
    self.span = span if span is not None else Span.none()
    self.isConst = isConst

  def getSpan(self):
    return self.span

  def strictlyLeftAligned(self):
    return False

  def isArrayOrPointer(self):
    return False

  def isVoid(self):
    return False

class PrimitiveType(Type):
  def __init__(self, span, name, isConst=False):
    super().__init__(span, isConst)
    self.name = name

  def strictlyLeftAligned(self):
    return True

  def isVoid(self):
    return self.name == 'void'

  def __eq__(self, other):
    return isinstance(other, PrimitiveType) and self.name == other.name and self.isConst == other.isConst

  def __hash__(self):
    return hash(self.name)

  def __repr__(self):
    return '<PrimitiveType %s%s>' % ('const ' if self.isConst else '', self.name)

class IdentType(Type):
  def __init__(self, span, ident, isConst=False):
    super().__init__(span, isConst)
    self.ident = ident

  def strictlyLeftAligned(self):
    return True

  def __eq__(self, other):
    return isinstance(other, IdentType) and self.ident == other.ident and self.isConst == other.isConst

  def __hash__(self):
    return hash(self.ident)

  def __repr__(self):
    return '<IdentType %s>' % (self.ident)

class EnumType(Type):
  def __init__(self, span, enum, isConst=False):
    super().__init__(span, isConst)
    self.enum = enum

  def strictlyLeftAligned(self):
    return True

class StructType(Type):
  def __init__(self, span, struct, isConst=False):
    super().__init__(span, isConst)
    self.struct = struct

  def strictlyLeftAligned(self):
    return True

class PointerType(Type):
  def __init__(self, span, inner, isConst=False):
    super().__init__(span, isConst)
    self.inner = inner

  def isArrayOrPointer(self):
    return True

  def __eq__(self, other):
    return isinstance(other, PointerType) and self.inner == other.inner and self.isConst == other.isConst

  def __hash__(self):
    return hash(('*', self.inner))

  def __repr__(self):
    return '<PointerType %r%s>' % (self.inner, ' const' if self.isConst else '')

class ArrayType(Type):
  def __init__(self, span, element, size, isConst=False):
    super().__init__(span, isConst)
    self.element = element
    self.size = size

  def isArrayOrPointer(self):
    return True

class FnPointerType(Type):
  def __init__(self, span, abi, returnType, args, isConst=False):
    super().__init__(span, isConst)
    self.abi = abi
    self.returnType = returnType
    self.args = args

class DotDotDotType(Type):
  pass

class RustType(Type):
  """A type spelled directly in the output language."""

  def __init__(self, string, canCopy=True, canDebug=True):
    super().__init__(None)
    self.string = string
    self.canCopy = canCopy
    self.canDebug = canDebug

  def __eq__(self, other):
    return isinstance(other, RustType) and self.string == other.string

  def __hash__(self):
    return hash(self.string)

  def __repr__(self):
    return '<RustType %s>' % (self.string)

class FunctionType(Type):
  def __init__(self, args, returnType):
    super().__init__(None)
    self.args = args
    self.returnType = returnType

class InferType(Type):
  """
  A placeholder for a type that becomes known later. Copies share one cell
  and the cell can be resolved only once.
  """

  def __init__(self, cell=None):
    super().__init__(None)
    self.cell = cell if cell is not None else [None]

  def get(self):
    return self.cell[0]

  def isResolved(self):
    return self.cell[0] is not None

  def resolve(self, ty, span=None):
    current = self.cell[0]
    if current is None:
      self.cell[0] = ty
    elif current != ty:
      raise ParseError(span if span is not None else Span.none(), 'conflicting inferred type')
    return self.cell[0]

  def share(self):
    return InferType(self.cell)

CONST = Keyword('const')
TYPEDEF = Keyword('typedef')
STAR = Op('*')
OPEN_PAREN = Op('(')
CLOSE_PAREN = Op(')')
OPEN_BRACKET = Op('[')
CLOSE_BRACKET = Op(']')
COMMA = Op(',')
SEMI = Op(';')
DOT_DOT_DOT = Op('...')

COMBINE_KEYWORDS = frozenset(['const', 'signed', 'unsigned', 'char', 'short', 'int', 'long', '__int32', '__int64'])

SINGLE_PRIMITIVES = frozenset([
  'float', 'double', 'void', 'bool', '_Bool', 'size_t', 'int8_t', 'uint8_t',
  'int16_t', 'uint16_t', 'int32_t', 'uint32_t', 'int64_t', 'uint64_t',
  'intptr_t', 'uintptr_t', 'wchar_t', 'va_list'
])

def _combinedPrimitive(count):
  unsigned = count['unsigned'] > 0
  if count['__int32']:
    return 'unsigned __int32' if unsigned else '__int32'
  if count['__int64']:
    return 'unsigned __int64' if unsigned else '__int64'
  if count['short']:
    return 'unsigned short' if unsigned else 'short'
  if count['long'] > 1:
    return 'unsigned long long' if unsigned else 'long long'
  if count['long']:
    return 'unsigned long' if unsigned else 'long'
  if count['char']:
    if unsigned:
      return 'unsigned char'
    return 'signed char' if count['signed'] else 'char'
  return 'unsigned int' if unsigned else 'int'

class PrimitiveTypeParser(Parser):
  def desc(self):
    return 'primitive type'

  def tryParse(self, ctx, input):
    (rest, constKw) = CONST.tryParse(ctx, input)
    isConst = constKw is not None
    rest = skipWs(ctx, rest)
    start = rest

    words = []
    while True:
      (nextRest, word) = IDENT_OR_KW.tryParse(ctx, skipWs(ctx, rest))
      if word is None or word.getString() not in COMBINE_KEYWORDS:
        break
      words.append(word)
      rest = nextRest

    if words and any(word.getString() != 'const' for word in words):
      span = words[0].span.join(words[-1].span)
      count = dict((keyword, 0) for keyword in COMBINE_KEYWORDS)
      for word in words:
        count[word.getString()] += 1
      if count['const'] > 1 or (isConst and count['const'] > 0) or count['signed'] > 1 or \
         count['unsigned'] > 1 or count['char'] > 1 or count['short'] > 1 or count['int'] > 1 or \
         count['long'] > 2 or count['__int32'] > 1 or count['__int64'] > 1:
        raise ParseError(span, 'too many keywords in primitive type')
      sized = count['__int32'] + count['__int64']
      if (count['signed'] and count['unsigned']) or (count['short'] and count['long']) or \
         (count['char'] and (count['int'] or count['short'] or count['long'])) or \
         (count['__int32'] and count['__int64']) or \
         (sized and (count['char'] or count['short'] or count['int'] or count['long'])):
        raise ParseError(span, 'conflicting keywords in primitive type')
      isConst = isConst or count['const'] > 0
      return (rest, PrimitiveType(input.start().join(rest.start()), _combinedPrimitive(count), isConst))

    (rest, ident) = IDENT_OR_KW.tryParse(ctx, start)
    if ident is None or ident.getString() not in SINGLE_PRIMITIVES:
      return (input, None)
    if not isConst:
      (afterConst, constKw) = CONST.tryParse(ctx, skipWs(ctx, rest))
      if constKw is not None:
        rest = afterConst
        isConst = True
    name = 'bool' if ident.getString() == '_Bool' else ident.getString()
    return (rest, PrimitiveType(input.start().join(rest.start()), name, isConst))

PRIMITIVE_TYPE = PrimitiveTypeParser()

class TypeWithIdent:
  def __init__(self, ty, ident):
    self.ty = ty
    self.ident = ident

NO_IDENT = 0
OPT_IDENT = 1
REQ_IDENT = 2

class TypeParser(Parser):
  def __init__(self, identSpec):
    self.identSpec = identSpec

  def desc(self):
    return 'type'

  def _parseBase(self, ctx, input):
    from sdlgen.Enum import ENUM
    from sdlgen.Struct import STRUCT_OR_UNION
    (rest, ty) = PRIMITIVE_TYPE.tryParse(ctx, input)
    if ty is not None:
      return (rest, ty)
    (rest, constKw) = CONST.tryParse(ctx, input)
    isConst = constKw is not None
    rest = skipWs(ctx, rest)
    (after, enum) = ENUM.tryParse(ctx, rest)
    if enum is not None:
      return (after, EnumType(input.start().join(after.start()), enum, isConst))
    (after, struct) = STRUCT_OR_UNION.tryParse(ctx, rest)
    if struct is not None:
      return (after, StructType(input.start().join(after.start()), struct, isConst))
    (after, ident) = IDENT.tryParse(ctx, rest)
    if ident is not None:
      if not isConst:
        (afterConst, constKw) = CONST.tryParse(ctx, skipWs(ctx, after))
        if constKw is not None:
          after = afterConst
          isConst = True
      return (after, IdentType(input.start().join(after.start()), ident, isConst))
    return (input, None)

  def tryParse(self, ctx, input):
    (rest, ty) = self._parseBase(ctx, input)
    if ty is None:
      return (input, None)

    # pointers
    (after, star) = STAR.tryParse(ctx, skipWs(ctx, rest))
    while star is not None:
      rest = after
      (after, constKw) = CONST.tryParse(ctx, skipWs(ctx, rest))
      isConst = constKw is not None
      if isConst:
        rest = after
      (after, restrict) = IDENT.tryParseIf(ctx, skipWs(ctx, rest), lambda i: i.getString() == 'SDL_RESTRICT')
      if restrict is not None:
        rest = after
      ty = PointerType(input.start().join(rest.start()), ty, isConst)
      (after, star) = STAR.tryParse(ctx, skipWs(ctx, rest))

    # function pointer
    abi = None
    args = None
    ident = None
    (after, openParen) = OPEN_PAREN.tryParse(ctx, skipWs(ctx, rest))
    if openParen is not None:
      rest = skipWs(ctx, after)
      (rest, abi) = FN_ABI.tryParse(ctx, rest)
      (rest, star) = STAR.tryParse(ctx, skipWs(ctx, rest))
      if star is None and not (abi is not None and abi.getString().endswith('APIENTRYP')):
        # a parenthesized something, but not a function pointer
        return (input, None)
      rest = skipWs(ctx, rest)
      if self.identSpec == REQ_IDENT:
        (rest, ident) = IDENT.parse(ctx, rest)
      elif self.identSpec == OPT_IDENT:
        (rest, ident) = IDENT.tryParse(ctx, rest)
      (rest, closeParen) = CLOSE_PAREN.parse(ctx, skipWs(ctx, rest))
      (rest, args) = FN_DECL_ARGS.parse(ctx, skipWs(ctx, rest))
    elif self.identSpec == REQ_IDENT:
      (rest, ident) = IDENT.tryParse(ctx, skipWs(ctx, rest))
      if ident is None:
        return (input, None)
    elif self.identSpec == OPT_IDENT:
      (after, ident) = IDENT.tryParse(ctx, skipWs(ctx, rest))
      if ident is not None:
        rest = after

    # arrays
    if ident is not None:
      (after, openBracket) = OPEN_BRACKET.tryParse(ctx, skipWs(ctx, rest))
      while openBracket is not None:
        (rest, size) = EXPR.tryParse(ctx, skipWs(ctx, after))
        (rest, closeBracket) = CLOSE_BRACKET.parse(ctx, skipWs(ctx, rest))
        span = input.start().join(rest.start())
        if size is None:
          # `T name[]` decays to a pointer
          ty = PointerType(span, ty, True)
        else:
          ty = ArrayType(span, ty, size, True)
        (after, openBracket) = OPEN_BRACKET.tryParse(ctx, skipWs(ctx, rest))

    if args is not None:
      ty = FnPointerType(input.start().join(rest.start()), abi, ty, args, True)
    return (rest, TypeWithIdent(ty, ident))

class TypeOnlyParser(Parser):
  def desc(self):
    return 'type'

  def tryParse(self, ctx, input):
    (rest, typeWithIdent) = TYPE_WITH_NO_IDENT.tryParse(ctx, input)
    if typeWithIdent is None:
      return (input, None)
    return (rest, typeWithIdent.ty)

TYPE_WITH_NO_IDENT = TypeParser(NO_IDENT)
TYPE_WITH_OPT_IDENT = TypeParser(OPT_IDENT)
TYPE_WITH_REQ_IDENT = TypeParser(REQ_IDENT)
TYPE = TypeOnlyParser()

class ArgDecl:
  def __init__(self, attr, ident, ty):
    self.attr = attr
    self.ident = ident
    self.ty = ty

class FnDeclArgs:
  def __init__(self, span, args):
    self.span = span
    self.args = args

  def __len__(self):
    return len(self.args)

  def __iter__(self):
    return iter(self.args)

class ArgDeclParser(Parser):
  def desc(self):
    return 'argument declaration'

  def tryParse(self, ctx, input):
    (rest, attr) = ARG_ATTRIBUTE.tryParse(ctx, input)
    rest = skipWs(ctx, rest)
    (after, dots) = DOT_DOT_DOT.tryParse(ctx, rest)
    if dots is not None:
      return (after, ArgDecl(attr, None, DotDotDotType(dots.span)))
    (after, typeWithIdent) = TYPE_WITH_OPT_IDENT.tryParse(ctx, rest)
    if typeWithIdent is not None:
      return (after, ArgDecl(attr, typeWithIdent.ident, typeWithIdent.ty))
    return (input, None)

class FnDeclArgsParser(Parser):
  ARGS = Optional(Punctuated(ArgDeclParser(), COMMA), [])

  def desc(self):
    return 'function arguments declaration'

  def tryParse(self, ctx, input):
    (rest, openParen) = OPEN_PAREN.tryParse(ctx, input)
    if openParen is None:
      return (input, None)
    (rest, args) = self.ARGS.tryParse(ctx, skipWs(ctx, rest))
    (rest, closeParen) = CLOSE_PAREN.parse(ctx, skipWs(ctx, rest))
    args = Punctuated.values(args)
    if len(args) == 1 and args[0].ident is None and args[0].ty.isVoid() and not args[0].ty.isConst:
      # `(void)` declares no arguments
      args = []
    return (rest, FnDeclArgs(openParen.span.join(closeParen.span), args))

FN_DECL_ARGS = FnDeclArgsParser()

class TypeDef:
  def __init__(self, span, doc, ident, ty):
    self.span = span
    self.doc = doc
    self.ident = ident
    self.ty = ty

class TypeDefParser(Parser):
  BODY = Balanced(Op('{'), Op('}'))
  TAGS = [Keyword('struct'), Keyword('union'), Keyword('enum')]

  def desc(self):
    return 'typedef'

  def _lookaheadName(self, ctx, input):
    """The name declared by `typedef struct [tag] { ... } Name;`, if that's what follows."""
    for keyword in self.TAGS:
      (rest, tag) = keyword.tryParse(ctx, input)
      if tag is not None:
        break
    else:
      return None
    (rest, ident) = IDENT.tryParse(ctx, skipWs(ctx, rest))
    (rest, body) = self.BODY.tryParse(ctx, skipWs(ctx, rest))
    if body is None:
      return None
    (rest, name) = IDENT.tryParse(ctx, skipWs(ctx, rest))
    return name

  def tryParse(self, ctx, input):
    (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
    (rest, keyword) = TYPEDEF.tryParse(ctx, rest)
    if keyword is None:
      return (input, None)
    rest = skipWs(ctx, rest)
    with ctx.typedefGuard(self._lookaheadName(ctx, rest)):
      (rest, typeWithIdent) = TYPE_WITH_REQ_IDENT.parse(ctx, rest)
    (rest, semi) = SEMI.parse(ctx, skipWs(ctx, rest))
    span = keyword.span.join(semi.span)
    (rest, doc) = DOC_COMMENT.tryParseCombinePostfix(ctx, rest, doc)
    return (rest, TypeDef(span, doc, typeWithIdent.ident, typeWithIdent.ty))

TYPEDEF_ITEM = TypeDefParser()
