from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser, Delimited, Optional, Punctuated, skipWs
from sdlgen.Ident import Ident, IDENT, IDENT_OR_KW, isKeyword
from sdlgen.Op import Op
from sdlgen.DocComment import DOC_COMMENT, DOC_COMMENT_POST
from sdlgen.Expr import EXPR, Ambiguous
from sdlgen.Type import TYPE, InferType
from sdlgen.Patch import patchDefine
from sdlgen.Logger import Factory as LoggerFactory

SKIPPED_IFDEFS = frozenset(['__cplusplus', 'SDL_THREAD_SAFETY_ANALYSIS'])

def skipIfdef(name):
  return str(name) in SKIPPED_IFDEFS

class DefineArg:
  def __init__(self, ident, ty=None):
    self.ident = ident
    self.ty = ty if ty is not None else InferType()

  def isVariadic(self):
    return self.ident.getString() == '...'

class DefineValue:
  EMPTY = 'Empty'
  EXPR = 'Expr'
  TYPE = 'Type'
  ITEMS = 'Items'
  OTHER = 'Other'
  UNPARSEABLE = 'Unparseable'
  EXPR_FOLLOWED_BY = 'ExprFollowedBy'

  def __init__(self, kind, value=None, follow=None):
    self.kind = kind
    self.value = value
    self.follow = follow

  @staticmethod
  def empty():
    return DefineValue(DefineValue.EMPTY)

  @staticmethod
  def expr(expr):
    return DefineValue(DefineValue.EXPR, expr)

  def isEmpty(self):
    return self.kind == DefineValue.EMPTY

  def __repr__(self):
    return '<DefineValue %s>' % (self.kind)

class Define:
  def __init__(self, span, doc, ident, args, value):
    self.span = span
    self.doc = doc
    self.ident = ident
    self.args = args
    self.value = value
    self.ty = InferType()

  def isFunctionLike(self):
    return self.args is not None

  def __repr__(self):
    return '<Define %s %r>' % (self.ident, self.value)

class Undef:
  def __init__(self, span, ident):
    self.span = span
    self.ident = ident

class Include:
  LOCAL = 'Local'
  SYSTEM = 'System'

  def __init__(self, span, kind, path):
    self.span = span
    self.kind = kind
    self.path = path

  def __repr__(self):
    return '<Include %s>' % (self.path)

class Pragma:
  def __init__(self, span, text):
    self.span = span
    self.text = text

class ErrorDirective:
  def __init__(self, span, text):
    self.span = span
    self.text = text

class WarningDirective:
  def __init__(self, span, text):
    self.span = span
    self.text = text

class Skipped:
  def __init__(self, span):
    self.span = span

class ConditionalExpr:
  IF = 'if'
  IFDEF = 'ifdef'
  IFNDEF = 'ifndef'

  def __init__(self, kind, value):
    self.kind = kind
    self.value = value

  def __repr__(self):
    return '<ConditionalExpr #%s %s>' % (self.kind, self.value)

class Conditional:
  """
  The guard of an item that came from one branch of an #if chain: every
  condition in `not_` is false and `require` (absent for #else) is true.
  `outer` is the guard of the enclosing chain when chains are nested.
  """

  def __init__(self, not_=None, require=None, outer=None):
    self.not_ = list(not_) if not_ is not None else []
    self.require = require
    self.outer = outer

  def push(self, condExpr):
    previous = self.require
    self.require = condExpr
    if previous is not None:
      self.not_.append(previous)
    else:
      assert not self.not_, 'else branch after else'

  def copy(self):
    return Conditional(self.not_, self.require, self.outer)

  def within(self, outer):
    if self.outer is None:
      return Conditional(self.not_, self.require, outer)
    return Conditional(self.not_, self.require, self.outer.within(outer))

  def isEmpty(self):
    return not self.not_ and self.require is None and self.outer is None

  def isSatisfied(self, state):
    if self.outer is not None and not self.outer.isSatisfied(state):
      return False
    for condExpr in self.not_:
      if state.evalCondition(condExpr):
        return False
    return self.require is None or state.evalCondition(self.require)

class PreProcLine:
  IF = 'if'
  IFDEF = 'ifdef'
  IFNDEF = 'ifndef'
  ELIF = 'elif'
  ELIFDEF = 'elifdef'
  ELIFNDEF = 'elifndef'
  ELSE = 'else'
  ENDIF = 'endif'
  DEFINE = 'define'
  UNDEF = 'undef'
  INCLUDE = 'include'
  PRAGMA = 'pragma'
  ERROR = 'error'
  WARNING = 'warning'

  def __init__(self, span, kind, value=None):
    self.span = span
    self.kind = kind
    self.value = value

  def opensBlock(self):
    return self.kind in (self.IF, self.IFDEF, self.IFNDEF)

  def continuesBlock(self):
    return self.kind in (self.ELIF, self.ELIFDEF, self.ELIFNDEF, self.ELSE)

  def conditionalExpr(self):
    if self.kind in (self.IF, self.ELIF):
      return ConditionalExpr(ConditionalExpr.IF, self.value)
    if self.kind in (self.IFDEF, self.ELIFDEF):
      return ConditionalExpr(ConditionalExpr.IFDEF, self.value)
    if self.kind in (self.IFNDEF, self.ELIFNDEF):
      return ConditionalExpr(ConditionalExpr.IFNDEF, self.value)
    return None

class LineParser(Parser):
  def desc(self):
    return 'line'

  def tryParse(self, ctx, input):
    input = input.trimWscStart()
    string = input.getString()
    escaped = False
    for (index, ch) in enumerate(string):
      if ch == '\n' and not escaped:
        return (input.slice(index + 1), input.slice(0, index).trimWscEnd())
      escaped = ch == '\\'
    return (input.end(), input.trimWscEnd())

LINE = LineParser()

class DefineValueParser(Parser):
  def __init__(self):
    self.logger = LoggerFactory().getClassLogger(__name__, self.__class__.__name__)

  def desc(self):
    return 'define value'

  def _tryAlternative(self, ctx, parser, input):
    # alternatives are speculative, a hard error only rules one out
    try:
      return parser.tryParseTryAll(ctx, input)
    except ParseError as error:
      ctx.logDebug('define value alternative %s failed: %s' % (parser.desc(), error.getMessage()))
      return None

  def tryParse(self, ctx, input):
    from sdlgen.Item import ITEMS, FnCallItem
    if input.isEmpty():
      return (input, DefineValue.empty())
    if input.contains('#') or input.contains('_cast<'):
      return (input.end(), DefineValue(DefineValue.OTHER, input))
    items = self._tryAlternative(ctx, ITEMS, input)
    expr = self._tryAlternative(ctx, EXPR, input)
    ty = self._tryAlternative(ctx, TYPE, input)
    if items is not None and len(items) == 1 and isinstance(items[0], FnCallItem):
      # a lone macro call is an expression
      items = None
    found = [value for value in (items, expr, ty) if value is not None]
    if len(found) > 1:
      ambiguous = Ambiguous(input)
      if items is not None:
        ambiguous.pushItems(items)
      if expr is not None:
        ambiguous.pushExpr(expr)
      if ty is not None:
        ambiguous.pushType(ty)
      return (input.end(), DefineValue.expr(ambiguous))
    if items is not None:
      return (input.end(), DefineValue(DefineValue.ITEMS, items))
    if expr is not None:
      return (input.end(), DefineValue.expr(expr))
    if ty is not None:
      return (input.end(), DefineValue(DefineValue.TYPE, ty))
    try:
      (rest, expr) = EXPR.tryParse(ctx, input)
    except ParseError:
      expr = None
    if expr is not None:
      rest = skipWs(ctx, rest)
      if not rest.isEmpty():
        (rest, follow) = self.tryParse(ctx, rest)
        if follow.kind != DefineValue.UNPARSEABLE:
          return (rest, DefineValue(DefineValue.EXPR_FOLLOWED_BY, expr, follow))
    self.logger.debug('unparseable define value `%s`' % (input.getString()))
    return (input.end(), DefineValue(DefineValue.UNPARSEABLE, input))

DEFINE_VALUE = DefineValueParser()

class DefineArgParser(Parser):
  DOT_DOT_DOT = Op('...')

  def desc(self):
    return 'macro argument'

  def tryParse(self, ctx, input):
    (rest, dots) = self.DOT_DOT_DOT.tryParse(ctx, input)
    if dots is not None:
      return (rest, Ident(dots.span))
    return IDENT_OR_KW.tryParse(ctx, input)

class PreProcLineParser(Parser):
  DEFINE_ARGS = Delimited(Op('('), Optional(Punctuated(DefineArgParser(), Op(',')), []), Op(')'))

  def desc(self):
    return 'preprocessor directive'

  def _parseDefine(self, ctx, span, doc, input):
    (rest, ident) = IDENT_OR_KW.parse(ctx, input)
    (rest, args) = self.DEFINE_ARGS.tryParse(ctx, rest)
    if args is None:
      valueSpan = rest.trimWscStart()
      (valueSpan, doc) = DOC_COMMENT.tryParseRevCombinePostfix(ctx, valueSpan, doc)
      value = DEFINE_VALUE.parseAll(ctx, valueSpan.trimWscEnd())
      define = Define(span, doc, ident, None, value)
      patchDefine(ctx, define)
      return define
    with ctx.patchIdentsGuard():
      defineArgs = []
      for arg in Punctuated.values(args.value):
        if isKeyword(arg.getString()):
          name = '%s_' % (arg.getString())
          ctx.addPatchIdent(arg, name)
          arg = Ident(arg.span, name)
        defineArgs.append(DefineArg(arg))
      valueSpan = rest.trimWscStart()
      (valueSpan, doc) = DOC_COMMENT.tryParseRevCombinePostfix(ctx, valueSpan, doc)
      value = DEFINE_VALUE.parseAll(ctx, valueSpan.trimWscEnd())
      define = Define(span, doc, ident, defineArgs, value)
      patchDefine(ctx, define)
    return define

  def _parseInclude(self, span, input):
    path = input.trimWscStart()
    string = path.getString()
    if string.startswith('<'):
      if not string.endswith('>') or len(string) < 2:
        raise ParseError(path.slice(len(path) - 1), 'expected `>`')
      kind = Include.SYSTEM
    elif string.startswith('"'):
      if not string.endswith('"') or len(string) < 2:
        raise ParseError(path.slice(len(path) - 1), 'expected `"`')
      kind = Include.LOCAL
    else:
      raise ParseError(path, 'malformed include path')
    return Include(span, kind, path.slice(1, len(path) - 1))

  def tryParse(self, ctx, input):
    (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
    if doc is not None and not rest.startsWith('#'):
      # detached doc comment
      return (input, None)
    (rest, span) = LINE.parse(ctx, rest)
    line = span.trimWsc()
    directive = line.stripPrefix('#')
    if directive is None:
      return (input, None)
    directive = directive.trimWscStart()
    try:
      (value, name) = IDENT_OR_KW.parse(ctx, directive)
    except ParseError as error:
      raise error.mapMessage('expected preprocessor directive')
    value = skipWs(ctx, value)
    kind = name.getString()
    if kind in (PreProcLine.IF, PreProcLine.ELIF):
      result = EXPR.parseAll(ctx, value)
    elif kind in (PreProcLine.IFDEF, PreProcLine.IFNDEF, PreProcLine.ELIFDEF, PreProcLine.ELIFNDEF):
      result = IDENT.parseAll(ctx, value)
    elif kind == PreProcLine.UNDEF:
      result = Undef(span, IDENT.parseAll(ctx, value))
    elif kind in (PreProcLine.ELSE, PreProcLine.ENDIF):
      result = None
    elif kind == PreProcLine.DEFINE:
      result = self._parseDefine(ctx, span, doc, value)
    elif kind == PreProcLine.INCLUDE:
      result = self._parseInclude(span, value)
    elif kind == PreProcLine.PRAGMA:
      result = Pragma(span, value)
    elif kind == PreProcLine.ERROR:
      result = ErrorDirective(span, value)
    elif kind == PreProcLine.WARNING:
      result = WarningDirective(span, value)
    else:
      return (input, None)
    return (rest, PreProcLine(span, kind, result))

PRE_PROC_LINE = PreProcLineParser()

class PreProcBlock:
  def __init__(self, span, condExpr, block, elseBlock):
    self.span = span
    self.condExpr = condExpr
    self.block = block
    self.elseBlock = elseBlock

  def __repr__(self):
    return '<PreProcBlock %r>' % (self.condExpr)

OPENING_DIRECTIVES = frozenset([PreProcLine.IF, PreProcLine.IFDEF, PreProcLine.IFNDEF])
CONTINUING_DIRECTIVES = frozenset([PreProcLine.ELIF, PreProcLine.ELIFDEF, PreProcLine.ELIFNDEF, PreProcLine.ELSE])

def directiveName(ctx, line):
  directive = line.stripPrefix('#')
  if directive is None:
    return None
  (rest, name) = IDENT_OR_KW.tryParse(ctx, directive.trimWscStart())
  return name.getString() if name is not None else None

def unclosedComment(string):
  """Index of a `/*` on this line whose comment runs past the end of it, or -1."""
  index = 0
  while True:
    start = string.find('/*', index)
    if start < 0:
      return -1
    close = string.find('*/', start + 2)
    if close < 0:
      return start
    index = close + 2

class PreProcBlockParser(Parser):
  """
  An #if/#ifdef/#ifndef block and its #elif/#else chain. Each branch body is
  parsed with `bodyParser` (items by default). Nested blocks are scanned over
  without being parsed so that their #else and #endif lines don't end the
  branch early.
  """

  def __init__(self, bodyParser=None, allowInitialElse=False):
    self.bodyParser = bodyParser
    self.allowInitialElse = allowInitialElse

  def desc(self):
    return 'preprocessor block'

  def _getBodyParser(self):
    if self.bodyParser is None:
      from sdlgen.Item import ITEMS
      return ITEMS
    return self.bodyParser

  def _parseBody(self, ctx, condExpr, block):
    if condExpr is not None and condExpr.kind == ConditionalExpr.IFDEF and skipIfdef(condExpr.value):
      return [Skipped(block)]
    body = self._getBodyParser().tryParseAll(ctx, block.trimWsc())
    return body if body is not None else []

  def _scanBranch(self, ctx, input, opening):
    """
    Scan lines up to the #elif/#else/#endif that ends the current branch.
    Returns (line start, directive name, line, rest after the line).
    """
    rest = input
    while True:
      rest = skipWs(ctx, rest)
      if rest.isEmpty():
        raise ParseError(opening, 'unterminated #if')
      (after, doc) = DOC_COMMENT.tryParse(ctx, rest)
      if doc is not None:
        rest = after
        continue
      (after, line) = LINE.parse(ctx, rest)
      string = line.getString()
      comment = unclosedComment(string)
      if comment >= 0:
        # a comment running past the end of the line, possibly a postfix doc
        close = rest.getString().find('*/', comment + 2)
        if close < 0:
          raise ParseError(line.slice(comment, comment + 2), 'unterminated block comment')
        rest = rest.slice(close + 2)
        continue
      name = directiveName(ctx, line)
      if name in OPENING_DIRECTIVES:
        rest = self._skipNested(ctx, after, line)
        continue
      if name in CONTINUING_DIRECTIVES or name == PreProcLine.ENDIF:
        return (rest, name, line, after)
      rest = after

  def _skipNested(self, ctx, input, opening):
    rest = input
    while True:
      (lineStart, name, line, rest) = self._scanBranch(ctx, rest, opening)
      if name == PreProcLine.ENDIF:
        return rest

  def tryParse(self, ctx, input):
    (rest, line) = PRE_PROC_LINE.tryParse(ctx, input)
    if line is None:
      return (input, None)
    if not line.opensBlock() and not (self.allowInitialElse and line.continuesBlock()):
      return (input, None)
    condExpr = line.conditionalExpr()
    (lineStart, name, endLine, after) = self._scanBranch(ctx, rest, line.span)
    block = self._parseBody(ctx, condExpr, rest.start().join(lineStart.start()))
    if name == PreProcLine.ENDIF:
      return (after, PreProcBlock(line.span.join(endLine), condExpr, block, None))
    if condExpr is None:
      raise ParseError(endLine, 'expected `#endif` after `#else`, got another else')
    (rest, elseBlock) = PreProcBlockParser(self.bodyParser, True).parse(ctx, lineStart)
    return (rest, PreProcBlock(line.span.join(elseBlock.span), condExpr, block, elseBlock))

PRE_PROC_BLOCK = PreProcBlockParser()
