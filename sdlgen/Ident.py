from sdlgen.Span import Span
from sdlgen.Combinators import Parser

KEYWORDS = frozenset([
  '_Alignas', '_Alignof', '_Atomic', '_BitInt', '_Bool', '_Complex',
  '_Decimal128', '_Decimal32', '_Decimal64', '_Generic', '_Imaginary',
  '_Noreturn', '_Static_assert', '_Thread_local', 'alignas', 'alignof',
  'auto', 'bool', 'break', 'case', 'char', 'const', 'constexpr', 'continue',
  'default', 'do', 'double', 'else', 'enum', 'extern', 'false', 'float',
  'for', 'goto', 'if', 'inline', 'int', 'long', 'nullptr', 'register',
  'restrict', 'return', 'short', 'signed', 'sizeof', 'static_assert',
  'static', 'struct', 'switch', 'thread_local', 'true', 'typedef',
  'typeof_unqual', 'typeof', 'union', 'unsigned', 'void', 'volatile', 'while'
])

def isKeyword(string):
  return str(string) in KEYWORDS

def isIdentStart(ch):
  return ch == '_' or ('a' <= ch <= 'z') or ('A' <= ch <= 'Z')

def isIdentChar(ch):
  return isIdentStart(ch) or ('0' <= ch <= '9')

class Ident:
  def __init__(self, span, name=None):
    self.span = span
    self.name = name

  @staticmethod
  def inline(string):
    return Ident(Span.inline(string))

  def getString(self):
    if self.name is not None:
      return self.name
    return self.span.getString()

  def isKeyword(self):
    return isKeyword(self.getString())

  def __eq__(self, other):
    if isinstance(other, Ident):
      return self.getString() == other.getString()
    if isinstance(other, str):
      return self.getString() == other
    return NotImplemented

  def __hash__(self):
    return hash(self.getString())

  def __str__(self):
    return self.getString()

  def __repr__(self):
    return '<Ident %s>' % (self.getString())

class IdentParser(Parser):
  def __init__(self, allowKeywords):
    self.allowKeywords = allowKeywords

  def desc(self):
    return 'ident'

  def tryParse(self, ctx, input):
    string = input.getString()
    if not string or not isIdentStart(string[0]):
      return (input, None)
    end = 1
    while end < len(string) and isIdentChar(string[end]):
      end += 1
    ident = Ident(input.slice(0, end))
    if self.allowKeywords:
      name = ctx.patchIdent(ident)
      if name is not None:
        ident = Ident(ident.span, name)
    elif ident.isKeyword():
      return (input, None)
    return (input.slice(end), ident)

IDENT = IdentParser(False)
IDENT_OR_KW = IdentParser(True)

class Keyword(Parser):
  def __init__(self, keyword):
    self.keyword = keyword

  def desc(self):
    return '`%s`' % (self.keyword)

  def tryParse(self, ctx, input):
    string = input.getString()
    if not string.startswith(self.keyword):
      return (input, None)
    if len(string) > len(self.keyword) and isIdentChar(string[len(self.keyword)]):
      return (input, None)
    return (input.slice(len(self.keyword)), Ident(input.slice(0, len(self.keyword))))
