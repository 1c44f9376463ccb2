from sdlgen.Span import Span
from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser
from sdlgen.Op import Op

U64_MAX = (1 << 64) - 1

class IntegerKind:
  UNSUFFIXED = 'Unsuffixed'
  UNSIGNED = 'Unsigned'
  LONG = 'Long'
  UNSIGNED_LONG = 'UnsignedLong'
  LONG_LONG = 'LongLong'
  UNSIGNED_LONG_LONG = 'UnsignedLongLong'

INTEGER_SUFFIXES = [
  (('ull', 'ULL'), IntegerKind.UNSIGNED_LONG_LONG),
  (('ul', 'UL'), IntegerKind.UNSIGNED_LONG),
  (('u', 'U'), IntegerKind.UNSIGNED),
  (('ll', 'LL'), IntegerKind.LONG_LONG),
  (('l', 'L'), IntegerKind.LONG)
]

BASE_NAMES = {2: 'binary', 8: 'octal', 10: 'decimal', 16: 'hexadecimal'}

class IntegerLiteral:
  def __init__(self, span, kind, value, base, ndigits):
    self.span = span
    self.kind = kind
    self.value = value
    self.base = base
    self.ndigits = ndigits

  @staticmethod
  def zero():
    return IntegerLiteral(Span.inline('0'), IntegerKind.UNSUFFIXED, 0, 10, 1)

  @staticmethod
  def one():
    return IntegerLiteral(Span.inline('1'), IntegerKind.UNSUFFIXED, 1, 10, 1)

  def __eq__(self, other):
    return isinstance(other, IntegerLiteral) and self.kind == other.kind and self.value == other.value

  def __hash__(self):
    return hash((self.kind, self.value))

  def __repr__(self):
    return '<IntegerLiteral %d base=%d ndigits=%d %s>' % (self.value, self.base, self.ndigits, self.kind)

class FloatLiteral:
  F32 = 'f32'
  F64 = 'f64'

  def __init__(self, span, kind, value):
    self.span = span
    self.kind = kind
    self.value = value

  def __eq__(self, other):
    return isinstance(other, FloatLiteral) and self.kind == other.kind and self.value == other.value

  def __hash__(self):
    return hash((self.kind, self.value))

  def __repr__(self):
    return '<FloatLiteral %r%s>' % (self.value, self.kind)

class StringLiteral:
  def __init__(self, span, value):
    self.span = span
    self.value = value

  def __eq__(self, other):
    return isinstance(other, StringLiteral) and self.value == other.value

  def __hash__(self):
    return hash(self.value)

  def __repr__(self):
    return '<StringLiteral %r>' % (self.value)

class IntegerLiteralParser(Parser):
  def desc(self):
    return 'integer literal'

  def _digit(self, ch, base):
    if '0' <= ch <= '9':
      digit = ord(ch) - ord('0')
    elif 'a' <= ch <= 'f':
      digit = ord(ch) - ord('a') + 10
    elif 'A' <= ch <= 'F':
      digit = ord(ch) - ord('A') + 10
    else:
      return None
    return digit if digit < base else None

  def _suffix(self, span, rest, value, base, ndigits):
    string = rest.getString()
    for (spellings, kind) in INTEGER_SUFFIXES:
      for spelling in spellings:
        if string.startswith(spelling):
          (suffix, rest) = rest.splitAt(len(spelling))
          return (rest, IntegerLiteral(span.join(suffix), kind, value, base, ndigits))
    return (rest, IntegerLiteral(span, IntegerKind.UNSUFFIXED, value, base, ndigits))

  def tryParse(self, ctx, input):
    string = input.getString()
    if not string or not ('0' <= string[0] <= '9'):
      return (input, None)
    index = 1
    value = 0
    needDigit = False
    if string[0] == '0':
      second = string[1:2]
      if '0' <= second <= '9':
        base = 8
        index = 2
        value = self._digit(second, 8)
        if value is None:
          raise ParseError(input.slice(1, 2), 'expected octal digit')
      elif second in ('x', 'X'):
        base = 16
        index = 2
        needDigit = True
      elif second in ('b', 'B'):
        base = 2
        index = 2
        needDigit = True
      else:
        (span, rest) = input.splitAt(1)
        return self._suffix(span, rest, 0, 10, 1)
    else:
      base = 10
      value = ord(string[0]) - ord('0')
    ndigits = 0 if needDigit else 1
    kind = BASE_NAMES[base]
    while index < len(string):
      ch = string[index]
      if ch == "'" and not needDigit:
        needDigit = True
        index += 1
        continue
      digit = self._digit(ch, base)
      if digit is None:
        break
      value = value * base + digit
      if value > U64_MAX:
        raise ParseError(input.slice(0, index + 1), '%s literal overflow' % (kind))
      needDigit = False
      ndigits += 1
      index += 1
    if needDigit:
      span = input.end() if index == len(string) else input.slice(index, index + 1)
      raise ParseError(span, 'expected %s digit' % (kind))
    (span, rest) = input.splitAt(index)
    return self._suffix(span, rest, value, base, ndigits)

class FloatLiteralParser(Parser):
  def desc(self):
    return 'float literal'

  def _create(self, input, end, kind, suffixLength=0):
    span = input.slice(0, end)
    return (input.slice(end + suffixLength), FloatLiteral(span, kind, float(span.getString())))

  def _digits(self, string, index):
    start = index
    while index < len(string) and '0' <= string[index] <= '9':
      index += 1
    return (index, index > start)

  def tryParse(self, ctx, input):
    string = input.getString()
    (index, haveDigits) = self._digits(string, 0)
    next = string[index:index + 1]
    if next in ('f', 'F') and haveDigits:
      return self._create(input, index, FloatLiteral.F32, 1)
    if next == '.':
      (index, haveFraction) = self._digits(string, index + 1)
      haveDigits = haveDigits or haveFraction
      if not haveDigits:
        return (input, None)
      next = string[index:index + 1]
      if next in ('f', 'F'):
        return self._create(input, index, FloatLiteral.F32, 1)
      if next not in ('e', 'E'):
        return self._create(input, index, FloatLiteral.F64)
    elif next not in ('e', 'E') or not haveDigits:
      return (input, None)
    exponent = index + 1
    if string[exponent:exponent + 1] in ('+', '-'):
      exponent += 1
    (index, haveDigits) = self._digits(string, exponent)
    if not haveDigits:
      return (input, None)
    if string[index:index + 1] in ('f', 'F'):
      return self._create(input, index, FloatLiteral.F32, 1)
    return self._create(input, index, FloatLiteral.F64)

SIMPLE_ESCAPES = {
  'n': 0x0a, 't': 0x09, 'r': 0x0d, 'a': 0x07, 'b': 0x08, 'f': 0x0c, 'v': 0x0b,
  '\\': 0x5c, '"': 0x22, "'": 0x27, '?': 0x3f
}

class StringLiteralParser(Parser):
  QUOTE = Op('"')

  def desc(self):
    return 'string literal'

  def tryParse(self, ctx, input):
    (rest, quote) = self.QUOTE.tryParse(ctx, input)
    if quote is None:
      return (input, None)
    string = rest.getString()
    value = bytearray()
    index = 0
    while index < len(string):
      ch = string[index]
      if ch == '"':
        return (rest.slice(index + 1), StringLiteral(rest.slice(0, index), bytes(value)))
      if ch == '\n':
        break
      if ch != '\\':
        value.extend(ch.encode('utf-8'))
        index += 1
        continue
      escape = string[index + 1:index + 2]
      if escape in SIMPLE_ESCAPES:
        value.append(SIMPLE_ESCAPES[escape])
        index += 2
      elif escape in ('x', 'X'):
        end = index + 2
        while end < len(string) and string[end] in '0123456789abcdefABCDEF':
          end += 1
        if end == index + 2:
          raise ParseError(rest.slice(index, index + 2), 'expected hexadecimal digit')
        value.append(int(string[index + 2:end], 16) & 0xff)
        index = end
      elif '0' <= escape <= '7':
        end = index + 1
        while end < len(string) and end < index + 4 and '0' <= string[end] <= '7':
          end += 1
        value.append(int(string[index + 1:end], 8) & 0xff)
        index = end
      else:
        raise ParseError(rest.slice(index, min(index + 2, len(string))), 'unknown escape sequence')
    raise ParseError(quote.span, 'unterminated string literal')

class LiteralParser(Parser):
  parsers = [FloatLiteralParser(), IntegerLiteralParser(), StringLiteralParser()]

  def desc(self):
    return 'literal'

  def tryParse(self, ctx, input):
    for parser in self.parsers:
      (rest, literal) = parser.tryParse(ctx, input)
      if literal is not None:
        return (rest, literal)
    return (input, None)

INTEGER_LITERAL = IntegerLiteralParser()
FLOAT_LITERAL = FloatLiteralParser()
STRING_LITERAL = StringLiteralParser()
LITERAL = LiteralParser()
