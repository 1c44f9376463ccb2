from sdlgen.Combinators import Parser

class Precedence:
  """
  Binding level and associativity packed into one integer: the level is
  shifted left by one and the low bit is set for right-to-left operators.
  Lower values bind tighter.
  """

  def __init__(self, value):
    self.value = value

  @staticmethod
  def leftToRight(level):
    assert 0 < level < 128, 'precedence out of range'
    return Precedence(level << 1)

  @staticmethod
  def rightToLeft(level):
    assert 0 < level < 128, 'precedence out of range'
    return Precedence((level << 1) + 1)

  @staticmethod
  def comma():
    return Precedence.leftToRight(15)

  @staticmethod
  def max():
    return Precedence(255)

  def isRightToLeft(self):
    return bool(self.value & 1)

  def getLevel(self):
    return self.value >> 1

  def parseRhsFirst(self, rhs):
    return (rhs.value & ~1) < self.value

  def __eq__(self, other):
    return isinstance(other, Precedence) and self.value == other.value

  def __hash__(self):
    return hash(self.value)

  def __repr__(self):
    return 'Precedence(%s(%d))' % ('RTL' if self.isRightToLeft() else 'LTR', self.getLevel())

LTR = Precedence.leftToRight
RTL = Precedence.rightToLeft

UNARY_PRECEDENCE = {
  '#': LTR(1),
  '+': RTL(2), '++': RTL(2), '-': RTL(2), '--': RTL(2),
  '!': RTL(2), '~': RTL(2), '*': RTL(2), '&': RTL(2)
}

BINARY_PRECEDENCE = {
  '++': LTR(1), '--': LTR(1), '(': LTR(1), '[': LTR(1), '.': LTR(1), '->': LTR(1),
  '*': LTR(3), '/': LTR(3), '%': LTR(3),
  '+': LTR(4), '-': LTR(4),
  '<<': LTR(5), '>>': LTR(5),
  '<': LTR(6), '<=': LTR(6), '>': LTR(6), '>=': LTR(6),
  '==': LTR(7), '!=': LTR(7),
  '&': LTR(8),
  '^': LTR(9),
  '|': LTR(10),
  '&&': LTR(11),
  '||': LTR(12),
  '?': RTL(13),
  '=': RTL(14), '+=': RTL(14), '-=': RTL(14), '*=': RTL(14), '/=': RTL(14),
  '%=': RTL(14), '<<=': RTL(14), '>>=': RTL(14), '&=': RTL(14), '^=': RTL(14),
  '|=': RTL(14),
  ',': Precedence.comma()
}

OPS3 = ('...', '<<=', '>>=')
OPS2 = ('!=', '##', '%=', '&&', '&=', '*=', '++', '+=', '--', '-=', '->', '/=',
        '<<', '<=', '==', '>=', '>>', '^=', '|=', '||')
OPS1 = '!#%&(*+,-./:<=>?[^|~'

class OpToken:
  def __init__(self, span):
    self.span = span

  def getString(self):
    return self.span.getString()

  def unaryPrecedence(self):
    return UNARY_PRECEDENCE.get(self.getString())

  def binaryPrecedence(self):
    return BINARY_PRECEDENCE.get(self.getString())

  def __eq__(self, other):
    if isinstance(other, OpToken):
      return self.getString() == other.getString()
    if isinstance(other, str):
      return self.getString() == other
    return NotImplemented

  def __hash__(self):
    return hash(self.getString())

  def __str__(self):
    return self.getString()

  def __repr__(self):
    return '<Op `%s`>' % (self.getString())

class Op(Parser):
  def __init__(self, spelling):
    self.spelling = spelling

  def desc(self):
    return '`%s`' % (self.spelling)

  def tryParse(self, ctx, input):
    rest = input.stripPrefix(self.spelling)
    if rest is None:
      return (input, None)
    return (rest, OpToken(input.start().join(rest.start())))

class AnyOp(Parser):
  def desc(self):
    return 'operator'

  def tryParse(self, ctx, input):
    string = input.getString()
    if string.startswith('/*'):
      # the start of a (doc) comment, not a division
      return (input, None)
    if string[:3] in OPS3:
      length = 3
    elif string[:2] in OPS2:
      length = 2
    elif string[:1] and string[0] in OPS1:
      length = 1
    else:
      return (input, None)
    (span, rest) = input.splitAt(length)
    return (rest, OpToken(span))

  def tryParseUnop(self, ctx, input):
    (rest, op) = self.tryParse(ctx, input)
    if op is not None:
      precedence = op.unaryPrecedence()
      if precedence is not None:
        return (rest, (precedence, op))
    return (input, None)

  def tryParseBinop(self, ctx, input):
    (rest, op) = self.tryParse(ctx, input)
    if op is not None:
      precedence = op.binaryPrecedence()
      if precedence is not None:
        return (rest, (precedence, op))
    return (input, None)

ANY_OP = AnyOp()
