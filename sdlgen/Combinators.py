from sdlgen.ParseError import ParseError

# Every recognizer is a Parser. tryParse returns (rest, value) where value is
# None when the construct is absent; malformed input raises ParseError.

class Parser:
  def desc(self):
    return self.__class__.__name__

  def tryParse(self, ctx, input):
    raise NotImplementedError()

  def tryParseIf(self, ctx, input, accept):
    (rest, value) = self.tryParse(ctx, input)
    if value is not None and accept(value):
      return (rest, value)
    return (input, None)

  def parse(self, ctx, input):
    (rest, value) = self.tryParse(ctx, input)
    if value is None:
      raise ParseError(input.start().join(rest.start()), 'expected %s' % (self.desc()))
    return (rest, value)

  def tryParseTryAll(self, ctx, input):
    (rest, value) = self.tryParse(ctx, input)
    if rest.trimWscStart().isEmpty():
      return value
    return None

  def tryParseAll(self, ctx, input):
    (rest, value) = self.tryParse(ctx, input)
    rest = rest.trimWscStart()
    if not rest.isEmpty():
      raise ParseError(rest.trimWscEnd(), 'unexpected data after %s' % (self.desc()))
    return value

  def parseAll(self, ctx, input):
    (rest, value) = self.parse(ctx, input)
    rest = rest.trimWscStart()
    if not rest.isEmpty():
      raise ParseError(rest.trimWscEnd(), 'unexpected data after %s' % (self.desc()))
    return value

class Optional(Parser):
  def __init__(self, parser, default):
    self.parser = parser
    self.default = default
  def desc(self):
    return 'optional %s' % (self.parser.desc())
  def tryParse(self, ctx, input):
    (rest, value) = self.parser.tryParse(ctx, input)
    if value is None:
      return (input, self.default)
    return (rest, value)

class Many(Parser):
  def __init__(self, parser):
    self.parser = parser
  def desc(self):
    return self.parser.desc()
  def tryParse(self, ctx, input):
    (rest, value) = self.parser.tryParse(ctx, input)
    if value is None:
      return (input, None)
    values = [value]
    while True:
      (nextRest, value) = self.parser.tryParse(ctx, rest)
      if value is None:
        return (rest, values)
      rest = nextRest
      values.append(value)

class WsAndComments(Parser):
  def desc(self):
    return 'whitespace or comments'
  def tryParse(self, ctx, input):
    rest = input.trimWscStart()
    if len(rest) < len(input):
      return (rest, input.slice(0, len(input) - len(rest)))
    return (input, None)

def skipWs(ctx, input):
  return input.trimWscStart()

class BalancedValue:
  def __init__(self, span, inner):
    self.span = span
    self.inner = inner
  def getSpan(self):
    return self.span

class Balanced(Parser):
  def __init__(self, open, close):
    self.open = open
    self.close = close
  def desc(self):
    return 'balanced %s...%s' % (self.open.desc(), self.close.desc())
  def tryParse(self, ctx, input):
    (rest, opened) = self.open.tryParse(ctx, input)
    if opened is None:
      return (input, None)
    innerStart = rest.start()
    nesting = 1
    while True:
      (nextRest, token) = self.open.tryParse(ctx, rest)
      if token is not None:
        rest = nextRest
        nesting += 1
        continue
      (nextRest, closed) = self.close.tryParse(ctx, rest)
      if closed is not None:
        innerEnd = rest.start()
        rest = nextRest
        nesting -= 1
        if nesting == 0:
          return (rest, BalancedValue(opened.span.join(closed.span), innerStart.join(innerEnd)))
        continue
      if rest.isEmpty():
        raise ParseError(opened.span, 'no matching balanced %s for %s' % (self.close.desc(), self.open.desc()))
      rest = rest.slice(1)

class DelimitedValue:
  def __init__(self, open, value, close):
    self.open = open
    self.value = value
    self.close = close
    self.span = open.span.join(close.span)
  def getSpan(self):
    return self.span

class Delimited(Parser):
  def __init__(self, open, parser, close):
    self.open = open
    self.parser = parser
    self.close = close
  def desc(self):
    return '%s %s %s' % (self.open.desc(), self.parser.desc(), self.close.desc())
  def tryParse(self, ctx, input):
    (rest, opened) = self.open.tryParse(ctx, input)
    if opened is not None:
      rest = skipWs(ctx, rest)
      (rest, value) = self.parser.tryParse(ctx, rest)
      if value is not None:
        rest = skipWs(ctx, rest)
        (rest, closed) = self.close.parse(ctx, rest)
        return (rest, DelimitedValue(opened, value, closed))
    return (input, None)

class Punctuated(Parser):
  """
  One or more elements separated by a punctuation parser. The value is a list
  of (element, separator) pairs and the last separator is always None. An
  element is required after every separator.
  """

  def __init__(self, parser, separator):
    self.parser = parser
    self.separator = separator
  def desc(self):
    return '%s punctuated by %s' % (self.parser.desc(), self.separator.desc())
  def tryParse(self, ctx, input):
    (rest, value) = self.parser.tryParse(ctx, input)
    if value is None:
      return (input, None)
    pairs = []
    while True:
      (nextRest, punct) = self.separator.tryParse(ctx, skipWs(ctx, rest))
      if punct is None:
        break
      pairs.append((value, punct))
      (rest, value) = self.parser.parse(ctx, skipWs(ctx, nextRest))
    pairs.append((value, None))
    return (rest, pairs)

  @staticmethod
  def values(pairs):
    return [value for (value, punct) in pairs]

class Terminated(Parser):
  def __init__(self, parser, terminator):
    self.parser = parser
    self.terminator = terminator
  def desc(self):
    return self.parser.desc()
  def tryParse(self, ctx, input):
    (rest, value) = self.parser.tryParse(ctx, input)
    if value is not None:
      (rest, term) = self.terminator.tryParse(ctx, skipWs(ctx, rest))
      if term is not None:
        return (rest, value)
    return (input, None)
