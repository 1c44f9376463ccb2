from functools import total_ordering

from sdlgen.ParseError import ParseError

class Source:
  def __init__(self, resource, string):
    self.resource = resource
    self.string = string

  def getResource(self):
    return self.resource

  def getString(self):
    return self.string

  def __str__(self):
    return '<Source file=%s>' % (self.resource)

NO_SOURCE = Source('', '')

@total_ordering
class Span:
  """
  An immutable view over a range of a Source. Slicing and joining share the
  Source; equality, ordering and hashing use the spanned text so spans work as
  dictionary keys for identifier lookups.
  """

  def __init__(self, source, startIndex=0, endIndex=None):
    if endIndex is None:
      endIndex = len(source.string) if source else 0
    self.source = source
    self.startIndex = startIndex
    self.endIndex = endIndex

  @staticmethod
  def fromSource(source):
    return Span(source, 0, len(source.string))

  @staticmethod
  def fromString(resource, string):
    return Span.fromSource(Source(resource, string))

  @staticmethod
  def inline(string):
    return Span.fromString('<inline>', string)

  @staticmethod
  def none():
    return Span(None, 0, 0)

  def getSource(self):
    return self.source if self.source else NO_SOURCE

  def getString(self):
    if not self.source:
      return ''
    return self.source.string[self.startIndex:self.endIndex]

  def cloneRange(self, start, end):
    return Span(self.source, start, end)

  def isEmpty(self):
    return self.startIndex == self.endIndex

  def __len__(self):
    return self.endIndex - self.startIndex

  def start(self):
    return self.cloneRange(self.startIndex, self.startIndex)

  def end(self):
    return self.cloneRange(self.endIndex, self.endIndex)

  def join(self, other):
    if other.source is None:
      return self
    if self.source is None:
      return other
    assert self.source is other.source, 'joined spans must share a source'
    return self.cloneRange(min(self.startIndex, other.startIndex), max(self.endIndex, other.endIndex))

  def slice(self, start=0, end=None):
    if end is None:
      end = len(self)
    start = self.startIndex + start
    end = self.startIndex + end
    assert start <= end <= len(self.getSource().string), 'slice out of range'
    return self.cloneRange(start, end)

  def splitAt(self, index):
    assert self.startIndex + index <= self.endIndex, 'split out of range'
    middle = self.startIndex + index
    return (self.cloneRange(self.startIndex, middle), self.cloneRange(middle, self.endIndex))

  def contains(self, pattern):
    return pattern in self.getString()

  def startsWith(self, pattern):
    return self.getString().startswith(pattern)

  def endsWith(self, pattern):
    return self.getString().endswith(pattern)

  def stripPrefix(self, prefix):
    if self.getString().startswith(prefix):
      return self.slice(len(prefix))
    return None

  def trim(self):
    return self.trimStart().trimEnd()

  def trimStart(self):
    string = self.getString()
    return self.slice(len(string) - len(string.lstrip()))

  def trimEnd(self):
    return self.slice(0, len(self.getString().rstrip()))

  def trimWsc(self):
    return self.trimWscStart().trimWscEnd()

  def trimWscStart(self):
    string = self.getString()
    length = len(string)
    i = 0
    while i < length:
      ch = string[i]
      if ch.isspace():
        i += 1
        continue
      if ch == '\\' and string[i + 1:i + 2] == '\n':
        i += 2
        continue
      # /** ... */ is documentation and stays, /**/ is an empty plain comment
      if string[i:i + 2] == '/*' and (string[i + 2:i + 3] != '*' or string[i + 3:i + 4] == '/'):
        close = string.find('*/', i + 2)
        if close < 0:
          raise ParseError(self.slice(i, i + 2), 'unterminated block comment')
        i = close + 2
        continue
      return self.slice(i)
    return self.end()

  def trimWscEnd(self):
    string = self.getString()
    i = len(string) - 1
    while i >= 0:
      ch = string[i]
      if ch == '\n' and i > 0 and string[i - 1] == '\\':
        i -= 2
        continue
      if ch.isspace():
        i -= 1
        continue
      if i > 0 and ch == '/' and string[i - 1] == '*':
        opening = string.rfind('/*', 0, i)
        if opening < 0:
          raise ParseError(self.slice(i - 1, i + 1), 'block comment end with no beginning')
        if opening + 2 != i - 1 and string[opening + 2] == '*':
          return self.slice(0, i + 1)
        i = opening - 1
        continue
      return self.slice(0, i + 1)
    return self.start()

  def getLineAndColumn(self):
    string = self.getSource().string
    line = 1
    lineStart = 0
    for index in range(min(self.startIndex, len(string))):
      if string[index] == '\n':
        line += 1
        lineStart = index + 1
    return (line, self.startIndex - lineStart + 1, lineStart)

  def __eq__(self, other):
    if isinstance(other, Span):
      return self.getString() == other.getString()
    if isinstance(other, str):
      return self.getString() == other
    return NotImplemented

  def __lt__(self, other):
    if isinstance(other, Span):
      return self.getString() < other.getString()
    if isinstance(other, str):
      return self.getString() < other
    return NotImplemented

  def __hash__(self):
    return hash(self.getString())

  def __str__(self):
    return self.getString()

  def __repr__(self):
    return '<Span %s[%d:%d] %r>' % (self.getSource().resource, self.startIndex, self.endIndex, self.getString())
