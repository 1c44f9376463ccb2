from sdlgen.ParseError import ParseError
from sdlgen.Combinators import Parser, WsAndComments

def commonDocPrefix(a, b):
  index = 0
  for (ca, cb) in zip(a, b):
    if ca != cb or ca.isalnum():
      return a[:index]
    index += 1
  return a[:min(len(a), len(b))]

def _linePrefix(lines):
  if len(lines) == 0:
    return None
  if len(lines) == 1:
    return None
  second = lines[1]
  index = 0
  while index < len(second) and (second[index].isspace() or second[index] == '*'):
    index += 1
  prefix = second[:index]
  for line in lines[2:]:
    prefix = commonDocPrefix(prefix, line)
  return prefix

class DocComment:
  def __init__(self, span, doc, trailing=False):
    self.span = span
    self.doc = doc
    self.trailing = trailing

  def getText(self):
    """
    The comment text with the leading ` * ` decoration removed, an initial
    `# Category` header dropped and trailing blank lines collapsed.
    """
    raw = self.doc.getString().splitlines()
    nonEmpty = [line for line in raw if line.strip()]
    if not nonEmpty:
      return ''
    if len(nonEmpty) == 1:
      return nonEmpty[0].strip()
    prefix = _linePrefix(nonEmpty)
    stripped = [line[len(prefix):] if line.startswith(prefix) else line for line in raw]
    prefix2 = _linePrefix([line for line in stripped if line.strip()]) or ''

    lines = []
    for line in raw:
      if line.startswith(prefix):
        line = line[len(prefix):]
        if line.startswith(prefix2):
          line = line[len(prefix2):]
      lines.append(line.rstrip())

    while lines and not lines[0].strip():
      lines.pop(0)
    if lines and lines[0].strip().startswith('# Category'):
      lines.pop(0)
      if lines and not lines[0].strip():
        lines.pop(0)

    out = []
    empties = 0
    for line in lines:
      if not line.strip():
        empties += 1
        continue
      out.extend([''] * empties)
      empties = 0
      out.append(line)
    return '\n'.join(out)

  def __str__(self):
    return self.getText()

  def __repr__(self):
    return '<DocComment %r>' % (self.doc.getString())

class DocCommentParser(Parser):
  def desc(self):
    return 'documentation comment'

  def tryParse(self, ctx, input):
    rest = input.trimWscStart()
    if not rest.startsWith('/**') or rest.startsWith('/**<'):
      return (input, None)
    start = rest.start()
    end = rest.getString().find('*/', 3)
    if end < 0:
      raise ParseError(rest.slice(0, 4), 'doc comment with no end')
    doc = rest.slice(3, end)
    rest = rest.slice(end + 2)
    # eat whitespace up to and including at most one newline
    string = rest.getString()
    gotNewline = False
    for (index, ch) in enumerate(string):
      if ch == '\n':
        if gotNewline:
          rest = rest.slice(index)
          return (rest, DocComment(start.join(rest.start()), doc))
        gotNewline = True
      elif not ch.isspace():
        rest = rest.slice(index)
        return (rest, DocComment(start.join(rest.start()), doc))
    return (rest.end(), DocComment(start.join(rest.end()), doc))

  def tryParseCombinePostfix(self, ctx, input, pre):
    (rest, post) = DOC_COMMENT_POST.tryParse(ctx, input)
    if post is None:
      return (input, pre)
    # prefix documentation wins over postfix
    return (rest, pre if pre is not None else post)

  def tryParseRevCombinePostfix(self, ctx, input, pre):
    (rest, post) = DOC_COMMENT_POST.tryParseRev(ctx, input)
    if post is None:
      return (input, pre)
    return (rest, pre if pre is not None else post)

class DocCommentFileParser(Parser):
  def desc(self):
    return 'doc comment for file'

  def tryParse(self, ctx, input):
    (rest, doc) = DOC_COMMENT.tryParse(ctx, input)
    if doc is not None:
      (rest, ws) = WsAndComments().tryParse(ctx, rest)
      if ws is not None:
        return (rest, doc)
    return (input, None)

class DocCommentPostParser(Parser):
  def desc(self):
    return 'documentation comment (postfix)'

  def tryParse(self, ctx, input):
    rest = input.trimWscStart()
    if not rest.startsWith('/**<'):
      return (input, None)
    end = rest.getString().find('*/', 4)
    if end < 0:
      raise ParseError(rest.slice(0, 4), 'doc comment with no end')
    (span, rest) = rest.splitAt(end + 2)
    return (rest, DocComment(span, span.slice(4, len(span) - 2).trim(), trailing=True))

  def tryParseRev(self, ctx, input):
    """Match a postfix doc comment at the end of input, returning the text before it."""
    rest = input.trimWscEnd()
    if not rest.endsWith('*/'):
      return (input, None)
    start = rest.getString().rfind('/**<')
    if start < 0:
      return (input, None)
    (rest, span) = rest.splitAt(start)
    return (rest, DocComment(span, span.slice(4, len(span) - 2).trim(), trailing=True))

DOC_COMMENT = DocCommentParser()
DOC_COMMENT_FILE = DocCommentFileParser()
DOC_COMMENT_POST = DocCommentPostParser()
