from sdlgen.Theme import PlainTextTheme

class ParseError(Exception):
  """
  A diagnostic pinned to a Span. str() renders the offending line with a
  line number gutter and carets under the span:

    error: expected `;`
      --> SDL_video.h:12:6
       |
    12 | int x
       |      ^ expected `;`
  """

  def __init__(self, span, message):
    super().__init__(message)
    self.span = span
    self.message = message

  def getSpan(self):
    return self.span

  def getMessage(self):
    return self.message

  def mapMessage(self, message):
    self.message = message
    self.args = (message,)
    return self

  def render(self, theme=None):
    if theme is None:
      theme = PlainTextTheme()
    source = self.span.getSource()
    (line, column, lineStart) = self.span.getLineAndColumn()
    message = self.message
    sidebar = str(line)
    sidebarEmpty = ' ' * len(sidebar)
    lineString = source.string[lineStart:].split('\n', 1)[0]
    indent = ''.join(c if c == '\t' else ' ' for c in lineString[:min(column - 1, len(lineString))])
    arrows = '^' * max(1, min(len(self.span), len(lineString) - len(indent)))

    lines = [
      theme.error('error') + theme.message(': %s' % (message)),
      theme.sidebar('%s--> ' % (sidebarEmpty)) + '%s:%d:%d' % (source.resource, line, column),
      theme.sidebar('%s |' % (sidebarEmpty)),
      theme.sidebar('%s | ' % (sidebar)) + lineString
    ]
    if len(indent) > len(message):
      lines.append(theme.sidebar('%s | ' % (sidebarEmpty)) + theme.error('%s%s %s' % (indent[:len(indent) - len(message) - 1], message, arrows)))
    elif len(sidebarEmpty) + 2 + 1 + len(indent) + len(arrows) + 1 + len(message) > 100:
      lines.append(theme.sidebar('%s | ' % (sidebarEmpty)) + theme.error(indent + arrows))
      lines.append(theme.sidebar('%s | ' % (sidebar)) + theme.error(message))
    else:
      lines.append(theme.sidebar('%s | ' % (sidebarEmpty)) + theme.error('%s%s %s' % (indent, arrows, message)))
    return '\n'.join(lines)

  def __str__(self):
    return self.render()

class UnsupportedConstruct(ParseError):
  pass
