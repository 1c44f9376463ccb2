from sdlgen.Span import Span
from sdlgen.Ident import Ident
from sdlgen.Op import OpToken
from sdlgen.Theme import PlainTextTheme

# attributes that only restate a node's position
HIDDEN_ATTRIBUTES = frozenset(['span', 'logger'])

class ItemPrettyPrintable:
  """
  Indented dump of a parsed item tree, one attribute per line:

    (Define:
      ident=SDL_BUTTON_LEFT,
      args=None,
      ...
    )
  """

  def __init__(self, item, theme=None):
    self.item = item
    self.theme = theme if theme is not None else PlainTextTheme()

  def __str__(self):
    return self._prettyPrint(self.item, 0)

  def _isNode(self, value):
    return hasattr(value, '__dict__') and value.__class__.__module__.startswith('sdlgen.')

  def _prettyPrint(self, value, indent=0):
    indentStr = ' ' * indent
    theme = self.theme
    if isinstance(value, (Span, Ident, OpToken)):
      return '%s%s' % (indentStr, theme.value(repr(value.getString())))
    if isinstance(value, (list, tuple)):
      if len(value) == 0:
        return '%s[]' % (indentStr)
      string = '%s[\n' % (indentStr)
      string += ',\n'.join([self._prettyPrint(element, indent + 2) for element in value])
      string += '\n%s]' % (indentStr)
      return string
    if self._isNode(value):
      attributes = [(name, attr) for (name, attr) in vars(value).items() if name not in HIDDEN_ATTRIBUTES]
      if not attributes:
        return '%s(%s)' % (indentStr, theme.node(value.__class__.__name__))
      string = '%s(%s:\n' % (indentStr, theme.node(value.__class__.__name__))
      string += ',\n'.join([
        '%s  %s=%s' % (indentStr, theme.attribute(name), self._prettyPrint(attr, indent + 2).lstrip()) for (name, attr) in attributes
      ])
      string += '\n%s)' % (indentStr)
      return string
    return '%s%s' % (indentStr, theme.value(repr(value)))
