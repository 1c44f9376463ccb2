from xtermcolor.ColorMap import XTermColorMap

class Theme:
  def error(self, string):
    return string
  def message(self, string):
    return string
  def sidebar(self, string):
    return string
  def level(self, levelname):
    return levelname
  def node(self, string):
    return string
  def attribute(self, string):
    return string
  def value(self, string):
    return string

class PlainTextTheme(Theme):
  pass

class XTermTheme(Theme):
  colors = {
    'error': 0xff0000,
    'message': 0xffffff,
    'sidebar': 0x5f87ff,
    'debug': 0x00ff00,
    'info': 0x00afff,
    'warning': 0xffaf00,
    'critical': 0xff00ff,
    'node': 0x5fafff,
    'attribute': 0x87d787,
    'value': 0xd7af5f
  }

  def __init__(self):
    self.colormap = XTermColorMap()

  def _colorize(self, string, key):
    if not string:
      return string
    return self.colormap.colorize(string, self.colors[key])

  def error(self, string):
    return self._colorize(string, 'error')

  def message(self, string):
    return self._colorize(string, 'message')

  def sidebar(self, string):
    return self._colorize(string, 'sidebar')

  def level(self, levelname):
    if levelname not in self.colors:
      return levelname
    return self._colorize(levelname, levelname)

  def node(self, string):
    return self._colorize(string, 'node')

  def attribute(self, string):
    return self._colorize(string, 'attribute')

  def value(self, string):
    return self._colorize(string, 'value')

def create(color=False):
  return XTermTheme() if color else PlainTextTheme()
