import logging

from sdlgen.Theme import create as createTheme

class LevelFormatter(logging.Formatter):
  def __init__(self, theme):
    super().__init__('[sdlgen][%(levelname)s] %(message)s')
    self.theme = theme
  def format(self, record):
    record = logging.makeLogRecord(record.__dict__)
    record.levelname = self.theme.level(record.levelname.lower())
    return super().format(record)

class Factory:
  def initialize(self, debug=False, color=False):
    logger = logging.getLogger('sdlgen')
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    for handler in list(logger.handlers):
      logger.removeHandler(handler)
    stderrLogger = logging.StreamHandler()
    stderrLogger.setLevel(logging.DEBUG if debug else logging.INFO)
    stderrLogger.setFormatter(LevelFormatter(createTheme(color)))
    logger.addHandler(stderrLogger)
    logger.propagate = False
    return logger
  def getProgramLogger(self):
    return logging.getLogger('sdlgen')
  def getModuleLogger(self, module):
    return logging.getLogger('%s' % (module))
  def getClassLogger(self, module, className):
    return logging.getLogger('%s.%s' % (module, className))
