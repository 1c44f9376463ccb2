import os
from collections import OrderedDict

from sdlgen.Span import Span
from sdlgen.ParseError import ParseError
from sdlgen.ParseContext import ParseContext
from sdlgen.Item import ITEMS
from sdlgen.Emitter import emitModule
from sdlgen.Metadata import renderModule, renderIndex
from sdlgen.Logger import Factory as LoggerFactory

SKIPPED_MODULES = frozenset([
  'begin_code', 'close_code', 'copying', 'egl', 'endian', 'intrin',
  'oldnames', 'platform_defines'
])

SKIPPED_PREFIXES = ('main', 'opengl', 'test')

logger = LoggerFactory().getModuleLogger(__name__)

def moduleName(filename):
  """`SDL_video.h` -> `video`, or None for files that aren't SDL headers."""
  lower = filename.lower()
  if not lower.startswith('sdl_') or not lower.endswith('.h'):
    return None
  return lower[len('sdl_'):-len('.h')]

def isSkippedModule(module):
  return module in SKIPPED_MODULES or module.startswith(SKIPPED_PREFIXES)

def readSource(path):
  try:
    with open(path, encoding='utf-8') as fp:
      string = fp.read()
  except UnicodeDecodeError:
    logger.debug('%s is not utf-8, reading it as latin-1' % (path))
    with open(path, encoding='iso-8859-1') as fp:
      string = fp.read()
  return Span.fromString(os.path.basename(path), string)

def parseSource(module, span, debug=False):
  ctx = ParseContext(module)
  with ctx.debugLogGuard(debug):
    items = ITEMS.tryParseAll(ctx, span.trimWsc())
  return items if items is not None else []

class Driver:
  def __init__(self, debug=False):
    self.debug = debug
    self.metadata = OrderedDict()
    self.logger = LoggerFactory().getClassLogger(__name__, self.__class__.__name__)

  def findHeaders(self, path, modules=None):
    headers = OrderedDict()
    for filename in sorted(os.listdir(path)):
      module = moduleName(filename)
      if module is None:
        continue
      if isSkippedModule(module):
        self.logger.debug('skipping %s' % (filename))
        continue
      if modules and module not in modules:
        continue
      headers[module] = os.path.join(path, filename)
    return headers

  def parseDirectory(self, path, modules=None):
    """
    Parse every SDL header under path. A header that fails to parse is left
    out of the result and reported as a (module, ParseError) failure.
    """
    parsed = OrderedDict()
    failures = []
    for (module, filename) in self.findHeaders(path, modules).items():
      self.logger.info('parsing %s' % (os.path.basename(filename)))
      try:
        parsed[module] = parseSource(module, readSource(filename), self.debug)
      except ParseError as error:
        failures.append((module, error))
    return (parsed, failures)

  def emitModules(self, parsed):
    outputs = OrderedDict()
    failures = []
    knownModules = frozenset(parsed.keys())
    for (module, items) in parsed.items():
      self.logger.info('emitting %s' % (module))
      try:
        (outputs[module], self.metadata[module]) = emitModule(module, items, knownModules)
      except ParseError as error:
        failures.append((module, error))
    return (outputs, failures)

  def writeModules(self, outputs, directory):
    if not os.path.isdir(directory):
      os.makedirs(directory)
    written = []
    for (module, text) in outputs.items():
      path = os.path.join(directory, '%s.rs' % (module))
      with open(path, 'w', encoding='utf-8') as fp:
        fp.write(text)
      written.append(path)
    return written

  def writeMetadata(self, directory):
    """Write the metadata of every emitted module to <directory>/metadata."""
    metadataDirectory = os.path.join(directory, 'metadata')
    if not os.path.isdir(metadataDirectory):
      os.makedirs(metadataDirectory)
    files = [(os.path.join(metadataDirectory, '%s.rs' % (module)), renderModule(module, metadata)) for (module, metadata) in self.metadata.items()]
    files.append((os.path.join(metadataDirectory, 'mod.rs'), renderIndex(self.metadata)))
    for (path, text) in files:
      with open(path, 'w', encoding='utf-8') as fp:
        fp.write(text)
    return [path for (path, text) in files]
