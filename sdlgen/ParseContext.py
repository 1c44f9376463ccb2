from contextlib import contextmanager

from sdlgen.Logger import Factory as LoggerFactory

class ParseContext:
  FIRST_SIBLING = 1

  def __init__(self, module=None):
    self.module = module or ''
    self.parentStructIdent = None
    self.siblingStructIndex = self.FIRST_SIBLING
    self.debugEnabled = False
    self.patchIdents = dict()
    self.activeTypedef = None
    self.logger = LoggerFactory().getClassLogger(__name__, self.__class__.__name__)

  @contextmanager
  def parentStructGuard(self, ident):
    savedIdent = self.parentStructIdent
    savedIndex = self.siblingStructIndex
    self.parentStructIdent = ident
    self.siblingStructIndex = self.FIRST_SIBLING
    try:
      yield self
    finally:
      self.parentStructIdent = savedIdent
      self.siblingStructIndex = savedIndex

  def nextSiblingIndex(self):
    index = self.siblingStructIndex
    self.siblingStructIndex += 1
    return index

  @contextmanager
  def debugLogGuard(self, enable):
    wasEnabled = self.debugEnabled
    self.debugEnabled = enable
    try:
      yield self
    finally:
      self.debugEnabled = wasEnabled

  def logDebug(self, message):
    if self.debugEnabled:
      self.logger.debug('%s: %s' % (self.module, message))

  @contextmanager
  def patchIdentsGuard(self):
    saved = dict(self.patchIdents)
    try:
      yield self
    finally:
      self.patchIdents = saved

  def addPatchIdent(self, src, name):
    self.patchIdents[src.getString()] = name

  def patchIdent(self, src):
    return self.patchIdents.get(src.getString())

  @contextmanager
  def typedefGuard(self, typedef):
    saved = self.activeTypedef
    self.activeTypedef = typedef
    try:
      yield self
    finally:
      self.activeTypedef = saved
