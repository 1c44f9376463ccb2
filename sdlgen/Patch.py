from sdlgen.Span import Span
from sdlgen.ParseError import ParseError
from sdlgen.ParseContext import ParseContext
from sdlgen.Expr import Cast, FnCall, Ambiguous
from sdlgen.Type import TYPE

def parseType(string):
  return TYPE.parseAll(ParseContext(), Span.inline(string))

def nameMatches(patterns, name):
  """Patterns ending in `*` match by prefix, the rest exactly."""
  for pattern in patterns:
    if pattern.endswith('*'):
      if name.startswith(pattern[:-1]):
        return True
    elif name == pattern:
      return True
  return False

def calledName(expr):
  if isinstance(expr, Ambiguous):
    exprs = expr.exprs()
    expr = exprs[0] if exprs else None
  if isinstance(expr, FnCall):
    return expr.getName()
  return None

class DefinePatch:
  """
  Fixes up a parsed #define of one module: argument types for a macro that
  can then be emitted as a typed function, a cast wrapped around the value,
  or dropping the value of annotation macros.
  """

  def __init__(self, module, names, argTypes=None, valueType=None, dropCallsTo=None):
    self.module = module
    self.names = names
    self.argTypes = argTypes
    self.valueType = valueType
    self.dropCallsTo = dropCallsTo

  def matches(self, module, name):
    return self.module == module and nameMatches(self.names, name)

  def apply(self, define):
    from sdlgen.PreProcessor import DefineValue
    if self.dropCallsTo is not None:
      if define.value.kind != DefineValue.EXPR or calledName(define.value.value) not in self.dropCallsTo:
        return False
      define.value = DefineValue.empty()
      return True
    if self.argTypes is not None:
      if define.args is None or len(define.args) != len(self.argTypes):
        raise ParseError(define.ident.span, 'expected a macro with %d arguments' % (len(self.argTypes)))
      for (arg, string) in zip(define.args, self.argTypes):
        arg.ty = parseType(string)
    if self.valueType is not None:
      if define.value.kind != DefineValue.EXPR:
        raise ParseError(define.ident.span, "can't cast a %s define" % (define.value.kind))
      expr = define.value.value
      define.value = DefineValue.expr(Cast(expr.getSpan(), parseType(self.valueType), expr))
    return True

HAPTIC_EFFECTS = (
  'SDL_HAPTIC_CONSTANT', 'SDL_HAPTIC_CUSTOM', 'SDL_HAPTIC_DAMPER', 'SDL_HAPTIC_FRICTION',
  'SDL_HAPTIC_INERTIA', 'SDL_HAPTIC_LEFTRIGHT', 'SDL_HAPTIC_RAMP', 'SDL_HAPTIC_RESERVED1',
  'SDL_HAPTIC_RESERVED2', 'SDL_HAPTIC_RESERVED3', 'SDL_HAPTIC_SAWTOOTHDOWN', 'SDL_HAPTIC_SAWTOOTHUP',
  'SDL_HAPTIC_SINE', 'SDL_HAPTIC_SPRING', 'SDL_HAPTIC_SQUARE', 'SDL_HAPTIC_TRIANGLE'
)

DEFINE_PATCHES = [
  DefinePatch('audio', ('SDL_AUDIO_BITSIZE',), argTypes=['SDL_AudioFormat']),
  DefinePatch('audio', ('SDL_AUDIO_FRAMESIZE',), argTypes=['SDL_AudioSpec']),
  DefinePatch('audio', ('SDL_AUDIO_IS*',), argTypes=['SDL_AudioFormat'], valueType='bool'),
  DefinePatch('audio', ('SDL_DEFINE_AUDIO_FORMAT',), argTypes=['bool', 'bool', 'bool', 'uint8_t'], valueType='SDL_AudioFormat'),
  DefinePatch('error', ('SDL_InvalidParamError',), argTypes=['const char *']),
  DefinePatch('haptic', ('SDL_HAPTIC_CARTESIAN', 'SDL_HAPTIC_POLAR', 'SDL_HAPTIC_SPHERICAL', 'SDL_HAPTIC_STEERING_AXIS'), valueType='Uint8'),
  DefinePatch('haptic', HAPTIC_EFFECTS, valueType='Uint16'),
  DefinePatch('joystick', ('SDL_HAT_*',), valueType='Uint8'),
  DefinePatch('joystick', ('SDL_JOYSTICK_AXIS_MAX', 'SDL_JOYSTICK_AXIS_MIN'), valueType='Sint16'),
  DefinePatch('keycode', ('SDL_SCANCODE_TO_KEYCODE',), argTypes=['SDL_Scancode']),
  DefinePatch('mouse', ('SDL_BUTTON_MASK',), valueType='SDL_MouseButtonFlags'),
  DefinePatch('mutex', ('*',), dropCallsTo=frozenset(['__attribute__', 'SDL_THREAD_ANNOTATION_ATTRIBUTE__'])),
  DefinePatch('pixels', ('SDL_ALPHA_OPAQUE', 'SDL_ALPHA_TRANSPARENT'), valueType='Uint8'),
  DefinePatch('pixels', ('SDL_BITSPERPIXEL', 'SDL_BYTESPERPIXEL'), argTypes=['SDL_PixelFormat'], valueType='uint8_t'),
  DefinePatch('pixels', ('SDL_DEFINE_COLORSPACE',),
              argTypes=['SDL_ColorType', 'SDL_ColorRange', 'SDL_ColorPrimaries',
                        'SDL_TransferCharacteristics', 'SDL_MatrixCoefficients', 'SDL_ChromaLocation'],
              valueType='SDL_Colorspace'),
  DefinePatch('pixels', ('SDL_COLORSPACE*',), argTypes=['SDL_Colorspace']),
  # the order argument takes the inner type of the order enums
  DefinePatch('pixels', ('SDL_DEFINE_PIXELFORMAT',),
              argTypes=['SDL_PixelType', 'int', 'SDL_PackedLayout', 'uint8_t', 'uint8_t'],
              valueType='SDL_PixelFormat'),
  DefinePatch('pixels', ('SDL_PIXELFLAG', 'SDL_PIXELORDER'), argTypes=['SDL_PixelFormat']),
  DefinePatch('pixels', ('SDL_PIXELLAYOUT',), argTypes=['SDL_PixelFormat'], valueType='SDL_PackedLayout'),
  DefinePatch('pixels', ('SDL_PIXELTYPE',), argTypes=['SDL_PixelFormat'], valueType='SDL_PixelType'),
  DefinePatch('render', ('SDL_RENDERER_VSYNC_*',), valueType='int'),
  DefinePatch('stdinc', ('SDL_iconv_wchar_utf8',), argTypes=['const wchar_t *']),
  DefinePatch('surface', ('SDL_MUSTLOCK',), argTypes=['const SDL_Surface *']),
  DefinePatch('system', ('SDL_ANDROID_EXTERNAL_STORAGE_*',), valueType='Uint32'),
  DefinePatch('timer', ('SDL_NS_TO_*',), argTypes=['Uint64']),
  DefinePatch('video', ('SDL_WINDOWPOS_CENTERED_DISPLAY', 'SDL_WINDOWPOS_UNDEFINED_DISPLAY'), argTypes=['SDL_DisplayID'], valueType='int'),
  DefinePatch('video', ('SDL_WINDOWPOS_ISCENTERED', 'SDL_WINDOWPOS_ISUNDEFINED'), argTypes=['int'])
]

# (module, enum) -> base type
ENUM_BASE_TYPES = {
  ('audio', 'SDL_AudioFormat'): 'unsigned int',
  ('events', 'SDL_EventType'): 'Uint32',
  ('pixels', 'SDL_Colorspace'): 'Uint32',
  ('pixels', 'SDL_ChromaLocation'): 'unsigned int',
  ('pixels', 'SDL_ColorPrimaries'): 'unsigned int',
  ('pixels', 'SDL_ColorRange'): 'unsigned int',
  ('pixels', 'SDL_ColorType'): 'unsigned int',
  ('pixels', 'SDL_MatrixCoefficients'): 'unsigned int',
  ('pixels', 'SDL_TransferCharacteristics'): 'unsigned int'
}

HIDDEN_ENUMS = frozenset([('stdinc', 'SDL_DUMMY_ENUM')])

SKIPPED_FUNCTIONS = frozenset(['__debugbreak', '_ReadWriteBarrier'])

def patchDefine(ctx, define):
  """Apply the first matching patch of ctx's module to define. Returns True if it changed."""
  name = define.ident.getString()
  for patch in DEFINE_PATCHES:
    if patch.matches(ctx.module, name) and patch.apply(define):
      ctx.logDebug('patched define %s' % (name))
      return True
  return False

def enumBaseType(module, name):
  string = ENUM_BASE_TYPES.get((module, name))
  return parseType(string) if string is not None else None

def isHiddenEnum(module, name):
  return (module, name) in HIDDEN_ENUMS

def isSkippedFunction(name):
  return name in SKIPPED_FUNCTIONS
