import unittest
from collections import OrderedDict
from sdlgen.Span import Span
from sdlgen.ParseError import ParseError
from sdlgen.ParseContext import ParseContext
from sdlgen.Item import ITEMS
from sdlgen.Emitter import emitItems, emitModule, rustIdent, commonIdentPrefix, rustByteString, rustFloat, integerDigits
from sdlgen.Literal import INTEGER_LITERAL
from sdlgen.Metadata import Metadata, renderModule, renderIndex, rustStr, availableSince

def parse(source, module='test'):
  items = ITEMS.tryParseAll(ParseContext(module), Span.fromString('SDL_%s.h' % (module), source).trimWsc())
  return items if items is not None else []

def emit(source, module='test', knownModules=None):
  return emitItems(module, parse(source, module), knownModules)

class HelperTest(unittest.TestCase):

  def test_rustIdent(self):
    self.assertEqual('r#type', rustIdent('type'))
    self.assertEqual('self_', rustIdent('self'))
    self.assertEqual('SDL_Init', rustIdent('SDL_Init'))

  def test_commonIdentPrefix(self):
    self.assertEqual('SDL_FLIP_', commonIdentPrefix(['SDL_FLIP_NONE', 'SDL_FLIP_HORIZONTAL']))
    self.assertEqual('SDL_', commonIdentPrefix(['SDL_SCALE_1', 'SDL_SCALE_2']))
    self.assertEqual('', commonIdentPrefix(['A', 'B']))
    self.assertEqual('', commonIdentPrefix([]))

  def test_integerDigitsKeepsRadixAndWidth(self):
    for (string, expected) in [('0x00FF', '0x00FF'), ('0xff', '0xFF'), ('0755', '0o755'), ('0b0101', '0b0101'), ('42', '42')]:
      (rest, literal) = INTEGER_LITERAL.tryParse(ParseContext(), Span.inline(string))
      self.assertEqual(expected, integerDigits(literal))

  def test_rustByteString(self):
    self.assertEqual('b"a' + '\\"' + '\\\\' + '\\x0a' + '\\0"', rustByteString(b'a"\\\n'))

  def test_rustFloat(self):
    self.assertEqual('1.5_f32', rustFloat(1.5, 'f32'))
    self.assertEqual('2.0_f64', rustFloat(2, 'f64'))
    self.assertIsNone(rustFloat(float('inf'), 'f64'))

class DefineEmitTest(unittest.TestCase):

  def test_hexConstant(self):
    self.assertIn('pub const NAME: ::core::primitive::i32 = 0x00FF;', emit('#define NAME 0x00FF\n'))

  def test_constantReferringToConstant(self):
    out = emit('#define WIDTH (640)\n#define HEIGHT (WIDTH / 2)\n')
    self.assertIn('pub const WIDTH: ::core::primitive::i32 = 640;', out)
    self.assertIn('pub const HEIGHT: ::core::primitive::i32 = (WIDTH / 2);', out)

  def test_suffixedConstants(self):
    out = emit('#define BIG 0xFFFFFFFFu\n#define MASK (BIG | 1)\n')
    self.assertIn('pub const BIG: ::core::primitive::u32 = 0xFFFFFFFF_u32;', out)
    self.assertIn('pub const MASK: ::core::primitive::u32 = (BIG | 1);', out)

  def test_stringAndFloatConstants(self):
    out = emit('#define SDL_PROP "SDL.window"\n#define SDL_HALF 0.5f\n')
    self.assertIn('pub const SDL_PROP: *const ::core::ffi::c_char = b"SDL.window\\0".as_ptr().cast::<::core::ffi::c_char>();', out)
    self.assertIn('pub const SDL_HALF: ::core::primitive::f32 = 0.5_f32;', out)

  def test_docCommentIsCarried(self):
    out = emit('/**\n * The left button.\n */\n#define SDL_BUTTON_LEFT 1\n')
    self.assertIn('/// The left button.\npub const SDL_BUTTON_LEFT: ::core::primitive::i32 = 1;', out)

  def test_typeDefine(self):
    self.assertIn('pub type SDL_Foo = ::core::ffi::c_int;', emit('#define SDL_Foo int\n'))

  def test_identDefineAliasesKnownType(self):
    out = emit('typedef struct SDL_Point { int x; } SDL_Point;\n#define SDL_OldPoint SDL_Point\n#define SDL_Other SDL_Unknown\n')
    self.assertIn('pub type SDL_OldPoint = SDL_Point;', out)
    self.assertNotIn('SDL_Other', out)

  def test_unsupportedDefineIsSkipped(self):
    out = emit('#define SDL_NOTHING ((void)0)\n#define AFTER 1\n')
    self.assertNotIn('SDL_NOTHING', out)
    self.assertIn('pub const AFTER: ::core::primitive::i32 = 1;', out)

  def test_redefinitionFailsTheModule(self):
    with self.assertRaises(ParseError) as context:
      emit('#define A 1\n#define A 2\n')
    self.assertEqual('already defined', context.exception.getMessage())

  def test_badShiftInConditionFailsTheModule(self):
    with self.assertRaises(ParseError) as context:
      emit('#if 1 << -1\n#define A 1\n#endif\n')
    self.assertEqual('invalid shift count in preprocessor condition', context.exception.getMessage())

  def test_undefAllowsRedefinition(self):
    out = emit('#define A 1\n#undef A\n#define A 2\n')
    self.assertIn('pub const A: ::core::primitive::i32 = 2;', out)

  def test_errorDirectiveFailsTheModule(self):
    with self.assertRaises(ParseError) as context:
      emit('#error nope\n')
    self.assertEqual('#error nope', context.exception.getMessage())

class MacroEmitTest(unittest.TestCase):

  def test_expressionMacro(self):
    out = emit('#define MAX(a, b) ((a) > (b) ? (a) : (b))\n')
    self.assertIn('#[macro_export]\nmacro_rules! MAX {', out)
    self.assertIn('    ($a:expr, $b:expr) => {\n', out)
    self.assertIn('        (if ($a) > ($b) { ($a) } else { ($b) })\n', out)

  def test_statementMacro(self):
    out = emit('#define SDL_SWAP(a, b) do { int t = a; a = b; b = t; } while (0)\n')
    self.assertIn('($a:expr, $b:expr) => {{', out)
    self.assertIn('let mut __sdlgen_first = true;', out)
    self.assertIn('while ::core::mem::replace(&mut __sdlgen_first, false) || (0 != 0) {', out)
    self.assertIn('let mut t: ::core::ffi::c_int = $a;', out)
    self.assertIn('$a = $b;', out)
    self.assertIn('}};', out)

  def test_variadicMacroIsSkipped(self):
    out = emit('#define SDL_LOG(fmt, ...) SDL_Log(fmt, __VA_ARGS__)\n')
    self.assertNotIn('SDL_LOG', out)

class EnumEmitTest(unittest.TestCase):

  def test_typedefEnum(self):
    out = emit('typedef enum { FOO_A, FOO_B, FOO_C = 5 } Foo;')
    self.assertIn('#[repr(transparent)]\n#[derive(Clone, Copy, Default, PartialEq, Eq, Hash, Debug)]\npub struct Foo(pub ::core::ffi::c_int);', out)
    self.assertIn('impl Foo {\n    pub const A: Self = Self(0);\n    pub const B: Self = Self(1);\n    pub const C: Self = Self(5);\n}', out)
    self.assertIn('pub const FOO_A: Foo = Foo::A;', out)
    self.assertIn('pub const FOO_C: Foo = Foo::C;', out)

  def test_implicitValuesContinueFromExplicitOnes(self):
    out = emit('typedef enum { X_A, X_B, X_C = 10, X_D } X;')
    self.assertIn('pub const C: Self = Self(10);', out)
    self.assertIn('pub const D: Self = Self(11);', out)

  def test_anonymousEnumDeclaresConstants(self):
    out = emit('enum { A, B, C = 10, D };')
    self.assertIn('pub const A: ::core::ffi::c_int = 0;', out)
    self.assertIn('pub const B: ::core::ffi::c_int = 1;', out)
    self.assertIn('pub const D: ::core::ffi::c_int = 11;', out)
    self.assertNotIn('pub struct', out)

  def test_variantReferringToSibling(self):
    out = emit('typedef enum { K_A = 1, K_B = K_A << 1 } K;')
    self.assertIn('pub const B: Self = Self((Self::A.0 << 1) as ::core::ffi::c_int);', out)

  def test_valuesPastIntMaxAreUnsigned(self):
    out = emit('typedef enum { E_LOW = 1, E_HIGH = 0x80000000 } E;\nenum { TOP = 0x80000000, HUGE = 0x100000000 };')
    self.assertIn('pub const HIGH: Self = Self((0x80000000_u32) as ::core::ffi::c_int);', out)
    self.assertIn('pub const TOP: ::core::ffi::c_int = (0x80000000_u32) as ::core::ffi::c_int;', out)
    self.assertIn('pub const HUGE: ::core::ffi::c_int = (0x100000000_u64) as ::core::ffi::c_int;', out)

  def test_largeUnsuffixedConstant(self):
    self.assertIn('pub const SDL_TOP_BIT: ::core::primitive::u32 = (0x80000000_u32);', emit('#define SDL_TOP_BIT (0x80000000)\n'))

  def test_conditionalVariants(self):
    out = emit(
      '#define HAVE_C 1\n'
      'typedef enum {\n'
      '  E_A,\n'
      '#if HAVE_C\n'
      '  E_C,\n'
      '#endif\n'
      '#ifdef MISSING\n'
      '  E_M,\n'
      '#endif\n'
      '  E_Z\n'
      '} E;')
    self.assertIn('pub const C: Self = Self(1);', out)
    self.assertIn('pub const Z: Self = Self(2);', out)
    self.assertNotIn('E_M', out)

class StructEmitTest(unittest.TestCase):

  def test_plainStruct(self):
    out = emit('typedef struct SDL_Point\n{\n    int x; /**< the x */\n    float y;\n} SDL_Point;')
    self.assertIn('#[repr(C)]\n#[derive(Clone, Copy, Debug)]\npub struct SDL_Point {\n', out)
    self.assertIn('    /// the x\n    pub x: ::core::ffi::c_int,\n    pub y: ::core::ffi::c_float,\n}', out)
    self.assertIn('impl ::core::default::Default for SDL_Point {', out)
    self.assertIn('unsafe { ::core::mem::MaybeUninit::<Self>::zeroed().assume_init() }', out)

  def test_refcountedStruct(self):
    out = emit('typedef struct SDL_Surface { int refcount; int w; } SDL_Surface;')
    self.assertIn('#[derive(Debug)]\npub struct SDL_Surface {', out)
    self.assertNotIn('Default for SDL_Surface', out)

  def test_unionIsNotDebug(self):
    out = emit('typedef union SDL_Event { Uint32 type; int padding[4]; } SDL_Event;')
    self.assertIn('#[derive(Clone, Copy)]\npub union SDL_Event {', out)
    self.assertIn('pub r#type: Uint32,', out)
    self.assertIn('pub padding: [::core::ffi::c_int; 4],', out)

  def test_opaqueStructMakesNonCopyableFields(self):
    out = emit('typedef struct SDL_Window SDL_Window;\ntypedef struct SDL_Holder { SDL_Window window; } SDL_Holder;')
    self.assertIn('#[repr(C)]\npub struct SDL_Window {\n    _opaque: [::core::primitive::u8; 0],\n}', out)
    self.assertIn('#[repr(C)]\npub struct SDL_Holder {', out)

  def test_forwardDeclarationOfDefinedStruct(self):
    out = emit('typedef struct SDL_Point SDL_Point;\nstruct SDL_Point { int x; };')
    self.assertEqual(1, out.count('pub struct SDL_Point'))
    self.assertNotIn('_opaque', out)

  def test_nestedAnonymousStruct(self):
    out = emit('typedef struct Parent { struct { int a; } inner; } Parent;')
    self.assertIn('pub struct ParentStruct1 {', out)
    self.assertIn('pub inner: ParentStruct1,', out)
    self.assertLess(out.index('pub struct ParentStruct1'), out.index('pub struct Parent {'))

class FunctionEmitTest(unittest.TestCase):

  def test_prototype(self):
    out = emit('extern SDL_DECLSPEC const char * SDLCALL SDL_GetError(void);')
    self.assertIn('extern "C" {\n    pub fn SDL_GetError() -> *const ::core::ffi::c_char;\n}', out)

  def test_variadicPrototype(self):
    out = emit('extern SDL_DECLSPEC void SDLCALL SDL_Log(SDL_PRINTF_FORMAT_STRING const char *fmt, ...) SDL_PRINTF_VARARG_FUNC(1);')
    self.assertIn('pub fn SDL_Log(fmt: *const ::core::ffi::c_char, ...);', out)

  def test_functionPointerTypedef(self):
    out = emit('typedef void (SDLCALL *SDL_Callback)(void *userdata, int n);')
    self.assertIn('pub type SDL_Callback = ::core::option::Option<unsafe extern "C" fn(*mut ::core::ffi::c_void, ::core::ffi::c_int)>;', out)

  def test_inlineFunction(self):
    out = emit('SDL_FORCE_INLINE int SDL_Twice(int x)\n{\n    return x * 2;\n}')
    self.assertIn('#[inline(always)]\npub unsafe fn SDL_Twice(x: ::core::ffi::c_int) -> ::core::ffi::c_int {\n    return x * 2;\n}', out)

  def test_inlineFunctionThatDoesNotParseIsSkipped(self):
    out = emit('SDL_FORCE_INLINE int SDL_Sw(int x)\n{\n    switch (x) { case 1: return 1; }\n}\n#define AFTER 1\n')
    self.assertNotIn('SDL_Sw', out)
    self.assertIn('pub const AFTER', out)

  def test_callsAreCheckedAgainstPrototypes(self):
    out = emit(
      'extern SDL_DECLSPEC int SDLCALL SDL_abs(int x);\n'
      'SDL_FORCE_INLINE int SDL_Good(int x) { return SDL_abs(x); }\n'
      'SDL_FORCE_INLINE int SDL_Bad(int x) { return SDL_abs(x, x); }\n')
    self.assertIn('    return SDL_abs(x);\n', out)
    self.assertNotIn('SDL_Bad', out)

  def test_globalVariable(self):
    out = emit('int SDL_counter;')
    self.assertIn('extern "C" {\n    pub static mut SDL_counter: ::core::ffi::c_int;\n}', out)

class PatchEmitTest(unittest.TestCase):

  def test_typedMacroBecomesConstFn(self):
    out = emit(
      'typedef enum { SDL_PIXELFORMAT_UNKNOWN, SDL_PIXELFORMAT_INDEX1LSB = 0x11100100 } SDL_PixelFormat;\n'
      '#define SDL_BITSPERPIXEL(format) (((format) >> 8) & 0xFF)\n', 'pixels')
    self.assertIn('#[inline(always)]\npub const fn SDL_BITSPERPIXEL(format: SDL_PixelFormat) -> ::core::primitive::u8 {\n', out)
    self.assertIn('format.0', out)
    self.assertIn('as ::core::primitive::u8)', out)
    self.assertNotIn('macro_rules! SDL_BITSPERPIXEL', out)

  def test_sameMacroElsewhereStaysAMacro(self):
    out = emit('#define SDL_BITSPERPIXEL(format) (((format) >> 8) & 0xFF)\n', 'video')
    self.assertIn('macro_rules! SDL_BITSPERPIXEL {', out)

  def test_boolResultComparesAgainstZero(self):
    out = emit(
      'typedef enum { SDL_AUDIO_U8 = 0x0008u, SDL_AUDIO_S8 = 0x8008u } SDL_AudioFormat;\n'
      '#define SDL_AUDIO_ISSIGNED(x) ((x) & (1u << 15))\n', 'audio')
    self.assertIn('pub struct SDL_AudioFormat(pub ::core::ffi::c_uint);', out)
    self.assertIn('pub const fn SDL_AUDIO_ISSIGNED(x: SDL_AudioFormat) -> ::core::primitive::bool {\n', out)
    self.assertIn('x.0', out)
    self.assertIn('!= 0)', out)

  def test_castConstant(self):
    out = emit('#define SDL_HAT_UP 0x01\n', 'joystick')
    self.assertIn('pub const SDL_HAT_UP: Uint8 = (0x01 as Uint8);', out)

  def test_castToEnumWrapsTheValue(self):
    out = emit(
      'typedef enum { SDL_BUTTON_NONE, SDL_BUTTON_ALL = 31 } SDL_MouseButtonFlags;\n'
      '#define SDL_BUTTON_MASK(X) (1u << ((X) - 1))\n', 'mouse')
    self.assertIn('SDL_MouseButtonFlags((', out)
    self.assertIn(') as ::core::ffi::c_int)', out)

  def test_enumBaseType(self):
    out = emit('typedef enum { SDL_EVENT_FIRST = 0, SDL_EVENT_QUIT = 0x100 } SDL_EventType;', 'events')
    self.assertIn('pub struct SDL_EventType(pub Uint32);', out)

  def test_hiddenEnum(self):
    self.assertNotIn('SDL_DUMMY_ENUM', emit('typedef enum { DUMMY_ENUM_VALUE } SDL_DUMMY_ENUM;', 'stdinc'))

  def test_compilerIntrinsicIsNotEmitted(self):
    out = emit('extern void __debugbreak(void);\nextern void SDL_Other(void);')
    self.assertNotIn('__debugbreak', out)
    self.assertIn('pub fn SDL_Other();', out)

class MetadataEmitTest(unittest.TestCase):

  SOURCE = (
    'typedef enum {\n'
    '  /** no flip */ SDL_FLIP_NONE,\n'
    '  SDL_FLIP_HORIZONTAL\n'
    '} SDL_FlipMode;\n'
    '/**\n'
    ' * Names the app.\n'
    ' *\n'
    ' * \\since This hint is available since SDL 3.2.0.\n'
    ' */\n'
    '#define SDL_HINT_APP_NAME "SDL_APP_NAME"\n'
    '#define SDL_PROP_WINDOW_CREATE_TITLE_STRING "SDL.window.create.title"\n'
    '#define SDL_PROP_WINDOW_MYSTERY "SDL.window.mystery"\n'
    '#define SDL_HINT_COUNT 3\n'
  )

  def setUp(self):
    (self.text, self.metadata) = emitModule('hints', parse(self.SOURCE, 'hints'))

  def test_collected(self):
    self.assertEqual(['SDL_HINT_APP_NAME'], [hint.name for hint in self.metadata.hints])
    self.assertEqual([('SDL_PROP_WINDOW_CREATE_TITLE_STRING', 'STRING')], [(prop.name, prop.ty) for prop in self.metadata.properties])
    self.assertEqual(1, len(self.metadata.groups))
    group = self.metadata.groups[0]
    self.assertEqual(('Enum', 'SDL_FlipMode'), (group.kind, group.name))
    self.assertEqual([('SDL_FLIP_NONE', 'NONE'), ('SDL_FLIP_HORIZONTAL', 'HORIZONTAL')], [(value.name, value.shortName) for value in group.values])
    self.assertEqual('no flip', group.values[0].doc)

  def test_renderModule(self):
    out = renderModule('hints', self.metadata)
    self.assertTrue(out.startswith('//! Metadata for items in the `crate::hints` module\n\nuse super::*;\n'))
    self.assertIn('pub const METADATA_SDL_HINT_APP_NAME: Hint = Hint {\n    module: "hints",\n    name: "SDL_HINT_APP_NAME",\n    short_name: "APP_NAME",\n', out)
    self.assertIn('    value: crate::hints::SDL_HINT_APP_NAME,\n', out)
    self.assertIn('    available_since: Some(SDL_VERSIONNUM(3, 2, 0)),\n', out)
    self.assertIn('    ty: PropertyType::STRING,\n', out)
    self.assertIn('    kind: GroupKind::Enum,\n    name: "SDL_FlipMode",\n    short_name: "FlipMode",\n    doc: None,\n', out)
    self.assertIn('        GroupValue {\n            name: "SDL_FLIP_NONE",\n            short_name: "NONE",\n            doc: Some("no flip"),\n', out)

  def test_rustStr(self):
    self.assertEqual('"a\\"b\\\\c\\nd\\u{1}"', rustStr('a"b\\c\nd\x01'))

  def test_availableSince(self):
    self.assertEqual('None', availableSince('no version here'))
    self.assertEqual('Some(SDL_VERSIONNUM(3, 1, 3))', availableSince('## Availability\nThis function is available since SDL 3.1.3.'))

  def test_renderIndex(self):
    out = renderIndex(OrderedDict([('hints', self.metadata), ('empty', Metadata())]))
    self.assertIn('pub mod hints;\npub mod empty;\n', out)
    self.assertIn('pub const HINTS: &[&Hint] = &[\n    &hints::METADATA_SDL_HINT_APP_NAME,\n];', out)
    self.assertIn('pub const GROUPS: &[&Group] = &[\n    &hints::METADATA_SDL_FlipMode,\n];', out)

class ModuleEmitTest(unittest.TestCase):

  def test_includes(self):
    out = emit('#include <SDL3/SDL_stdinc.h>\n#include <SDL3/SDL_video.h>\n#include <stdio.h>\n', 'video')
    self.assertEqual('use super::stdinc::*;\n', out)

  def test_includesFilteredByKnownModules(self):
    out = emit('#include <SDL3/SDL_stdinc.h>\n#include <SDL3/SDL_rect.h>\n', 'video', frozenset(['rect', 'video']))
    self.assertNotIn('stdinc', out)
    self.assertIn('use super::rect::*;', out)

  def test_fileDoc(self):
    out = emit('/**\n * # CategoryVideo\n *\n * Video stuff.\n */\n\n#define X 1\n')
    self.assertTrue(out.startswith('//! Video stuff.\n\npub const X'))

  def test_liveBranchOnly(self):
    out = emit('#define FOO 1\n#if FOO\n#define BAR 2\n#else\n#define BAR 3\n#endif\n')
    self.assertIn('pub const BAR: ::core::primitive::i32 = 2;', out)
    self.assertNotIn('= 3;', out)

  def test_undefinedIfdefTakesElse(self):
    out = emit('#ifdef SDL_PLATFORM_WINDOWS\n#define SEP 1\n#else\n#define SEP 2\n#endif\n')
    self.assertIn('pub const SEP: ::core::primitive::i32 = 2;', out)

  def test_emptyModule(self):
    self.assertEqual('', emit(''))

if __name__ == '__main__':
  unittest.main()
