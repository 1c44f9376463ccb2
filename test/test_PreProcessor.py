import unittest
from sdlgen.Span import Span
from sdlgen.Ident import Ident
from sdlgen.ParseError import ParseError
from sdlgen.ParseContext import ParseContext
from sdlgen.Expr import EXPR, Cast
from sdlgen.Type import IdentType, InferType
from sdlgen.Item import ITEMS
from sdlgen.PreProcessor import Define, DefineArg, DefineValue, Include, PreProcBlock, ConditionalExpr, Conditional
from sdlgen.PreProcState import PreProcState

def parseItems(source):
  return ITEMS.tryParseAll(ParseContext('test'), Span.fromString('SDL_test.h', source).trimWsc())

def parseDefine(source):
  items = parseItems(source)
  assert len(items) == 1
  return items[0]

def condition(string):
  return ConditionalExpr(ConditionalExpr.IF, EXPR.parseAll(ParseContext(), Span.inline(string)))

class DefineTest(unittest.TestCase):

  def test_emptyDefine(self):
    define = parseDefine('#define SDL_video_h_\n')
    self.assertIsInstance(define, Define)
    self.assertEqual('SDL_video_h_', define.ident.getString())
    self.assertIsNone(define.args)
    self.assertEqual(DefineValue.EMPTY, define.value.kind)

  def test_exprDefine(self):
    define = parseDefine('#define WIDTH (640)\n')
    self.assertEqual(DefineValue.EXPR, define.value.kind)
    self.assertFalse(define.isFunctionLike())

  def test_typeDefine(self):
    define = parseDefine('#define SDL_Foo int\n')
    self.assertEqual(DefineValue.TYPE, define.value.kind)

  def test_tokenPastingIsOther(self):
    define = parseDefine('#define CAT(a, b) a##b\n')
    self.assertEqual(DefineValue.OTHER, define.value.kind)
    self.assertEqual(['a', 'b'], [arg.ident.getString() for arg in define.args])

  def test_functionLikeDefine(self):
    define = parseDefine('#define MAX(a, b) ((a) > (b) ? (a) : (b))\n')
    self.assertTrue(define.isFunctionLike())
    self.assertEqual(DefineValue.EXPR, define.value.kind)

  def test_itemsDefine(self):
    define = parseDefine('#define SDL_SWAP(a, b) do { int t = a; a = b; b = t; } while (0)\n')
    self.assertEqual(DefineValue.ITEMS, define.value.kind)

  def test_keywordArgumentIsRenamed(self):
    define = parseDefine('#define SDL_PICK(default, x) ((x) ? (x) : (default))\n')
    self.assertEqual('default_', define.args[0].ident.getString())

  def test_variadicArgument(self):
    define = parseDefine('#define SDL_LOG(fmt, ...) SDL_Log(fmt, __VA_ARGS__)\n')
    self.assertTrue(define.args[1].isVariadic())

  def test_trailingDocComment(self):
    define = parseDefine('#define SDL_BUTTON_LEFT 1 /**< left button */\n')
    self.assertEqual(DefineValue.EXPR, define.value.kind)
    self.assertEqual('left button', define.doc.getText())

  def test_continuationLine(self):
    define = parseDefine('#define SDL_FOURCC(A, B) \\\n    ((A) | (B))\n')
    self.assertEqual(DefineValue.EXPR, define.value.kind)

  def test_include(self):
    include = parseDefine('#include <SDL3/SDL_stdinc.h>\n')
    self.assertIsInstance(include, Include)
    self.assertEqual('SDL3/SDL_stdinc.h', include.path.getString())
    self.assertEqual(Include.SYSTEM, include.kind)

class DefinePatchTest(unittest.TestCase):

  def parseIn(self, module, source):
    items = ITEMS.tryParseAll(ParseContext(module), Span.fromString('SDL_%s.h' % (module), source).trimWsc())
    self.assertEqual(1, len(items))
    return items[0]

  def test_annotationMacroIsEmptied(self):
    source = '#define SDL_ACQUIRE(x) SDL_THREAD_ANNOTATION_ATTRIBUTE__(acquire_capability(x))\n'
    self.assertEqual(DefineValue.EMPTY, self.parseIn('mutex', source).value.kind)
    self.assertEqual(DefineValue.EXPR, self.parseIn('test', source).value.kind)

  def test_argumentTypes(self):
    define = self.parseIn('pixels', '#define SDL_BITSPERPIXEL(format) (((format) >> 8) & 0xFF)\n')
    self.assertIsInstance(define.args[0].ty, IdentType)
    self.assertEqual('SDL_PixelFormat', define.args[0].ty.ident.getString())
    self.assertIsInstance(define.value.value, Cast)
    define = self.parseIn('video', '#define SDL_BITSPERPIXEL(format) (((format) >> 8) & 0xFF)\n')
    self.assertIsInstance(define.args[0].ty, InferType)

  def test_valueIsCast(self):
    define = self.parseIn('joystick', '#define SDL_HAT_UP 0x01u\n')
    self.assertIsInstance(define.value.value, Cast)
    self.assertEqual('Uint8', define.value.value.ty.ident.getString())

  def test_argumentCountMismatch(self):
    with self.assertRaises(ParseError) as context:
      self.parseIn('pixels', '#define SDL_BITSPERPIXEL 8\n')
    self.assertEqual('expected a macro with 1 arguments', context.exception.getMessage())

class PreProcBlockTest(unittest.TestCase):

  def test_ifElseChain(self):
    items = parseItems('#if FOO\n#define BAR 2\n#elif BAZ\n#define BAR 3\n#else\n#define BAR 4\n#endif\n')
    self.assertEqual(1, len(items))
    block = items[0]
    self.assertIsInstance(block, PreProcBlock)
    self.assertEqual(ConditionalExpr.IF, block.condExpr.kind)
    self.assertEqual(1, len(block.block))
    self.assertIsNotNone(block.elseBlock.condExpr)
    self.assertIsNone(block.elseBlock.elseBlock.condExpr)
    self.assertIsNone(block.elseBlock.elseBlock.elseBlock)

  def test_nestedBlocksDoNotEndTheBranch(self):
    items = parseItems('#ifdef A\n#ifdef B\n#else\n#endif\n#define X 1\n#endif\n')
    block = items[0]
    self.assertIsNone(block.elseBlock)
    self.assertEqual(2, len(block.block))

  def test_commentOpenedAfterAClosedOneHidesDirectives(self):
    items = parseItems('#ifdef A\n/* a */ /* b\n#endif\n*/\n#define X 1\n#endif\n')
    self.assertEqual(1, len(items))
    block = items[0]
    self.assertIsNone(block.elseBlock)
    self.assertEqual(['X'], [item.ident.getString() for item in block.block if isinstance(item, Define)])

  def test_unterminatedIf(self):
    with self.assertRaises(ParseError) as context:
      parseItems('#ifdef FOO\nint x;\n')
    self.assertEqual('unterminated #if', context.exception.getMessage())
    self.assertEqual('#ifdef FOO', context.exception.getSpan().getString())
    self.assertEqual(1, context.exception.getSpan().getLineAndColumn()[0])

class PreProcStateTest(unittest.TestCase):

  def setUp(self):
    self.state = PreProcState('test')
    self.state.define(Ident.inline('A'), None, DefineValue.expr(EXPR.parseAll(ParseContext(), Span.inline('1 + 2'))))

  def test_arithmetic(self):
    self.assertTrue(self.state.evalCondition(condition('A * 3 == 9')))
    self.assertTrue(self.state.evalCondition(condition('-7 / 2 == -3')))
    self.assertTrue(self.state.evalCondition(condition('-7 % 2 == -1')))
    self.assertTrue(self.state.evalCondition(condition('(1 << 4) | 1')))
    self.assertFalse(self.state.evalCondition(condition('A > 3 ? 1 : 0')))

  def test_undefinedIdentIsZero(self):
    self.assertFalse(self.state.evalCondition(condition('UNKNOWN')))
    self.assertTrue(self.state.evalCondition(condition('!UNKNOWN')))

  def test_defined(self):
    self.assertTrue(self.state.evalCondition(condition('defined(A)')))
    self.assertFalse(self.state.evalCondition(condition('defined B')))
    self.assertTrue(self.state.evalCondition(ConditionalExpr(ConditionalExpr.IFDEF, Ident.inline('A'))))
    self.assertTrue(self.state.evalCondition(ConditionalExpr(ConditionalExpr.IFNDEF, Ident.inline('B'))))

  def test_functionLikeMacro(self):
    args = [DefineArg(Ident.inline('a')), DefineArg(Ident.inline('b'))]
    body = EXPR.parseAll(ParseContext(), Span.inline('a * b'))
    self.state.define(Ident.inline('MUL'), args, DefineValue.expr(body))
    self.assertTrue(self.state.evalCondition(condition('MUL(2, 3) == 6')))
    with self.assertRaises(ParseError):
      self.state.evalCondition(condition('MUL(2)'))

  def test_divisionByZero(self):
    with self.assertRaises(ParseError):
      self.state.evalCondition(condition('1 / 0'))

  def test_shiftCountOutOfRange(self):
    for string in ['1 << -1', '1 >> -1', '1 << 64', '1 << 100000000000']:
      with self.assertRaises(ParseError) as context:
        self.state.evalCondition(condition(string))
      self.assertEqual('invalid shift count in preprocessor condition', context.exception.getMessage())

  def test_leftShiftWrapsToIntmax(self):
    self.assertTrue(self.state.evalCondition(condition('(1 << 63) < 0')))
    self.assertTrue(self.state.evalCondition(condition('(3 << 63) == (1 << 63)')))
    self.assertTrue(self.state.evalCondition(condition('(-8 >> 1) == -4')))

  def test_redefinitionIsAnError(self):
    with self.assertRaises(ParseError) as context:
      self.state.define(Ident.inline('A'), None, DefineValue.empty())
    self.assertEqual('already defined', context.exception.getMessage())

  def test_undefine(self):
    self.state.undefine(Ident.inline('A'))
    self.assertFalse(self.state.isDefined(Ident.inline('A')))
    self.assertIsNone(self.state.lookup(Ident.inline('A')))

  def test_includeGuardStartsUndefined(self):
    self.assertFalse(self.state.isDefined(Ident.inline('SDL_test_h_')))
    self.assertFalse(self.state.isDefined(Ident.inline('__cplusplus')))

class ConditionalTest(unittest.TestCase):

  def test_elseBranchRequiresEarlierConditionsFalse(self):
    state = PreProcState()
    cond = Conditional()
    cond.push(condition('1'))
    self.assertTrue(cond.isSatisfied(state))
    cond.push(None)
    self.assertFalse(cond.isSatisfied(state))

  def test_outerGuard(self):
    state = PreProcState()
    outer = Conditional()
    outer.push(condition('0'))
    inner = Conditional()
    inner.push(condition('1'))
    self.assertFalse(inner.within(outer).isSatisfied(state))
    self.assertTrue(inner.isSatisfied(state))

if __name__ == '__main__':
  unittest.main()
