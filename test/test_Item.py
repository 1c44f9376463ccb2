import unittest
from sdlgen.Span import Span
from sdlgen.ParseError import ParseError
from sdlgen.ParseContext import ParseContext
from sdlgen.Item import ITEMS, Block, DoWhile, IfElse, Return, VarDecl, ExprItem, FileDoc
from sdlgen.Type import TYPE, TypeDef, PointerType, ArrayType, EnumType, StructType, FnPointerType, DotDotDotType
from sdlgen.Struct import CanCopy
from sdlgen.Enum import Enum
from sdlgen.Function import Function
from sdlgen.Value import tryEval, plusOne
from sdlgen.Literal import IntegerLiteral
from sdlgen.Expr import LiteralExpr

def parseItems(source):
  return ITEMS.tryParseAll(ParseContext('test'), Span.fromString('SDL_test.h', source).trimWsc())

def parseType(string):
  return TYPE.parseAll(ParseContext(), Span.inline(string))

class TypeTest(unittest.TestCase):

  def test_combinedPrimitives(self):
    self.assertEqual('unsigned long long', parseType('unsigned long long').name)
    self.assertEqual('long long', parseType('long long int').name)
    self.assertEqual('signed char', parseType('signed char').name)
    self.assertEqual('unsigned int', parseType('unsigned').name)
    self.assertEqual('bool', parseType('_Bool').name)

  def test_constPlacement(self):
    self.assertTrue(parseType('const char').isConst)
    self.assertTrue(parseType('char const').isConst)
    ty = parseType('const char * const')
    self.assertIsInstance(ty, PointerType)
    self.assertTrue(ty.isConst)
    self.assertTrue(ty.inner.isConst)

  def test_badPrimitives(self):
    with self.assertRaises(ParseError) as context:
      parseType('int int')
    self.assertEqual('too many keywords in primitive type', context.exception.getMessage())
    with self.assertRaises(ParseError) as context:
      parseType('signed unsigned')
    self.assertEqual('conflicting keywords in primitive type', context.exception.getMessage())

  def test_functionPointerTypedef(self):
    (typedef,) = parseItems('typedef void (SDLCALL *SDL_Callback)(void *userdata, int n);')
    self.assertIsInstance(typedef, TypeDef)
    self.assertEqual('SDL_Callback', typedef.ident.getString())
    self.assertIsInstance(typedef.ty, FnPointerType)
    self.assertEqual('SDLCALL', typedef.ty.abi.getString())
    self.assertEqual(['userdata', 'n'], [arg.ident.getString() for arg in typedef.ty.args])

  def test_arrayField(self):
    (struct,) = parseItems('struct SDL_GUID { Uint8 data[16]; };')
    self.assertIsInstance(struct.fields[0].ty, ArrayType)

class StructTest(unittest.TestCase):

  def test_typedefStruct(self):
    (typedef,) = parseItems('typedef struct SDL_Point\n{\n    int x; /**< the x */\n    int y;\n} SDL_Point;')
    self.assertIsInstance(typedef.ty, StructType)
    struct = typedef.ty.struct
    self.assertEqual('SDL_Point', struct.ident.getString())
    self.assertEqual(['x', 'y'], [field.ident.getString() for field in struct.fields])
    self.assertEqual('the x', struct.fields[0].doc.getText())
    self.assertEqual(CanCopy.DEFAULT, struct.canCopy)

  def test_multipleDeclarators(self):
    (struct,) = parseItems('struct SDL_Rect { int x, y; int w, h; };')
    self.assertEqual(['x', 'y', 'w', 'h'], [field.ident.getString() for field in struct.fields])

  def test_multipleDeclaratorsRejectPointers(self):
    with self.assertRaises(ParseError):
      parseItems('struct S { int *a, b; };')

  def test_refcountedStructIsNotCopyable(self):
    (typedef,) = parseItems('typedef struct SDL_Surface { int refcount; int w; } SDL_Surface;')
    self.assertEqual(CanCopy.NEVER, typedef.ty.struct.canCopy)
    self.assertFalse(typedef.ty.struct.canConstruct)

  def test_anonymousStructTakesTypedefName(self):
    (typedef,) = parseItems('typedef struct { int x; } SDL_Anon;')
    self.assertEqual('SDL_Anon', typedef.ty.struct.ident.getString())

  def test_anonymousSiblingsAreNumberedPerParent(self):
    items = parseItems(
      'typedef struct Parent {\n'
      '  struct { int a; } first;\n'
      '  union { int b; float c; } second;\n'
      '  struct { int d; } third;\n'
      '} Parent;\n'
      'typedef struct Other {\n'
      '  struct { int e; } x;\n'
      '} Other;\n')
    parent = items[0].ty.struct
    names = [field.ty.struct.ident.getString() for field in parent.fields]
    self.assertEqual(['ParentStruct1', 'ParentUnion2', 'ParentStruct3'], names)
    self.assertTrue(parent.fields[0].ty.struct.generatedIdent)
    other = items[1].ty.struct
    self.assertEqual('OtherStruct1', other.fields[0].ty.struct.ident.getString())

  def test_opaqueStruct(self):
    (typedef,) = parseItems('typedef struct SDL_Window SDL_Window;')
    self.assertTrue(typedef.ty.struct.isOpaque())

  def test_topLevelAnonymousStructIsAnError(self):
    with self.assertRaises(ParseError):
      parseItems('struct { int x; };')

class EnumTest(unittest.TestCase):

  def test_typedefEnumValues(self):
    (typedef,) = parseItems('typedef enum { FOO_A, FOO_B, FOO_C = 5 } Foo;')
    self.assertIsInstance(typedef.ty, EnumType)
    enum = typedef.ty.enum
    self.assertIsInstance(enum, Enum)
    self.assertEqual(['FOO_A', 'FOO_B', 'FOO_C'], [variant.ident.getString() for variant in enum.variants])
    next = LiteralExpr(IntegerLiteral.zero())
    values = []
    for variant in enum.variants:
      expr = variant.expr if variant.expr is not None else next
      values.append(tryEval(expr).value)
      next = plusOne(expr)
    self.assertEqual([0, 1, 5], values)

  def test_baseType(self):
    (enum,) = parseItems('enum SDL_Small : Uint8 { SDL_SMALL_A };')
    self.assertEqual('Uint8', enum.baseType.ident.getString())

  def test_conditionalVariants(self):
    (typedef,) = parseItems(
      'typedef enum E {\n'
      '  E_A,\n'
      '#ifdef HAVE_B\n'
      '  E_B,\n'
      '#else\n'
      '  E_NOT_B,\n'
      '#endif\n'
      '  E_Z\n'
      '} E;')
    variants = typedef.ty.enum.variants
    self.assertEqual(['E_A', 'E_B', 'E_NOT_B', 'E_Z'], [variant.ident.getString() for variant in variants])
    self.assertTrue(variants[0].cond.isEmpty())
    self.assertFalse(variants[1].cond.isEmpty())
    self.assertEqual(1, len(variants[2].cond.outer.not_))

class FunctionTest(unittest.TestCase):

  def test_prototype(self):
    (function,) = parseItems('extern SDL_DECLSPEC const char * SDLCALL SDL_GetError(void);')
    self.assertIsInstance(function, Function)
    self.assertTrue(function.isPrototype())
    self.assertTrue(function.extern)
    self.assertEqual(0, len(function.args))
    self.assertIsInstance(function.returnType, PointerType)
    self.assertEqual('SDLCALL', function.abi.getString())

  def test_variadicPrototype(self):
    (function,) = parseItems('extern SDL_DECLSPEC void SDLCALL SDL_Log(SDL_PRINTF_FORMAT_STRING const char *fmt, ...) SDL_PRINTF_VARARG_FUNC(1);')
    self.assertEqual(2, len(function.args))
    self.assertIsInstance(function.args.args[1].ty, DotDotDotType)

  def test_staticExternIsAnError(self):
    with self.assertRaises(ParseError) as context:
      parseItems('static extern int f(void);')
    self.assertEqual('static extern', context.exception.getMessage())

  def test_inlineFunctionBody(self):
    (function,) = parseItems('SDL_FORCE_INLINE int SDL_Twice(int x)\n{\n    return x * 2;\n}')
    self.assertFalse(function.isPrototype())
    self.assertIn('return x * 2;', function.body.getString())

  def test_externRequiresSemicolon(self):
    with self.assertRaises(ParseError):
      parseItems('extern int f(int x) { return x; }')

class StatementTest(unittest.TestCase):

  def test_statements(self):
    items = parseItems('int i = 0; do { i++; } while (i < 10); if (i) { return; } else { return i; }')
    self.assertIsInstance(items[0], VarDecl)
    self.assertIsInstance(items[1], DoWhile)
    self.assertIsInstance(items[1].block, Block)
    self.assertIsInstance(items[2], IfElse)
    self.assertIsInstance(items[2].onFalse.items[0], Return)

  def test_expressionStatement(self):
    (item,) = parseItems('x = y + 1;')
    self.assertIsInstance(item, ExprItem)

  def test_fileDoc(self):
    items = parseItems('/**\n * # CategoryVideo\n *\n * Video stuff.\n */\n\n#define X 1\n')
    self.assertIsInstance(items[0], FileDoc)
    self.assertEqual('Video stuff.', items[0].doc.getText())

if __name__ == '__main__':
  unittest.main()
